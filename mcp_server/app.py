from __future__ import annotations

from typing import Any, Dict, List

from fastapi import FastAPI
from pydantic import BaseModel

from wfgraph.config import Settings
from wfgraph.logging import audit_log, configure_logging
from wfgraph.specs import ValidationReport, WorkflowDefinition
from wfgraph.validator import validate_workflow


app = FastAPI(title="wfgraph")
_settings = Settings.load_from_env()
configure_logging(_settings.log_level, _settings.audit_log_path)


class ValidateWorkflowRequest(BaseModel):
    workflow: WorkflowDefinition


@app.get("/health")
async def health() -> Dict[str, Any]:
    return {"status": "ok"}


@app.get("/trigger-types")
async def trigger_types() -> Dict[str, List[str]]:
    return {"trigger_types": sorted(_settings.trigger_types)}


@app.post("/validate", response_model=ValidationReport)
async def validate(req: ValidateWorkflowRequest) -> ValidationReport:
    workflow = req.workflow
    report = validate_workflow(
        workflow.name,
        workflow.nodes,
        workflow.connections,
        trigger_types=_settings.trigger_types,
        unreachable_as_error=_settings.unreachable_as_error,
    )
    audit_log(
        "validate_workflow",
        actor="http",
        details={"workflow": workflow.model_dump(), "errors": len(report.errors)},
        status="ok" if report.valid else "invalid",
    )
    return report
