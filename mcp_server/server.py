from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from wfgraph.config import Settings
from wfgraph.graph import detect_cycles, find_unreachable_nodes
from wfgraph.logging import audit_log, configure_logging
from wfgraph.specs import WorkflowDefinition
from wfgraph.validator import validate_workflow


server = Server("wfgraph-validator")
_settings = Settings.load_from_env()
configure_logging(_settings.log_level, _settings.audit_log_path)


def _parse_workflow(workflow_json: Any) -> WorkflowDefinition:
    if not isinstance(workflow_json, dict):
        raise ValueError("workflow must be an object")
    return WorkflowDefinition.model_validate(workflow_json)


async def validate_workflow_action(workflow_json: Dict[str, Any]) -> Dict[str, Any]:
    workflow = _parse_workflow(workflow_json)
    report = validate_workflow(
        workflow.name,
        workflow.nodes,
        workflow.connections,
        trigger_types=_settings.trigger_types,
        unreachable_as_error=_settings.unreachable_as_error,
    )
    audit_log(
        "validate_workflow",
        actor="mcp",
        details={"workflow": workflow_json, "errors": len(report.errors)},
        status="ok" if report.valid else "invalid",
    )
    return report.model_dump()


async def find_unreachable_nodes_action(workflow_json: Dict[str, Any]) -> Dict[str, Any]:
    workflow = _parse_workflow(workflow_json)
    unreachable = find_unreachable_nodes(
        workflow.nodes, workflow.connections, _settings.trigger_types
    )
    return {"unreachable": unreachable}


async def detect_cycles_action(workflow_json: Dict[str, Any]) -> Dict[str, Any]:
    workflow = _parse_workflow(workflow_json)
    return {"cycles": detect_cycles(workflow.nodes, workflow.connections)}


async def list_trigger_types_action() -> Dict[str, Any]:
    return {"trigger_types": sorted(_settings.trigger_types)}


ToolHandler = Callable[[Dict[str, Any]], Awaitable[List[TextContent]]]
_tool_registry: Dict[str, tuple[ToolHandler, Dict[str, Any], str]] = {}

_WORKFLOW_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "workflow": {
            "type": "object",
            "description": "Workflow with name, nodes and a name-addressed connections map.",
        },
    },
    "required": ["workflow"],
}


def register_tool(
    name: str, description: str, input_schema: Dict[str, Any]
) -> Callable[[ToolHandler], ToolHandler]:
    def decorator(func: ToolHandler) -> ToolHandler:
        _tool_registry[name] = (func, input_schema, description)
        return func

    return decorator


def _text_payload(payload: Dict[str, Any]) -> List[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload))]


@register_tool(
    "validate_workflow",
    "Validate a workflow graph: node ids and names, connections, triggers, reachability and cycles.",
    _WORKFLOW_SCHEMA,
)
async def validate_workflow_tool(arguments: Dict[str, Any]) -> List[TextContent]:
    return _text_payload(await validate_workflow_action(arguments.get("workflow")))


@register_tool(
    "find_unreachable_nodes",
    "List ids of nodes that no trigger node can reach.",
    _WORKFLOW_SCHEMA,
)
async def find_unreachable_nodes_tool(arguments: Dict[str, Any]) -> List[TextContent]:
    return _text_payload(await find_unreachable_nodes_action(arguments.get("workflow")))


@register_tool(
    "detect_cycles",
    "List directed cycles in the workflow graph as sequences of node names.",
    _WORKFLOW_SCHEMA,
)
async def detect_cycles_tool(arguments: Dict[str, Any]) -> List[TextContent]:
    return _text_payload(await detect_cycles_action(arguments.get("workflow")))


@register_tool(
    "list_trigger_types",
    "List the node types treated as triggers.",
    {"type": "object", "properties": {}},
)
async def list_trigger_types_tool(arguments: Dict[str, Any]) -> List[TextContent]:
    return _text_payload(await list_trigger_types_action())


# mypy struggles with dynamic decorator types exposed by the MCP library.
@server.list_tools()  # type: ignore[misc,no-untyped-call]
async def _list_tools() -> List[Tool]:
    return [
        Tool(name=name, description=desc, inputSchema=schema)
        for name, (_, schema, desc) in _tool_registry.items()
    ]


@server.call_tool()  # type: ignore[misc,no-untyped-call]
async def _call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    if name not in _tool_registry:
        raise ValueError(f"Unknown tool: {name}")
    handler, _, _ = _tool_registry[name]
    return await handler(arguments or {})


def main() -> None:
    async def runner() -> None:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )

    asyncio.run(runner())


if __name__ == "__main__":
    main()
