from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NodeSpec(BaseModel):
    # position/parameters and any extra keys are opaque to validation
    model_config = ConfigDict(extra="allow")

    id: str = ""
    name: str = ""
    type: str = ""
    position: Optional[List[float]] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    disabled: bool = False
    retryOnFail: Optional[bool] = None
    maxRetries: Optional[int] = None
    retryDelayMs: Optional[int] = None
    timeoutMs: Optional[int] = None
    notes: Optional[str] = None


class ConnectionRef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    node: str
    type: str = "main"
    index: int = 0
    label: Optional[str] = None

    @field_validator("index")
    @classmethod
    def validate_index(cls, value: int) -> int:
        if value < 0:
            raise ValueError("index must be >= 0")
        return value


# {sourceName: {portType: [[targets of branch 0], [targets of branch 1], ...]}}
Connections = Dict[str, Dict[str, List[List[ConnectionRef]]]]


class WorkflowDefinition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    description: Optional[str] = None
    nodes: List[NodeSpec] = Field(default_factory=list)
    connections: Connections = Field(default_factory=dict)
    settings: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None


class ValidationIssue(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str
    nodeId: Optional[str] = None
    field: Optional[str] = None
    severity: Literal["error", "warning"] = "error"


class ValidationIssues(BaseModel):
    """Errors and warnings produced by a single validation pass."""

    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)

    def error(self, message: str, node_id: Optional[str] = None, field: Optional[str] = None) -> None:
        self.errors.append(
            ValidationIssue(message=message, nodeId=node_id, field=field, severity="error")
        )

    def warning(self, message: str, node_id: Optional[str] = None, field: Optional[str] = None) -> None:
        self.warnings.append(
            ValidationIssue(message=message, nodeId=node_id, field=field, severity="warning")
        )

    def extend(self, other: "ValidationIssues") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


class ValidationReport(BaseModel):
    valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def from_issues(cls, issues: ValidationIssues) -> "ValidationReport":
        return cls(
            valid=not issues.errors,
            errors=list(issues.errors),
            warnings=list(issues.warnings),
        )
