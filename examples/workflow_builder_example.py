"""Example usage of the WorkflowBuilder and the validator.

Builds a branching workflow, validates it, then breaks it on purpose to
show the diagnostics the validator reports.
"""

from wfgraph.builder import WorkflowBuilder
from wfgraph.validator import validate_workflow


def example_branching_workflow():
    """Build a webhook -> condition -> (discord | email) -> merge workflow."""
    return (
        WorkflowBuilder("Incident Router")
        .add_trigger("Incoming Alert", kind="webhook", parameters={"path": "/alerts"})
        .add_node("Is Critical", "condition", {"field": "={{$json.severity}}", "equals": "critical"})
        .add_node("Page On-Call", "discord", {"channel": "#on-call"})
        .add_node("Email Team", "email", {"to": "team@example.com"})
        .add_node("Record", "merge")
        .connect("Incoming Alert", "Is Critical")
        .connect("Is Critical", "Page On-Call", branch=0)
        .connect("Is Critical", "Email Team", branch=1)
        .connect("Page On-Call", "Record")
        .connect("Email Team", "Record")
        .build()
    )


def example_broken_workflow():
    """Add a back edge, a dangling connection and a parked node."""
    return (
        WorkflowBuilder("Broken Router")
        .add_trigger("Incoming Alert", kind="webhook")
        .add_node("Enrich", "http-request")
        .add_node("Summarise", "ai-prompt")
        .add_node("Parked", "transform", disabled=True)
        .connect("Incoming Alert", "Enrich")
        .connect("Enrich", "Summarise")
        .connect("Summarise", "Enrich")
        .connect("Summarise", "Archive")
        .build()
    )


def print_report(workflow):
    report = validate_workflow(workflow.name, workflow.nodes, workflow.connections)
    print(f"{workflow.name}: valid={report.valid}")
    for issue in report.errors:
        print(f"  error:   {issue.message}")
    for issue in report.warnings:
        print(f"  warning: {issue.message}")


if __name__ == "__main__":
    print_report(example_branching_workflow())
    print_report(example_broken_workflow())
