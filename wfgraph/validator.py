from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Set

from loguru import logger

from wfgraph.graph import (
    detect_cycles,
    iter_connections,
    malformed_connections,
    trigger_set,
    unreachable_nodes,
)
from wfgraph.specs import NodeSpec, ValidationIssues, ValidationReport


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def _label(node: NodeSpec, index: Optional[int] = None) -> str:
    if not _blank(node.name):
        return node.name
    if not _blank(node.id):
        return node.id
    return f"nodes[{index}]" if index is not None else "<unnamed>"


def _ids_by_name(nodes: Sequence[NodeSpec]) -> Dict[str, str]:
    # first node wins when names repeat
    ids: Dict[str, str] = {}
    for node in nodes:
        if node.name:
            ids.setdefault(node.name, node.id)
    return ids


def validate_nodes(nodes: Sequence[NodeSpec]) -> ValidationIssues:
    """
    Check per-node invariants.

    Ids and names must be present and unique. Names are the addressing key
    for connections, so a duplicate name is an error even when ids differ.
    Disabled nodes only produce a warning.

    Args:
        nodes: Workflow nodes, checked in list order

    Returns:
        ValidationIssues with errors and warnings
    """
    issues = ValidationIssues()
    seen_ids: Set[str] = set()
    seen_names: Set[str] = set()

    for index, node in enumerate(nodes):
        node_id = node.id or None

        if _blank(node.id):
            issues.error("Node ID is required", node_id=node_id, field=f"nodes[{index}].id")
        elif node.id in seen_ids:
            issues.error(f"Duplicate node ID: {node.id}", node_id=node.id, field=f"nodes[{index}].id")
        else:
            seen_ids.add(node.id)

        if _blank(node.name):
            issues.error("Node name is required", node_id=node_id, field=f"nodes[{index}].name")
        elif node.name in seen_names:
            issues.error(
                f'Duplicate node name: "{node.name}"',
                node_id=node_id,
                field=f"nodes[{index}].name",
            )
        else:
            seen_names.add(node.name)

        if node.disabled:
            issues.warning(f'Node "{_label(node, index)}" is disabled', node_id=node_id)

    return issues


def validate_connections(
    nodes: Sequence[NodeSpec],
    connections: Optional[Mapping[str, Any]],
) -> ValidationIssues:
    """
    Check that every connection joins two existing nodes and is not a self-loop.

    Longer cycles are left to cycle detection. Errors are tagged with the
    source node's id; a missing source has no id, so only the message and
    field name it.
    """
    issues = ValidationIssues()
    ids_by_name = _ids_by_name(nodes)

    if connections is None:
        return issues
    if not isinstance(connections, Mapping):
        issues.error("Connections must be a mapping of source node names", field="connections")
        return issues

    for source in connections:
        if source not in ids_by_name:
            issues.error(
                f'Connection source node "{source}" does not exist',
                field=f"connections.{source}",
            )

    for source, port, branch in malformed_connections(connections):
        where = f"connections.{source}"
        if port is not None:
            where += f".{port}"
        if branch is not None:
            where += f"[{branch}]"
        issues.error(
            f'Connections from "{source}" are malformed at {where}',
            node_id=ids_by_name.get(source) or None,
            field=where,
        )

    for source, port, branch, target in iter_connections(connections):
        where = f"connections.{source}.{port}[{branch}]"
        source_id = ids_by_name.get(source) or None
        if target is None:
            issues.error(f'Connection from "{source}" has no target node', node_id=source_id, field=where)
        elif target not in ids_by_name:
            issues.error(
                f'Connection target node "{target}" does not exist',
                node_id=source_id,
                field=where,
            )
        elif target == source:
            issues.error(
                f'Node "{source}" has a self-referencing connection',
                node_id=source_id,
                field=where,
            )

    return issues


def validate_workflow(
    name: str,
    nodes: Sequence[NodeSpec],
    connections: Optional[Mapping[str, Any]] = None,
    trigger_types: Optional[Iterable[str]] = None,
    unreachable_as_error: bool = False,
) -> ValidationReport:
    """
    Validate a workflow graph before it is saved or executed.

    Args:
        name: Workflow name
        nodes: Workflow nodes
        connections: Name-addressed connections map
        trigger_types: Node types that may start execution (defaults to the built-in set)
        unreachable_as_error: Report nodes no trigger reaches as errors instead of warnings

    Returns:
        ValidationReport; ``valid`` is False whenever any error was found
    """
    issues = ValidationIssues()
    triggers = trigger_set(trigger_types)

    if _blank(name):
        issues.error("Workflow name is required", field="name")

    if not nodes:
        issues.error("Workflow must have at least one node", field="nodes")
        return ValidationReport.from_issues(issues)

    if not any(node.type in triggers for node in nodes):
        issues.error("Workflow must have at least one trigger node", field="nodes")

    issues.extend(validate_nodes(nodes))
    issues.extend(validate_connections(nodes, connections))

    for node in unreachable_nodes(nodes, connections, triggers):
        message = f'Node "{_label(node)}" is unreachable from any trigger'
        if unreachable_as_error:
            issues.error(message, node_id=node.id or None)
        else:
            issues.warning(message, node_id=node.id or None)

    ids_by_name = _ids_by_name(nodes)
    cycles = detect_cycles(nodes, connections)
    for cycle in cycles:
        issues.error(
            f"Cycle detected: {' -> '.join(cycle)}",
            node_id=ids_by_name.get(cycle[0]) or None,
        )

    report = ValidationReport.from_issues(issues)
    logger.bind(workflow=name).debug(
        "validated workflow: valid={} errors={} warnings={} cycles={}",
        report.valid,
        len(report.errors),
        len(report.warnings),
        len(cycles),
    )
    return report
