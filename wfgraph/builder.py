"""Fluent helper for assembling workflow graphs in code.

Example:
    workflow = (
        WorkflowBuilder("Nightly Report")
        .add_trigger("Start", kind="schedule")
        .add_node("Fetch", "http-request")
        .add_node("Notify", "email")
        .connect("Start", "Fetch")
        .connect("Fetch", "Notify")
        .build()
    )
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from wfgraph.specs import ConnectionRef, Connections, NodeSpec, WorkflowDefinition


class WorkflowBuilder:
    def __init__(self, name: str, description: Optional[str] = None):
        """
        Initialize a workflow builder.

        Args:
            name: The workflow name
            description: Optional workflow description
        """
        self.name = name
        self.description = description
        self._nodes: List[NodeSpec] = []
        self._connections: Connections = {}

    def add_node(
        self,
        name: str,
        node_type: str,
        parameters: Optional[Dict[str, Any]] = None,
        node_id: Optional[str] = None,
        disabled: bool = False,
        position: Optional[List[float]] = None,
    ) -> "WorkflowBuilder":
        """
        Add a node to the workflow.

        Args:
            name: Node name; connections refer to nodes by this name
            node_type: Node type (e.g., "http-request")
            parameters: Node parameters
            node_id: Node id; defaults to the node's 1-based position as a string
            disabled: Mark the node as disabled
            position: Optional [x, y] canvas position

        Returns:
            Self for chaining
        """
        node = NodeSpec(
            id=node_id if node_id is not None else str(len(self._nodes) + 1),
            name=name,
            type=node_type,
            parameters=parameters or {},
            disabled=disabled,
            position=position or [250, len(self._nodes) * 120],
        )
        self._nodes.append(node)
        return self

    def add_trigger(
        self,
        name: str,
        kind: str = "manual",
        parameters: Optional[Dict[str, Any]] = None,
        node_id: Optional[str] = None,
    ) -> "WorkflowBuilder":
        """Add a trigger node; ``kind`` is one of manual, webhook, schedule or event."""
        return self.add_node(name, f"{kind}-trigger", parameters, node_id=node_id)

    def connect(
        self,
        from_node: str,
        to_node: str,
        output: str = "main",
        branch: int = 0,
        index: int = 0,
    ) -> "WorkflowBuilder":
        """
        Connect two nodes by name.

        Args:
            from_node: Source node name
            to_node: Target node name
            output: Output port type (default: "main")
            branch: Branch of the output, e.g. 0 = true / 1 = false for a condition
            index: Input index on the target node

        Returns:
            Self for chaining
        """
        branches = self._connections.setdefault(from_node, {}).setdefault(output, [])
        while len(branches) <= branch:
            branches.append([])
        branches[branch].append(ConnectionRef(node=to_node, type=output, index=index))
        return self

    def build(self) -> WorkflowDefinition:
        return WorkflowDefinition(
            name=self.name,
            description=self.description,
            nodes=list(self._nodes),
            connections={
                source: {port: [list(branch) for branch in branches] for port, branches in ports.items()}
                for source, ports in self._connections.items()
            },
        )
