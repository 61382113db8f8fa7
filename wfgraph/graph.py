"""Directed graph view of a workflow and the traversals run over it.

Connections address nodes by *name*, so the graph is keyed by name too.
Names that do not belong to any node are kept in the adjacency so the
connection validator can still report them; traversals simply never find
outgoing edges for them.
"""
from __future__ import annotations

from collections import deque
from typing import (
    Any,
    Deque,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
)

from wfgraph.config import DEFAULT_TRIGGER_TYPES
from wfgraph.specs import ConnectionRef, NodeSpec

# (source name, port type, branch index, target name or None)
ConnectionEdge = Tuple[str, str, int, Optional[str]]

# DFS colours
WHITE, GRAY, BLACK = 0, 1, 2


def _target_name(entry: Any) -> Optional[str]:
    if isinstance(entry, ConnectionRef):
        return entry.node or None
    if isinstance(entry, Mapping):
        node = entry.get("node")
        return node if isinstance(node, str) and node else None
    return None


def _as_list(value: Any) -> Optional[List[Any]]:
    """Normalize a port or branch container; None means the shape is unusable."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, Mapping):
        return list(value.values())
    return None


def _walk(connections: Any) -> Iterator[Tuple[str, Optional[str], Optional[int], Any, bool]]:
    # (source, port, branch, entry, well_formed); entry is None for a bad container
    if not isinstance(connections, Mapping):
        return
    for source, ports in connections.items():
        if not isinstance(ports, Mapping):
            yield source, None, None, None, False
            continue
        for port, branches in ports.items():
            branch_list = _as_list(branches)
            if branch_list is None:
                yield source, port, None, None, False
                continue
            for branch_index, branch in enumerate(branch_list):
                entries = _as_list(branch)
                if entries is None:
                    yield source, port, branch_index, None, False
                    continue
                for entry in entries:
                    yield source, port, branch_index, entry, True


def iter_connections(connections: Optional[Mapping[str, Any]]) -> Iterator[ConnectionEdge]:
    """
    Flatten the nested connections map into individual edges.

    Args:
        connections: {sourceName: {portType: [[target, ...], ...]}}; entries may be
            ConnectionRef models or plain dicts decoded from JSON

    Yields:
        (source, port, branch, target) tuples in map order. ``target`` is None
        when an entry carries no node name. Ports or branches that are not
        lists (or dicts of branches) are skipped; see malformed_connections.
    """
    for source, port, branch, entry, well_formed in _walk(connections):
        if well_formed:
            yield source, port, branch, _target_name(entry)


def malformed_connections(connections: Any) -> List[Tuple[str, Optional[str], Optional[int]]]:
    """Locations (source, port, branch) whose container shape iter_connections skipped."""
    return [
        (source, port, branch)
        for source, port, branch, _entry, well_formed in _walk(connections)
        if not well_formed
    ]


def trigger_set(trigger_types: Optional[Iterable[str]] = None) -> FrozenSet[str]:
    if trigger_types is None:
        return DEFAULT_TRIGGER_TYPES
    return frozenset(trigger_types)


class WorkflowGraph:
    """Adjacency view over a node list and its connections map.

    Built fresh for each validation call and never mutated afterwards.
    """

    def __init__(
        self,
        nodes: Sequence[NodeSpec],
        connections: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.nodes = list(nodes)
        self.node_names: Set[str] = {node.name for node in self.nodes if node.name}
        self.adjacency: Dict[str, List[str]] = {}

        for source, _port, _branch, target in iter_connections(connections):
            targets = self.adjacency.setdefault(source, [])
            if target is not None and target not in targets:
                targets.append(target)

    def successors(self, name: str) -> List[str]:
        return self.adjacency.get(name, [])

    def has_node(self, name: str) -> bool:
        return name in self.node_names

    def reachable_from(self, seeds: Iterable[str]) -> Set[str]:
        """Breadth-first forward traversal from every seed name."""
        visited: Set[str] = set()
        queue: Deque[str] = deque()
        for seed in seeds:
            if seed not in visited:
                visited.add(seed)
                queue.append(seed)

        while queue:
            current = queue.popleft()
            for target in self.successors(current):
                if target not in visited:
                    visited.add(target)
                    queue.append(target)
        return visited

    def cycles(self) -> List[List[str]]:
        """
        Find directed cycles with a white/gray/black depth-first search.

        Every node starts a search if it is still unvisited, so cycles outside
        the trigger-reachable part of the graph are found as well. Each back
        edge yields one cycle: the names on the current path from the gray
        target to the current node, closed by repeating the target.

        Returns:
            List of cycles, each an ordered list of node names
        """
        colour: Dict[str, int] = {}
        found: List[List[str]] = []

        for node in self.nodes:
            start = node.name
            if not start or colour.get(start, WHITE) != WHITE:
                continue

            path: List[str] = [start]
            colour[start] = GRAY
            stack: List[Iterator[str]] = [iter(self.successors(start))]

            while stack:
                current = path[-1]
                target = next(stack[-1], None)
                if target is None:
                    colour[current] = BLACK
                    path.pop()
                    stack.pop()
                    continue

                # dangling targets are reported by connection validation
                if not self.has_node(target):
                    continue

                state = colour.get(target, WHITE)
                if state == WHITE:
                    colour[target] = GRAY
                    path.append(target)
                    stack.append(iter(self.successors(target)))
                elif state == GRAY:
                    start_at = path.index(target)
                    found.append(path[start_at:] + [target])

        return found


def find_unreachable_nodes(
    nodes: Sequence[NodeSpec],
    connections: Optional[Mapping[str, Any]] = None,
    trigger_types: Optional[Iterable[str]] = None,
) -> List[str]:
    """
    List the ids of nodes no trigger node can reach.

    Trigger nodes are entry points and never count as unreachable, with or
    without incoming connections. A node reachable from any trigger is
    reachable.

    Args:
        nodes: Workflow nodes
        connections: Name-addressed connections map
        trigger_types: Node types that start execution (defaults to the built-in set)

    Returns:
        Node ids in node-list order
    """
    return [node.id for node in unreachable_nodes(nodes, connections, trigger_types)]


def unreachable_nodes(
    nodes: Sequence[NodeSpec],
    connections: Optional[Mapping[str, Any]] = None,
    trigger_types: Optional[Iterable[str]] = None,
) -> List[NodeSpec]:
    """Same as find_unreachable_nodes, but returns the nodes themselves."""
    triggers = trigger_set(trigger_types)
    graph = WorkflowGraph(nodes, connections)
    seeds = [node.name for node in nodes if node.type in triggers and node.name]
    reachable = graph.reachable_from(seeds)

    return [
        node
        for node in nodes
        if node.type not in triggers and node.name not in reachable
    ]


def detect_cycles(
    nodes: Sequence[NodeSpec],
    connections: Optional[Mapping[str, Any]] = None,
) -> List[List[str]]:
    """Return every directed cycle found in the workflow, as lists of node names."""
    if not nodes:
        return []
    return WorkflowGraph(nodes, connections).cycles()
