"""Tests for the graph model, reachability and cycle detection."""
from __future__ import annotations

from typing import Dict, List

from wfgraph.graph import (
    WorkflowGraph,
    detect_cycles,
    find_unreachable_nodes,
    iter_connections,
    malformed_connections,
)
from wfgraph.specs import ConnectionRef, NodeSpec


def node(id: str, type: str, name: str) -> NodeSpec:
    return NodeSpec(id=id, type=type, name=name)


def link(*targets: str) -> Dict[str, List[List[ConnectionRef]]]:
    return {"main": [[ConnectionRef(node=target) for target in targets]]}


class TestWorkflowGraph:
    def test_flattens_ports_and_branches(self) -> None:
        connections = {
            "If": {
                "main": [[ConnectionRef(node="Yes")], [ConnectionRef(node="No"), ConnectionRef(node="Yes")]],
                "error": [[ConnectionRef(node="Handler")]],
            }
        }
        graph = WorkflowGraph([node("1", "condition", "If")], connections)
        assert graph.successors("If") == ["Yes", "No", "Handler"]

    def test_unknown_names_are_preserved(self) -> None:
        graph = WorkflowGraph([node("1", "manual-trigger", "T")], {"Ghost": link("T"), "T": link("Missing")})
        assert graph.successors("Ghost") == ["T"]
        assert graph.successors("T") == ["Missing"]
        assert not graph.has_node("Missing")

    def test_iter_connections_reports_branch_index(self) -> None:
        connections = {"If": {"main": [[], [ConnectionRef(node="No")]]}}
        assert list(iter_connections(connections)) == [("If", "main", 1, "No")]

    def test_iter_connections_tolerates_malformed_entries(self) -> None:
        connections = {"A": None, "B": {"main": [None, [{"node": ""}, "junk"]]}}
        assert list(iter_connections(connections)) == [("B", "main", 1, None), ("B", "main", 1, None)]


class TestFindUnreachableNodes:
    def test_fully_connected(self) -> None:
        nodes = [node("1", "manual-trigger", "Trigger"), node("2", "http-request", "Request"), node("3", "notification", "Notify")]
        connections = {"Trigger": link("Request"), "Request": link("Notify")}
        assert find_unreachable_nodes(nodes, connections) == []

    def test_isolated_node(self) -> None:
        nodes = [
            node("t", "manual-trigger", "T"),
            node("a", "http-request", "A"),
            node("b", "http-request", "B"),
            node("c", "http-request", "C"),
        ]
        connections = {"T": link("A"), "A": link("B")}
        assert find_unreachable_nodes(nodes, connections) == ["c"]

    def test_trigger_is_never_unreachable(self) -> None:
        assert find_unreachable_nodes([node("1", "manual-trigger", "Trigger")], {}) == []

    def test_multiple_triggers_are_unioned(self) -> None:
        nodes = [
            node("1", "manual-trigger", "Manual"),
            node("2", "webhook-trigger", "Webhook"),
            node("3", "http-request", "Request"),
            node("4", "email", "Mail"),
        ]
        connections = {"Manual": link("Request"), "Webhook": link("Mail")}
        assert find_unreachable_nodes(nodes, connections) == []

    def test_disconnected_subgraph(self) -> None:
        nodes = [
            node("1", "manual-trigger", "T"),
            node("2", "http-request", "A"),
            node("3", "http-request", "B"),
            node("4", "http-request", "C"),
        ]
        connections = {"T": link("A"), "B": link("C")}
        assert sorted(find_unreachable_nodes(nodes, connections)) == ["3", "4"]

    def test_edges_are_followed_forward_only(self) -> None:
        nodes = [node("1", "manual-trigger", "T"), node("2", "http-request", "Upstream")]
        connections = {"Upstream": link("T")}
        assert find_unreachable_nodes(nodes, connections) == ["2"]

    def test_without_triggers_every_node_is_unreachable(self) -> None:
        nodes = [node("1", "http-request", "A"), node("2", "http-request", "B")]
        assert find_unreachable_nodes(nodes, {"A": link("B")}) == ["1", "2"]

    def test_custom_trigger_types(self) -> None:
        nodes = [node("1", "cron", "Tick"), node("2", "http-request", "Work")]
        assert find_unreachable_nodes(nodes, {"Tick": link("Work")}, trigger_types=["cron"]) == []


class TestDetectCycles:
    def test_acyclic(self) -> None:
        nodes = [node("1", "manual-trigger", "T"), node("2", "http-request", "A"), node("3", "http-request", "B")]
        assert detect_cycles(nodes, {"T": link("A"), "A": link("B")}) == []

    def test_simple_cycle(self) -> None:
        nodes = [node("1", "manual-trigger", "T"), node("2", "http-request", "A"), node("3", "http-request", "B")]
        cycles = detect_cycles(nodes, {"T": link("A"), "A": link("B"), "B": link("A")})
        assert cycles == [["A", "B", "A"]]

    def test_cycle_through_trigger(self) -> None:
        nodes = [node("1", "manual-trigger", "T"), node("2", "http-request", "A")]
        cycles = detect_cycles(nodes, {"T": link("A"), "A": link("T")})
        assert cycles == [["T", "A", "T"]]

    def test_empty_workflow(self) -> None:
        assert detect_cycles([], {}) == []

    def test_branching_and_merge_without_cycles(self) -> None:
        nodes = [
            node("1", "manual-trigger", "Trigger"),
            node("2", "condition", "Condition"),
            node("3", "http-request", "A"),
            node("4", "http-request", "B"),
            node("5", "merge", "Merge"),
        ]
        connections = {
            "Trigger": link("Condition"),
            "Condition": {"main": [[ConnectionRef(node="A")], [ConnectionRef(node="B")]]},
            "A": link("Merge"),
            "B": link("Merge"),
        }
        assert detect_cycles(nodes, connections) == []
        assert find_unreachable_nodes(nodes, connections) == []

    def test_isolated_cycle_is_found(self) -> None:
        nodes = [node("1", "manual-trigger", "T"), node("2", "loop", "X"), node("3", "loop", "Y")]
        cycles = detect_cycles(nodes, {"X": link("Y"), "Y": link("X")})
        assert cycles == [["X", "Y", "X"]]

    def test_self_loop(self) -> None:
        assert detect_cycles([node("1", "loop", "Loop")], {"Loop": link("Loop")}) == [["Loop", "Loop"]]

    def test_dangling_targets_are_ignored(self) -> None:
        nodes = [node("1", "manual-trigger", "T")]
        assert detect_cycles(nodes, {"T": link("Missing"), "Missing": link("T")}) == []

    def test_long_chain_does_not_recurse(self) -> None:
        count = 5000
        nodes = [node(str(i), "http-request", f"N{i}") for i in range(count)]
        connections = {f"N{i}": link(f"N{i + 1}") for i in range(count - 1)}
        connections[f"N{count - 1}"] = link("N0")
        cycles = detect_cycles(nodes, connections)
        assert len(cycles) == 1
        assert len(cycles[0]) == count + 1


class TestMalformedConnections:
    def test_bad_containers_are_skipped_and_located(self) -> None:
        connections = {
            "A": 5,
            "B": {"main": 5, "error": "AB"},
            "C": {"main": [5, [{"node": "D"}]]},
        }
        assert list(iter_connections(connections)) == [("C", "main", 1, "D")]
        assert malformed_connections(connections) == [
            ("A", None, None),
            ("B", "main", None),
            ("B", "error", None),
            ("C", "main", 0),
        ]

    def test_graph_operations_tolerate_bad_containers(self) -> None:
        nodes = [node("1", "manual-trigger", "T"), node("2", "http-request", "A")]
        connections = {"T": {"main": [5, [ConnectionRef(node="A")]]}, "A": {"main": "T"}}
        assert find_unreachable_nodes(nodes, connections) == []
        assert detect_cycles(nodes, connections) == []

    def test_non_mapping_connections_are_empty(self) -> None:
        nodes = [node("1", "manual-trigger", "T")]
        assert list(iter_connections([["T"]])) == []  # type: ignore[arg-type]
        assert detect_cycles(nodes, [["T"]]) == []  # type: ignore[arg-type]
