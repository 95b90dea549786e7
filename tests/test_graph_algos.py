from __future__ import annotations

from archctl.graph.algos import (
    build_adjacency,
    compute_fan_stats,
    find_cycles,
    has_dependency_path,
)
from archctl.models.graph import DependencyEdge


def _edge(source: str, target: str) -> DependencyEdge:
    return DependencyEdge(from_file=source, to_file=target, confidence=1.0, source="test")


def test_find_cycles_three_node_cycle() -> None:
    graph = {"a": {"b"}, "b": {"c"}, "c": {"a"}}

    assert find_cycles(graph) == [["a", "b", "c"]]


def test_find_cycles_dag_has_none() -> None:
    graph = {"a": {"b", "c"}, "b": {"c"}, "c": set()}

    assert find_cycles(graph) == []


def test_find_cycles_multiple_components() -> None:
    graph = {
        "a": {"b"},
        "b": {"a", "c"},
        "c": {"d"},
        "d": {"e"},
        "e": {"c"},
        "f": {"a"},
    }

    assert find_cycles(graph) == [["a", "b"], ["c", "d", "e"]]


def test_self_loop_only_reported_on_request() -> None:
    graph = {"a": {"a"}}

    assert find_cycles(graph) == []
    assert find_cycles(graph, include_self_loops=True) == [["a"]]


def test_find_cycles_handles_long_chains_without_recursion() -> None:
    size = 5000
    names = [f"n{i:05d}" for i in range(size)]
    graph = {name: {names[(i + 1) % size]} for i, name in enumerate(names)}

    cycles = find_cycles(graph)

    assert len(cycles) == 1
    assert len(cycles[0]) == size


def test_build_adjacency_collapses_parallel_edges() -> None:
    edges = [_edge("a", "b"), _edge("a", "b")]

    assert build_adjacency(edges, ["a", "b", "c"]) == {"a": {"b"}, "b": set(), "c": set()}


def test_has_dependency_path() -> None:
    graph = {"a": {"b"}, "b": {"c"}, "c": set(), "d": {"a"}}

    assert has_dependency_path(graph, "a", "c")
    assert has_dependency_path(graph, "d", "c")
    assert not has_dependency_path(graph, "c", "a")


def test_compute_fan_stats_counts_occurrences() -> None:
    fan_out, fan_in = compute_fan_stats([_edge("a", "b"), _edge("a", "b"), _edge("c", "b")])

    assert fan_out == {"a": 2, "c": 1}
    assert fan_in == {"b": 3}
