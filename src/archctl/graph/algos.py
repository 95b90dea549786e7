"""Graph algorithms over file-level dependency edges."""

from __future__ import annotations

from collections import defaultdict, deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from archctl.models.graph import DependencyEdge


def build_adjacency(
    edges: Iterable[DependencyEdge], nodes: Iterable[str] = ()
) -> dict[str, set[str]]:
    """Collapse parallel edges into an adjacency map.

    Every node in ``nodes`` gets an entry, even without outgoing edges.
    """
    graph: dict[str, set[str]] = {node: set() for node in nodes}
    for edge in edges:
        graph.setdefault(edge.from_file, set()).add(edge.to_file)
        graph.setdefault(edge.to_file, set())
    return graph


class _TarjanState:
    """Mutable state container for Tarjan's SCC algorithm."""

    def __init__(self) -> None:
        self.index = 0
        self.indices: dict[str, int] = {}
        self.low_link: dict[str, int] = {}
        self.on_stack: set[str] = set()
        self.stack: list[str] = []
        self.sccs: list[list[str]] = []

    def visit(self, node: str) -> None:
        self.indices[node] = self.index
        self.low_link[node] = self.index
        self.index += 1
        self.stack.append(node)
        self.on_stack.add(node)


def _extract_scc(state: _TarjanState, root: str) -> list[str]:
    """Extract a strongly connected component from the stack."""
    scc: list[str] = []
    while state.stack:
        w = state.stack.pop()
        state.on_stack.remove(w)
        scc.append(w)
        if w == root:
            break
    if root not in scc:
        msg = (
            f"Tarjan algorithm invariant violated: root node {root!r} "
            "not found in stack during SCC extraction."
        )
        raise RuntimeError(msg)
    return scc


def _strongconnect(
    start: str,
    graph: dict[str, set[str]],
    state: _TarjanState,
    *,
    include_self_loops: bool,
) -> None:
    """Process ``start`` with an explicit work stack instead of recursion.

    Each frame holds a node and an iterator over its sorted successors.
    """
    state.visit(start)
    work = [(start, iter(sorted(graph.get(start, ()))))]

    while work:
        node, successors = work[-1]
        advanced = False
        for neighbor in successors:
            if neighbor not in state.indices:
                state.visit(neighbor)
                work.append((neighbor, iter(sorted(graph.get(neighbor, ())))))
                advanced = True
                break
            if neighbor in state.on_stack:
                state.low_link[node] = min(state.low_link[node], state.indices[neighbor])
        if advanced:
            continue

        work.pop()
        if work:
            parent = work[-1][0]
            state.low_link[parent] = min(state.low_link[parent], state.low_link[node])

        if state.low_link[node] == state.indices[node]:
            scc = _extract_scc(state, node)
            if len(scc) > 1 or (include_self_loops and node in graph.get(node, ())):
                state.sccs.append(sorted(scc))


def find_cycles(
    graph: dict[str, set[str]], *, include_self_loops: bool = False
) -> list[list[str]]:
    """Find cycles in a directed graph using Tarjan's algorithm.

    Args:
        graph: Adjacency map from node to successors
        include_self_loops: Also report single nodes that import themselves

    Returns:
        Strongly connected components with more than one member, each
        sorted, ordered by their first member
    """
    state = _TarjanState()

    for node in sorted(graph):
        if node not in state.indices:
            _strongconnect(node, graph, state, include_self_loops=include_self_loops)

    return sorted(state.sccs, key=lambda scc: scc[0])


def has_dependency_path(graph: dict[str, set[str]], source: str, target: str) -> bool:
    """Breadth-first reachability check from ``source`` to ``target``."""
    if source == target:
        return True
    seen = {source}
    queue = deque([source])
    while queue:
        node = queue.popleft()
        for neighbor in graph.get(node, ()):
            if neighbor == target:
                return True
            if neighbor not in seen:
                seen.add(neighbor)
                queue.append(neighbor)
    return False


def compute_fan_stats(edges: Iterable[DependencyEdge]) -> tuple[dict[str, int], dict[str, int]]:
    """Count outgoing and incoming edge occurrences per file."""
    fan_out: dict[str, int] = defaultdict(int)
    fan_in: dict[str, int] = defaultdict(int)
    for edge in edges:
        fan_out[edge.from_file] += 1
        fan_in[edge.to_file] += 1
    return dict(fan_out), dict(fan_in)


__all__ = [
    "build_adjacency",
    "compute_fan_stats",
    "find_cycles",
    "has_dependency_path",
]
