"""Project graph construction, caching and algorithms."""

from archctl.graph.algos import (
    build_adjacency,
    compute_fan_stats,
    find_cycles,
    has_dependency_path,
)
from archctl.graph.builder import (
    build_project_graph,
    get_file_dependencies,
    get_file_dependents,
    get_graph_stats,
)

__all__ = [
    "build_adjacency",
    "build_project_graph",
    "compute_fan_stats",
    "find_cycles",
    "get_file_dependencies",
    "get_file_dependents",
    "get_graph_stats",
    "has_dependency_path",
]
