"""Rule interface and the shared, read-only evaluation context."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from archctl.rules.contexts import ContextResolver

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from archctl.models.graph import Capability, DependencyEdge, ProjectGraph
    from archctl.models.violations import Severity, Violation
    from archctl.rules.config import ArchctlConfig, ContextMapping, LayerConfig, LayerMapping


@dataclass(frozen=True)
class FileInfo:
    """Per-file facts rules need, derived once from the graph."""

    path: str
    language: str
    layer: str | None
    context: str | None
    dependency_count: int
    external_imports: tuple[str, ...] = ()
    capabilities: tuple[Capability, ...] = ()


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule may look at. Shared by all rules of a run."""

    files: Mapping[str, FileInfo]
    edges: tuple[DependencyEdge, ...]
    layers: tuple[LayerConfig, ...] = ()
    layer_mappings: tuple[LayerMapping, ...] = ()
    context_mappings: tuple[ContextMapping, ...] = ()
    project_root: Path | None = None
    contexts: ContextResolver = field(default_factory=ContextResolver)


def build_rule_context(
    graph: ProjectGraph,
    config: ArchctlConfig,
    project_root: Path | None = None,
) -> RuleContext:
    """Derive a ``RuleContext`` from a built graph.

    Dependency counts are outgoing edge occurrences, so two imports of
    the same file count twice.
    """
    out_degree = Counter(edge.from_file for edge in graph.edges)
    files = {
        path: FileInfo(
            path=path,
            language=source_file.language,
            layer=source_file.layer,
            context=source_file.context,
            dependency_count=out_degree.get(path, 0),
            external_imports=tuple(source_file.external_imports),
            capabilities=tuple(source_file.capabilities),
        )
        for path, source_file in graph.files.items()
    }
    return RuleContext(
        files=MappingProxyType(files),
        edges=tuple(graph.edges),
        layers=tuple(config.layers),
        layer_mappings=tuple(config.layer_mappings),
        context_mappings=tuple(config.context_mappings),
        project_root=project_root,
        contexts=ContextResolver(config.context_mappings, config.contexts),
    )


class BaseRule(ABC):
    """A single architectural check."""

    default_severity: Severity = "error"

    def __init__(self, rule_id: str, title: str = "", description: str = "") -> None:
        self.id = rule_id
        self.title = title
        self.description = description

    @abstractmethod
    def check(self, context: RuleContext) -> list[Violation]:
        """Return the violations of this rule in ``context``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


__all__ = ["BaseRule", "FileInfo", "RuleContext", "build_rule_context"]
