"""Project dependency graph models.

A ``ProjectGraph`` is rebuilt on every run: files keyed by their
project-relative POSIX path, plus one ``DependencyEdge`` per resolved
import occurrence. Edges whose target is not a scanned file are never
materialized.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from archctl.models.base import ArchctlModel
from archctl.models.violations import PositionRange  # noqa: TC001

DependencyKind = Literal["import", "include", "other"]

ImportStyle = Literal[
    "import",
    "export",
    "dynamic-import",
    "require",
    "from-import",
    "static-import",
]


class Capability(ArchctlModel):
    """A detected code action (network, filesystem, database, ...)."""

    type: str
    action: str
    confidence: float = Field(ge=0.0, le=1.0)
    line: int | None = None


class ImportRef(ArchctlModel):
    """A raw import specifier as written in source."""

    specifier: str
    style: ImportStyle = "import"
    range: PositionRange | None = None
    level: int = 0


class ExtractionResult(ArchctlModel):
    """Per-file extraction output; the unit stored in the scan cache."""

    language: str
    imports: list[ImportRef] = Field(default_factory=list)
    capabilities: list[Capability] = Field(default_factory=list)


class SourceFile(ArchctlModel):
    """A node in the project graph representing a source file."""

    path: str
    language: str
    layer: str | None = None
    context: str | None = None
    raw_imports: list[str] = Field(default_factory=list)
    external_imports: list[str] = Field(default_factory=list)
    capabilities: list[Capability] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.path


class DependencyEdge(ArchctlModel):
    """A dependency from one scanned file to another."""

    from_file: str = Field(alias="from")
    to_file: str = Field(alias="to")
    kind: DependencyKind = "import"
    confidence: float = Field(ge=0.0, le=1.0)
    source: str
    range: PositionRange | None = None


class ProjectGraph(ArchctlModel):
    """Complete project dependency graph."""

    files: dict[str, SourceFile] = Field(default_factory=dict)
    edges: list[DependencyEdge] = Field(default_factory=list)


class GraphStats(ArchctlModel):
    """Aggregate statistics about a ``ProjectGraph``."""

    file_count: int
    edge_count: int
    unmapped_files: int
    average_dependencies_per_file: float
    language_counts: dict[str, int] = Field(default_factory=dict)
    layer_counts: dict[str, int] = Field(default_factory=dict)


__all__ = [
    "Capability",
    "DependencyEdge",
    "DependencyKind",
    "ExtractionResult",
    "GraphStats",
    "ImportRef",
    "ImportStyle",
    "ProjectGraph",
    "SourceFile",
]
