"""Model namespace for archctl graph, violation and baseline schemas."""

from archctl.models.baseline import (
    BASELINE_VERSION,
    Baseline,
    BaselineViolation,
    ComparisonResult,
    Metrics,
)
from archctl.models.graph import (
    Capability,
    DependencyEdge,
    ExtractionResult,
    GraphStats,
    ImportRef,
    ProjectGraph,
    SourceFile,
)
from archctl.models.violations import (
    FILE_START_RANGE,
    PositionRange,
    Severity,
    Violation,
)

__all__ = [
    "BASELINE_VERSION",
    "FILE_START_RANGE",
    "Baseline",
    "BaselineViolation",
    "Capability",
    "ComparisonResult",
    "DependencyEdge",
    "ExtractionResult",
    "GraphStats",
    "ImportRef",
    "Metrics",
    "PositionRange",
    "ProjectGraph",
    "Severity",
    "SourceFile",
    "Violation",
]
