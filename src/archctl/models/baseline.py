"""Baseline models for architecture debt tracking.

The baseline is the only persisted entity. It is written to
``.archctl/baseline.json`` with camelCase keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import Field

from archctl.models.base import ArchctlModel
from archctl.models.violations import Violation

BASELINE_VERSION = "1.0.0"


class BaselineViolation(Violation):
    """A violation stored in the baseline, identified by its fingerprint."""

    fingerprint: str
    first_seen: str


class Metrics(ArchctlModel):
    """Metrics snapshot stored with each baseline revision."""

    total: int = 0
    errors: int = 0
    warnings: int = 0
    info: int = 0
    files_affected: int = 0
    violation_density: float = 0.0
    coupling_score: float | None = None
    health_score: int | None = None
    timestamp: str | None = None


class Baseline(ArchctlModel):
    """Complete baseline structure."""

    version: str = BASELINE_VERSION
    violations: list[BaselineViolation] = Field(default_factory=list)
    metrics: Metrics = Field(default_factory=Metrics)
    metrics_history: list[Metrics] | None = None
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class ComparisonResult:
    """Current violations classified against the stored baseline."""

    new: list[Violation] = field(default_factory=list)
    unchanged: list[Violation] = field(default_factory=list)
    resolved: list[BaselineViolation] = field(default_factory=list)

    @property
    def has_new_errors(self) -> bool:
        return any(v.severity == "error" for v in self.new)

    @property
    def ratchet_breached(self) -> bool:
        """True when tracked violations disappeared without a baseline update."""
        return bool(self.resolved)


__all__ = [
    "BASELINE_VERSION",
    "Baseline",
    "BaselineViolation",
    "ComparisonResult",
    "Metrics",
]
