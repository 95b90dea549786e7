"""Fingerprinted violation baseline with a bounded metrics history.

The baseline lets CI fail only on violations that were not there
before, and notice when tracked violations vanish without the baseline
being updated (the ratchet).
"""

from __future__ import annotations

import hashlib
import math
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import orjson
from pydantic import ValidationError

from archctl.logging import get_logger
from archctl.models.baseline import (
    BASELINE_VERSION,
    Baseline,
    BaselineViolation,
    ComparisonResult,
    Metrics,
)
from archctl.rules.config import resolve_output_dir
from archctl.utils import load_json, write_json_atomic

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from archctl.models.graph import GraphStats
    from archctl.models.violations import Violation

logger = get_logger("baseline")

BASELINE_FILENAME = "baseline.json"
DEFAULT_MAX_HISTORY_SIZE = 50


class BaselineError(Exception):
    """Raised when the baseline cannot be written or removed."""


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def fingerprint(violation: Violation) -> str:
    """Stable identity of a violation across runs.

    Built from rule id, file and exact position only, so rewording a
    message keeps the fingerprint while moving the import changes it.
    """
    key = f"{violation.rule_id}:{violation.file}:{violation.position_key()}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def to_baseline_violation(violation: Violation, first_seen: str) -> BaselineViolation:
    return BaselineViolation(
        rule_id=violation.rule_id,
        severity=violation.severity,
        message=violation.message,
        file=violation.file,
        line=violation.line,
        range=violation.range,
        suggestion=violation.suggestion,
        metadata=dict(violation.metadata),
        fingerprint=fingerprint(violation),
        first_seen=first_seen,
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_metrics(
    violations: Sequence[Violation],
    graph_stats: GraphStats | None = None,
    *,
    timestamp: str | None = None,
) -> Metrics:
    """Tally violations and, given graph stats, score coupling and health."""
    errors = sum(1 for v in violations if v.severity == "error")
    warnings = sum(1 for v in violations if v.severity == "warning")
    info = sum(1 for v in violations if v.severity == "info")
    total = len(violations)
    files_affected = len({v.file for v in violations})
    density = total / files_affected if files_affected else 0.0

    coupling: float | None = None
    health: int | None = None
    if graph_stats is not None:
        coupling = graph_stats.average_dependencies_per_file
        unmapped_ratio = (
            graph_stats.unmapped_files / graph_stats.file_count
            if graph_stats.file_count
            else 0.0
        )
        raw = (
            100
            - 5 * errors
            - 2 * warnings
            - 0.5 * info
            - max(0.0, coupling - 10) * 2
            - unmapped_ratio * 20
        )
        health = _round_half_up(min(100.0, max(0.0, raw)))

    return Metrics(
        total=total,
        errors=errors,
        warnings=warnings,
        info=info,
        files_affected=files_affected,
        violation_density=density,
        coupling_score=coupling,
        health_score=health,
        timestamp=timestamp or utc_now(),
    )


class BaselineStore:
    """Owns ``<output_dir>/baseline.json`` for one project.

    The file is read once on construction. Mutations stay in memory
    until ``save`` writes them atomically.
    """

    def __init__(
        self,
        project_root: Path,
        output_dir: str = ".archctl",
        *,
        clock: Callable[[], str] = utc_now,
    ) -> None:
        self.path = resolve_output_dir(project_root, output_dir) / BASELINE_FILENAME
        self._clock = clock
        self.baseline: Baseline | None = self._load()

    def _load(self) -> Baseline | None:
        if not self.path.is_file():
            return None
        try:
            data = load_json(self.path)
        except (OSError, orjson.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable baseline %s: %s", self.path, exc)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed baseline %s", self.path)
            return None
        version = data.get("version")
        if version != BASELINE_VERSION:
            logger.warning(
                "Baseline version mismatch (expected %s, got %s); it will be recreated",
                BASELINE_VERSION,
                version,
            )
            return None
        try:
            return Baseline.model_validate(data)
        except ValidationError as exc:
            logger.warning("Ignoring invalid baseline %s: %s", self.path, exc)
            return None

    def has_baseline(self) -> bool:
        return self.baseline is not None

    def create_baseline(
        self, violations: Sequence[Violation], graph_stats: GraphStats | None = None
    ) -> Baseline:
        now = self._clock()
        entries = [to_baseline_violation(v, now) for v in violations]
        self.baseline = Baseline(
            version=BASELINE_VERSION,
            violations=entries,
            metrics=calculate_metrics(entries, graph_stats, timestamp=now),
            created_at=now,
            updated_at=now,
        )
        return self.baseline

    def update_baseline(
        self,
        violations: Sequence[Violation],
        graph_stats: GraphStats | None = None,
        max_history_size: int = DEFAULT_MAX_HISTORY_SIZE,
    ) -> Baseline:
        """Replace tracked violations with ``violations``.

        Retained fingerprints keep their ``first_seen``; the previous
        metrics snapshot is appended to the history, which keeps only the
        newest ``max_history_size`` entries.
        """
        existing = self.baseline
        if existing is None:
            return self.create_baseline(violations, graph_stats)

        now = self._clock()
        first_seen = {entry.fingerprint: entry.first_seen for entry in existing.violations}
        entries = [
            to_baseline_violation(v, first_seen.get(fingerprint(v), now)) for v in violations
        ]

        history = [*(existing.metrics_history or []), existing.metrics]
        if max_history_size > 0:
            history = history[-max_history_size:]
        else:
            history = []

        self.baseline = Baseline(
            version=BASELINE_VERSION,
            violations=entries,
            metrics=calculate_metrics(entries, graph_stats, timestamp=now),
            metrics_history=history,
            created_at=existing.created_at,
            updated_at=now,
        )
        return self.baseline

    def compare_violations(self, violations: Sequence[Violation]) -> ComparisonResult:
        if self.baseline is None:
            return ComparisonResult(new=list(violations))

        stored = {entry.fingerprint for entry in self.baseline.violations}
        current: set[str] = set()
        new: list[Violation] = []
        unchanged: list[Violation] = []
        for violation in violations:
            key = fingerprint(violation)
            current.add(key)
            (unchanged if key in stored else new).append(violation)

        resolved = [
            entry for entry in self.baseline.violations if entry.fingerprint not in current
        ]
        return ComparisonResult(new=new, unchanged=unchanged, resolved=resolved)

    def save(self) -> None:
        """Atomically write the in-memory baseline, if any."""
        if self.baseline is None:
            return
        try:
            write_json_atomic(self.path, self.baseline)
        except OSError as exc:
            msg = f"Failed to save baseline to {self.path}: {exc}"
            raise BaselineError(msg) from exc

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            msg = f"Failed to remove baseline {self.path}: {exc}"
            raise BaselineError(msg) from exc
        self.baseline = None


__all__ = [
    "BASELINE_FILENAME",
    "DEFAULT_MAX_HISTORY_SIZE",
    "BaselineError",
    "BaselineStore",
    "calculate_metrics",
    "fingerprint",
    "to_baseline_violation",
]
