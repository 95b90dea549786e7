from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING

import orjson
import pytest

from archctl.baseline import BaselineStore, calculate_metrics, fingerprint
from archctl.models.baseline import BASELINE_VERSION
from archctl.models.graph import GraphStats
from archctl.models.violations import PositionRange, Violation

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def _violation(
    rule_id: str = "no-domain-infra",
    file: str = "src/domain/a.ts",
    line: int = 3,
    severity: str = "error",
    message: str = "File in domain layer cannot import from infra layer",
) -> Violation:
    return Violation(
        rule_id=rule_id,
        severity=severity,
        message=message,
        file=file,
        range=PositionRange(start_line=line, start_col=0, end_line=line, end_col=30),
    )


def _clock() -> Callable[[], str]:
    counter = itertools.count()
    return lambda: f"t{next(counter):03d}"


def _stats(file_count: int = 10, unmapped: int = 5, average: float = 12.0) -> GraphStats:
    return GraphStats(
        file_count=file_count,
        edge_count=int(file_count * average),
        unmapped_files=unmapped,
        average_dependencies_per_file=average,
    )


def test_fingerprint_ignores_message_but_not_position() -> None:
    original = _violation()

    assert fingerprint(original) == fingerprint(_violation(message="reworded"))
    assert fingerprint(original) != fingerprint(_violation(line=4))
    assert fingerprint(original) != fingerprint(_violation(rule_id="other"))


def test_fingerprint_falls_back_to_line_then_zero() -> None:
    by_line = Violation(rule_id="r", severity="warning", message="m", file="a.ts", line=12)
    bare = Violation(rule_id="r", severity="warning", message="m", file="a.ts")

    assert by_line.position_key() == "12"
    assert bare.position_key() == "0"
    assert fingerprint(by_line) != fingerprint(bare)


def test_compare_without_baseline_reports_everything_new(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path)
    violations = [_violation(), _violation(line=9)]

    result = store.compare_violations(violations)

    assert not store.has_baseline()
    assert result.new == violations
    assert result.unchanged == []
    assert result.resolved == []
    assert result.has_new_errors


def test_ratchet_round_trip(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path, clock=_clock())
    v1 = _violation()
    v2 = _violation(file="src/domain/b.ts")

    store.update_baseline([v1])
    store.update_baseline([v1, v2])
    result = store.compare_violations([v1])

    assert result.new == []
    assert result.unchanged == [v1]
    assert [entry.fingerprint for entry in result.resolved] == [fingerprint(v2)]
    assert result.ratchet_breached
    assert not result.has_new_errors


def test_update_preserves_first_seen_of_retained_violations(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path, clock=_clock())
    v1 = _violation()
    v2 = _violation(file="src/domain/b.ts")

    created = store.update_baseline([v1])
    updated = store.update_baseline([v1.model_copy(update={"message": "new text"}), v2])

    assert created.created_at == "t000"
    first_seen = {entry.file: entry.first_seen for entry in updated.violations}
    assert first_seen == {"src/domain/a.ts": "t000", "src/domain/b.ts": "t001"}
    assert updated.violations[0].message == "new text"
    assert updated.created_at == "t000"
    assert updated.updated_at == "t001"


def test_metrics_history_is_bounded(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path, clock=_clock())

    for _ in range(60):
        baseline = store.update_baseline([_violation()])

    history = baseline.metrics_history
    assert history is not None
    assert len(history) == 50
    assert history[0].timestamp == "t009"
    assert history[-1].timestamp == "t058"
    assert baseline.metrics.timestamp == "t059"


def test_save_writes_camel_case_and_reloads(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path, clock=_clock())
    store.update_baseline([_violation()], _stats())
    store.update_baseline([_violation()], _stats())
    store.save()

    path = tmp_path / ".archctl" / "baseline.json"
    data = orjson.loads(path.read_bytes())
    assert data["version"] == BASELINE_VERSION
    assert data["createdAt"] == "t000"
    assert data["updatedAt"] == "t001"
    assert len(data["metricsHistory"]) == 1
    entry = data["violations"][0]
    assert entry["ruleId"] == "no-domain-infra"
    assert entry["firstSeen"] == "t000"
    assert entry["range"]["startLine"] == 3
    assert not list(path.parent.glob("*.tmp"))

    reloaded = BaselineStore(tmp_path)
    assert reloaded.baseline == store.baseline


def test_custom_output_dir(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path, "build/arch", clock=_clock())
    store.update_baseline([_violation()])
    store.save()

    assert (tmp_path / "build" / "arch" / "baseline.json").is_file()


@pytest.mark.parametrize(
    "content",
    [
        b"{not json",
        b"[]",
        orjson.dumps({"version": "0.9.0", "violations": []}),
        orjson.dumps({"version": BASELINE_VERSION, "violations": "nope"}),
    ],
)
def test_unusable_baseline_file_is_treated_as_absent(
    tmp_path: Path, content: bytes, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / ".archctl" / "baseline.json"
    path.parent.mkdir()
    path.write_bytes(content)

    with caplog.at_level(logging.WARNING):
        store = BaselineStore(tmp_path)

    assert not store.has_baseline()
    assert caplog.records
    assert store.compare_violations([_violation()]).new == [_violation()]


def test_clear_removes_baseline(tmp_path: Path) -> None:
    store = BaselineStore(tmp_path, clock=_clock())
    store.update_baseline([_violation()])
    store.save()

    store.clear()

    assert not store.has_baseline()
    assert not (tmp_path / ".archctl" / "baseline.json").exists()
    store.clear()


def test_health_score_formula() -> None:
    violations = [
        _violation(line=1),
        _violation(line=2),
        _violation(line=3, severity="warning"),
        _violation(line=4, severity="info"),
        _violation(file="src/domain/b.ts", severity="info"),
    ]

    metrics = calculate_metrics(violations, _stats(), timestamp="t")

    assert (metrics.errors, metrics.warnings, metrics.info) == (2, 1, 2)
    assert metrics.total == 5
    assert metrics.files_affected == 2
    assert metrics.violation_density == 2.5
    assert metrics.coupling_score == 12.0
    assert metrics.health_score == 73


def test_health_score_is_clamped_at_zero() -> None:
    violations = [_violation(line=i) for i in range(1, 40)]

    metrics = calculate_metrics(violations, _stats(unmapped=0, average=1.0), timestamp="t")

    assert metrics.health_score == 0


def test_metrics_without_violations_or_stats() -> None:
    metrics = calculate_metrics([], timestamp="t")

    assert metrics.total == 0
    assert metrics.violation_density == 0.0
    assert metrics.health_score is None
    assert metrics.coupling_score is None

    empty_project = calculate_metrics([], _stats(file_count=0, unmapped=0, average=0.0))
    assert empty_project.health_score == 100
