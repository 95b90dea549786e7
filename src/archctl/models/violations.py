"""Violation models produced by rule evaluation."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from archctl.models.base import ArchctlModel

Severity = Literal["error", "warning", "info"]


class PositionRange(ArchctlModel):
    """Source range; lines are 1-indexed, columns 0-indexed."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def key(self) -> str:
        return f"{self.start_line}:{self.start_col}:{self.end_line}:{self.end_col}"


FILE_START_RANGE = PositionRange(start_line=1, start_col=0, end_line=1, end_col=0)


class Violation(ArchctlModel):
    """A single rule violation."""

    rule_id: str
    severity: Severity
    message: str
    file: str
    line: int | None = None
    range: PositionRange | None = None
    suggestion: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def position_key(self) -> str:
        """Position used for fingerprinting: range, else line, else ``0``."""
        if self.range is not None:
            return self.range.key()
        if self.line is not None:
            return str(self.line)
        return "0"


__all__ = ["FILE_START_RANGE", "PositionRange", "Severity", "Violation"]
