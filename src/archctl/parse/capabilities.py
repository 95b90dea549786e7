"""Capability detection from imports and call sites."""

from __future__ import annotations

from typing import TYPE_CHECKING

from archctl.models.graph import Capability

if TYPE_CHECKING:
    from collections.abc import Sequence

    from archctl.rules.config import CapabilityPattern

IMPORT_CONFIDENCE = 0.95
CALL_CONFIDENCE = 0.9
LINE_CALL_CONFIDENCE = 0.85


class CapabilityCollector:
    """Accumulate detected capabilities, keeping the first hit per (type, action)."""

    def __init__(self, patterns: Sequence[CapabilityPattern] | None) -> None:
        self._patterns = list(patterns or [])
        self._found: dict[tuple[str, str], Capability] = {}

    @property
    def enabled(self) -> bool:
        return bool(self._patterns)

    def _record(
        self, cap_type: str, action: str, confidence: float, line: int | None
    ) -> None:
        key = (cap_type, action)
        if key not in self._found:
            self._found[key] = Capability(
                type=cap_type, action=action, confidence=confidence, line=line
            )

    def add_import(self, module: str, line: int | None, *, separator: str) -> None:
        """Match an imported module against each pattern's ``imports``."""
        for pattern in self._patterns:
            for pattern_import in pattern.imports:
                if module == pattern_import or module.startswith(
                    pattern_import + separator
                ):
                    self._record(
                        pattern.type,
                        f"import:{pattern_import}",
                        IMPORT_CONFIDENCE,
                        line,
                    )

    def add_call(self, callee: str, line: int | None) -> None:
        """Match a call expression's callee text (substring match)."""
        for pattern in self._patterns:
            for call in pattern.calls:
                if call in callee:
                    self._record(pattern.type, call, CALL_CONFIDENCE, line)

    def add_member_access(self, text: str, line: int | None) -> None:
        """Match a property access such as ``process.env.HOME``."""
        for pattern in self._patterns:
            for call in pattern.calls:
                if text == call or text.startswith(call + "."):
                    self._record(pattern.type, call, LINE_CALL_CONFIDENCE, line)

    def scan_lines(self, contents: str) -> None:
        """Line-oriented call detection used for Python and Java sources."""
        if not self._patterns:
            return
        for index, raw_line in enumerate(contents.splitlines(), start=1):
            line = raw_line.strip()
            if not line:
                continue
            for pattern in self._patterns:
                for call in pattern.calls:
                    if call in line:
                        self._record(pattern.type, call, LINE_CALL_CONFIDENCE, index)

    def results(self) -> list[Capability]:
        return list(self._found.values())


__all__ = ["CapabilityCollector"]
