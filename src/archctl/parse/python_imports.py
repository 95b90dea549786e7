"""Line-oriented import extraction for Python sources.

Matching is heuristic: ``import a.b [as c], d`` and ``from .a import b``
statements are recognized one line at a time. Lines inside triple-quoted
strings are skipped. Parenthesized continuation lines are not followed.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from archctl.models.graph import ExtractionResult, ImportRef
from archctl.models.violations import PositionRange
from archctl.parse.capabilities import CapabilityCollector

if TYPE_CHECKING:
    from collections.abc import Sequence

    from archctl.rules.config import CapabilityPattern

_IMPORT_RE = re.compile(r"^\s*import\s+([^#;]+)")
_FROM_RE = re.compile(r"^\s*from\s+(\.*)([\w.]*)\s+import\s+([^#;]*)")
_MODULE_RE = re.compile(r"^[A-Za-z_][\w.]*$")
_NAME_RE = re.compile(r"^[A-Za-z_]\w*$")


def _line_range(line_no: int, line: str, token: str) -> PositionRange:
    col = max(line.find(token), 0)
    return PositionRange(
        start_line=line_no,
        start_col=col,
        end_line=line_no,
        end_col=col + len(token),
    )


def _open_string_after(line: str, delimiter: str | None) -> str | None:
    """Return the triple-quote delimiter still open at the end of ``line``.

    ``delimiter`` is the one open at the start of the line. A block only
    closes on the delimiter that opened it.
    """
    pos = 0
    while True:
        if delimiter is not None:
            end = line.find(delimiter, pos)
            if end == -1:
                return delimiter
            delimiter = None
            pos = end + 3
            continue
        found = [(line.find(quote, pos), quote) for quote in ('"""', "'''")]
        starts = [item for item in found if item[0] != -1]
        if not starts:
            return None
        start, delimiter = min(starts)
        pos = start + 3


def _parse_import_line(line_no: int, line: str, names: str) -> list[ImportRef]:
    refs: list[ImportRef] = []
    for part in names.split(","):
        tokens = part.split()
        if not tokens or not _MODULE_RE.match(tokens[0]):
            continue
        module = tokens[0]
        refs.append(
            ImportRef(
                specifier=module,
                style="import",
                range=_line_range(line_no, line, module),
            )
        )
    return refs


def _parse_from_line(
    line_no: int, line: str, dots: str, module: str, names: str
) -> list[ImportRef]:
    level = len(dots)
    if module:
        specifier = f"{dots}{module}"
        return [
            ImportRef(
                specifier=specifier,
                style="from-import",
                level=level,
                range=_line_range(line_no, line, specifier),
            )
        ]
    if not level:
        return []

    # ``from . import a, b``: each imported name may itself be a module.
    refs: list[ImportRef] = []
    for part in names.strip().strip("()").split(","):
        tokens = part.split()
        if not tokens or not _NAME_RE.match(tokens[0]):
            continue
        refs.append(
            ImportRef(
                specifier=f"{dots}{tokens[0]}",
                style="from-import",
                level=level,
                range=_line_range(line_no, line, tokens[0]),
            )
        )
    return refs


def extract_python_imports(contents: str) -> list[ImportRef]:
    """Extract import statements from Python source in source order."""
    refs: list[ImportRef] = []
    open_string: str | None = None

    for line_no, line in enumerate(contents.splitlines(), start=1):
        if open_string is not None:
            open_string = _open_string_after(line, open_string)
            continue

        stripped = line.lstrip()
        if stripped.startswith("#"):
            continue

        from_match = _FROM_RE.match(line)
        if from_match:
            refs.extend(_parse_from_line(line_no, line, *from_match.groups()))
        else:
            import_match = _IMPORT_RE.match(line)
            if import_match:
                refs.extend(_parse_import_line(line_no, line, import_match.group(1)))

        open_string = _open_string_after(line, None)

    return refs


def extract_python(
    contents: str,
    capability_patterns: Sequence[CapabilityPattern] | None = None,
) -> ExtractionResult:
    imports = extract_python_imports(contents)

    collector = CapabilityCollector(capability_patterns)
    if collector.enabled:
        for ref in imports:
            if ref.level == 0:
                line = ref.range.start_line if ref.range else None
                collector.add_import(ref.specifier, line, separator=".")
        collector.scan_lines(contents)

    return ExtractionResult(
        language="python",
        imports=imports,
        capabilities=collector.results(),
    )


__all__ = ["extract_python", "extract_python_imports"]
