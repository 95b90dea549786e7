"""Loading of ``compilerOptions.baseUrl`` / ``paths`` from tsconfig.json."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import orjson

from archctl.logging import get_logger
from archctl.utils import normalize_relative_path

if TYPE_CHECKING:
    from pathlib import Path

logger = get_logger("parse.tsconfig")

TSCONFIG_FILENAME = "tsconfig.json"

_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


@dataclass(frozen=True)
class TsConfigPaths:
    """Alias configuration with ``base_url`` relative to the project root."""

    base_url: str | None = None
    paths: dict[str, tuple[str, ...]] = field(default_factory=dict)


def strip_json_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments outside of string literals."""
    out: list[str] = []
    i = 0
    length = len(text)
    in_string = False
    while i < length:
        char = text[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue
        if char == '"':
            in_string = True
            out.append(char)
            i += 1
        elif text.startswith("//", i):
            newline = text.find("\n", i)
            i = length if newline == -1 else newline
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = length if end == -1 else end + 2
        else:
            out.append(char)
            i += 1
    return "".join(out)


def parse_tsconfig_text(text: str) -> dict:
    cleaned = _TRAILING_COMMA_RE.sub(r"\1", strip_json_comments(text))
    data = orjson.loads(cleaned)
    if not isinstance(data, dict):
        msg = "tsconfig root must be an object"
        raise ValueError(msg)
    return data


def load_tsconfig(root: Path, filename: str = TSCONFIG_FILENAME) -> TsConfigPaths | None:
    """Read alias settings from ``root/filename``.

    Returns None when the file is absent or unusable; the caller then
    falls back to relative resolution only.
    """
    config_path = root / filename
    if not config_path.is_file():
        return None

    try:
        data = parse_tsconfig_text(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        logger.warning("Could not read %s, ignoring path aliases: %s", config_path, exc)
        return None

    options = data.get("compilerOptions")
    if not isinstance(options, dict):
        return TsConfigPaths()

    base_url_raw = options.get("baseUrl")
    base_url = (
        normalize_relative_path(base_url_raw) if isinstance(base_url_raw, str) else None
    )

    paths: dict[str, tuple[str, ...]] = {}
    raw_paths = options.get("paths")
    if isinstance(raw_paths, dict):
        for alias, targets in raw_paths.items():
            if isinstance(targets, list):
                valid = tuple(t for t in targets if isinstance(t, str))
                if valid:
                    paths[alias] = valid

    return TsConfigPaths(base_url=base_url, paths=paths)


__all__ = [
    "TSCONFIG_FILENAME",
    "TsConfigPaths",
    "load_tsconfig",
    "parse_tsconfig_text",
    "strip_json_comments",
]
