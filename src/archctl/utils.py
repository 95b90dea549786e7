"""Shared utilities for archctl."""

from __future__ import annotations

import os
import posixpath
import tempfile
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import Any, Literal

import orjson

LanguageId = Literal["typescript", "javascript", "python", "java", "other"]

LANGUAGE_BY_SUFFIX: dict[str, LanguageId] = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".py": "python",
    ".java": "java",
}

SOURCE_SUFFIXES = frozenset(LANGUAGE_BY_SUFFIX)


def to_forward_slashes(path: str | Path) -> str:
    """Normalize a path to forward slashes without resolving it."""
    path_str = path.as_posix() if isinstance(path, Path) else str(path)
    return path_str.replace("\\", "/")


def normalize_relative_path(path: str | Path) -> str:
    """Return a project-relative POSIX path with no leading ``./``.

    Examples:
        >>> normalize_relative_path("./src/infra/../domain/user.ts")
        'src/domain/user.ts'
    """
    normalized = posixpath.normpath(to_forward_slashes(path))
    if normalized == ".":
        return ""
    return normalized.removeprefix("./")


def infer_language(path: str | Path) -> LanguageId:
    """Infer the language of a file from its extension."""
    suffix = PurePosixPath(to_forward_slashes(path)).suffix.lower()
    return LANGUAGE_BY_SUFFIX.get(suffix, "other")


def glob_match(path: str, pattern: str) -> bool:
    """Match a POSIX path against a glob pattern, one segment at a time.

    ``*`` and ``?`` never cross a ``/``; a ``**`` segment matches zero or
    more whole segments. Dotfiles are matched like any other name.

    Examples:
        >>> glob_match("src/domain/user.ts", "src/domain/**")
        True
        >>> glob_match("src/a.ts", "src/**/*.ts")
        True
        >>> glob_match("src/domain/a.ts", "src/*.ts")
        False
        >>> glob_match("lib/a.ts", "src/**")
        False
    """
    path_parts = _segments(path)
    pattern_parts = _segments(pattern)

    def advance(states: set[int]) -> set[int]:
        # Let each ``**`` also match zero segments.
        pending = list(states)
        while pending:
            index = pending.pop()
            if index < len(pattern_parts) and pattern_parts[index] == "**":
                if index + 1 not in states:
                    states.add(index + 1)
                    pending.append(index + 1)
        return states

    states = advance({0})
    for part in path_parts:
        following: set[int] = set()
        for index in states:
            if index >= len(pattern_parts):
                continue
            segment = pattern_parts[index]
            if segment == "**":
                following.add(index)
            elif fnmatchcase(part, segment):
                following.add(index + 1)
        if not following:
            return False
        states = advance(following)
    return len(pattern_parts) in states


def _segments(path: str) -> list[str]:
    return [part for part in to_forward_slashes(path).split("/") if part and part != "."]


def matches_any(path: str, patterns: list[str] | tuple[str, ...] | None) -> bool:
    """Return True when ``path`` matches at least one glob pattern."""
    if not patterns:
        return False
    return any(glob_match(path, pattern) for pattern in patterns)


def path_to_module(file_path: str | Path) -> str:
    """Convert a file path to a Python module name.

    Args:
        file_path: Relative file path (e.g., "src/archctl/cli.py" or Path object)

    Returns:
        Module name (e.g., "archctl.cli")

    Examples:
        >>> path_to_module("src/archctl/cli.py")
        'archctl.cli'
        >>> path_to_module("src/archctl/__init__.py")
        'archctl'
        >>> path_to_module(Path("foo/bar.py"))
        'foo.bar'
    """
    path_str = to_forward_slashes(file_path)
    normalized_parts = [part for part in path_str.split("/") if part]

    # Canonical rule: Python source under src/<package>/... maps to
    # <package>.<submodules>.
    module_parts = (
        normalized_parts[1:]
        if len(normalized_parts) >= 2 and normalized_parts[0] == "src"
        else normalized_parts
    )

    if module_parts and module_parts[-1].endswith(".py"):
        module_parts[-1] = module_parts[-1][:-3]

    if module_parts and module_parts[-1] == "__init__":
        module_parts = module_parts[:-1]

    return ".".join(module_parts)


def _to_dict(obj: object) -> object:
    """Convert object to a JSON-ready structure."""
    if hasattr(obj, "to_json_dict"):
        return obj.to_json_dict()
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True)
    return obj


def dumps_json(obj: object) -> bytes:
    opts = orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2
    return orjson.dumps(_to_dict(obj), option=opts)


def write_json_atomic(path: Path, obj: object) -> None:
    """Write JSON to ``path`` via a temp file in the same directory.

    Readers never observe a partially written file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(dumps_json(obj))
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def load_json(path: Path) -> Any:
    return orjson.loads(path.read_bytes())


def is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        root_resolved = root.resolve()
        path_resolved = path.resolve()
    except OSError:
        return False

    try:
        path_resolved.relative_to(root_resolved)
    except ValueError:
        return False

    return True


__all__ = [
    "LANGUAGE_BY_SUFFIX",
    "SOURCE_SUFFIXES",
    "LanguageId",
    "dumps_json",
    "glob_match",
    "infer_language",
    "is_within_root",
    "load_json",
    "matches_any",
    "normalize_relative_path",
    "path_to_module",
    "to_forward_slashes",
    "write_json_atomic",
]
