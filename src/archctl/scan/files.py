"""Source file discovery."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

from archctl.logging import get_logger
from archctl.utils import SOURCE_SUFFIXES, is_within_root, matches_any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

logger = get_logger("scan")

DEFAULT_MAX_DEPTH = 32

# Never descended into, whatever .gitignore says.
ALWAYS_SKIPPED_DIRS = frozenset({".git", "node_modules", "__pycache__"})


def _iter_gitignore_files(root: Path, max_depth: int) -> list[Path]:
    """Return sorted list of .gitignore files under root (including root)."""
    found = [
        directory / ".gitignore"
        for directory in _walk_dirs(root, max_depth)
        if (directory / ".gitignore").is_file()
    ]
    return sorted(found, key=lambda p: p.relative_to(root).as_posix())


def _build_gitignore_matcher(
    root: Path,
    *,
    nested_gitignore: bool,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Callable[[str], bool] | None:
    if not nested_gitignore:
        gitignore_path = root / ".gitignore"
        if gitignore_path.is_file():
            return cast("Callable[[str], bool]", parse_gitignore(gitignore_path))
        return None

    gitignore_paths = _iter_gitignore_files(root, max_depth)
    if not gitignore_paths:
        return None

    matchers = [parse_gitignore(path) for path in gitignore_paths]

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                continue
        return False

    return matches


def _walk_dirs(root: Path, max_depth: int) -> Iterable[Path]:
    """Yield real (non-symlink) directories under root, depth-bounded."""
    stack = [(root, 0)]
    while stack:
        directory, depth = stack.pop()
        yield directory
        if depth >= max_depth:
            logger.warning("Not descending below %s: depth limit %d", directory, max_depth)
            continue
        try:
            children = sorted(directory.iterdir(), reverse=True)
        except OSError as exc:
            logger.warning("Cannot list %s: %s", directory, exc)
            continue
        for child in children:
            if child.name in ALWAYS_SKIPPED_DIRS or child.is_symlink():
                continue
            if child.is_dir():
                stack.append((child, depth + 1))


def find_source_files(
    root: Path,
    *,
    output_dir: str = ".archctl",
    include_patterns: list[str] | None = None,
    exclude_patterns: list[str] | None = None,
    nested_gitignore: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[str]:
    """Find supported source files under ``root``, respecting .gitignore.

    Args:
        root: Project root
        output_dir: Directory name to skip (default ".archctl")
        include_patterns: Optional glob patterns; if provided, files must
            match at least one pattern to be included
        exclude_patterns: Optional glob patterns; files matching any
            pattern are excluded
        nested_gitignore: Honor .gitignore files below the root too
        max_depth: Maximum directory depth below ``root``

    Returns:
        Project-relative POSIX paths, sorted lexicographically.
    """
    root = root.resolve()
    gitignore_matches = _build_gitignore_matcher(
        root, nested_gitignore=nested_gitignore, max_depth=max_depth
    )
    output_prefix = output_dir.strip("/")

    matched: list[str] = []
    for directory in _walk_dirs(root, max_depth):
        try:
            entries = list(directory.iterdir())
        except OSError:
            continue
        for path in entries:
            if path.suffix.lower() not in SOURCE_SUFFIXES:
                continue
            if path.is_symlink() or not path.is_file():
                continue
            if not is_within_root(path, root):
                continue
            rel_path = path.relative_to(root).as_posix()
            if output_prefix and (
                rel_path == output_prefix or rel_path.startswith(output_prefix + "/")
            ):
                continue
            if gitignore_matches is not None and gitignore_matches(str(path)):
                continue
            if include_patterns and not matches_any(rel_path, include_patterns):
                continue
            if matches_any(rel_path, exclude_patterns):
                continue
            matched.append(rel_path)

    matched.sort()
    return matched


__all__ = ["DEFAULT_MAX_DEPTH", "find_source_files"]
