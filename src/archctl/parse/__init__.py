"""Language extractors and import resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING

from archctl.parse.java_imports import extract_java
from archctl.parse.python_imports import extract_python
from archctl.parse.resolver import ImportResolver, Resolution
from archctl.parse.tsconfig import TsConfigPaths, load_tsconfig
from archctl.parse.tsjs_imports import extract_tsjs

if TYPE_CHECKING:
    from collections.abc import Sequence

    from archctl.models.graph import ExtractionResult
    from archctl.rules.config import CapabilityPattern

# Bumped whenever extractor output changes; part of the cache key.
EXTRACTOR_VERSION = "1"

SUPPORTED_LANGUAGES = frozenset({"typescript", "javascript", "python", "java"})


def extract_source(
    path: str,
    language: str,
    contents: str,
    capability_patterns: Sequence[CapabilityPattern] | None = None,
) -> ExtractionResult:
    """Run the extractor registered for ``language``.

    Raises:
        ValueError: If no extractor exists for the language.
    """
    if language in ("typescript", "javascript"):
        return extract_tsjs(contents, path, capability_patterns)
    if language == "python":
        return extract_python(contents, capability_patterns)
    if language == "java":
        return extract_java(contents, capability_patterns)
    msg = f"No extractor for language {language!r}"
    raise ValueError(msg)


__all__ = [
    "EXTRACTOR_VERSION",
    "SUPPORTED_LANGUAGES",
    "ImportResolver",
    "Resolution",
    "TsConfigPaths",
    "extract_source",
    "load_tsconfig",
]
