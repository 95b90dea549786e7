"""Line-oriented import extraction for Java sources."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from archctl.models.graph import ExtractionResult, ImportRef
from archctl.models.violations import PositionRange
from archctl.parse.capabilities import CapabilityCollector

if TYPE_CHECKING:
    from collections.abc import Sequence

    from archctl.rules.config import CapabilityPattern

_IMPORT_RE = re.compile(r"^\s*import\s+(static\s+)?([\w.]+(?:\.\*)?)\s*;")

# Known source roots, most specific first.
JAVA_SOURCE_ROOTS = ("src/main/java/", "src/test/java/", "src/")


def extract_java_imports(contents: str) -> list[ImportRef]:
    """Extract ``import [static] a.b.C;`` statements in source order."""
    refs: list[ImportRef] = []
    for line_no, line in enumerate(contents.splitlines(), start=1):
        match = _IMPORT_RE.match(line)
        if not match:
            continue
        name = match.group(2)
        col = match.start(2)
        refs.append(
            ImportRef(
                specifier=name,
                style="static-import" if match.group(1) else "import",
                range=PositionRange(
                    start_line=line_no,
                    start_col=col,
                    end_line=line_no,
                    end_col=col + len(name),
                ),
            )
        )
    return refs


def java_class_name(path: str) -> str | None:
    """Infer a fully qualified class name from a project-relative path.

    Examples:
        >>> java_class_name("svc/src/main/java/com/acme/Foo.java")
        'com.acme.Foo'
        >>> java_class_name("Foo.java")
        'Foo'
    """
    if not path.endswith(".java"):
        return None
    without_ext = path[: -len(".java")]
    for root in JAVA_SOURCE_ROOTS:
        index = without_ext.find(root)
        if index != -1 and (index == 0 or without_ext[index - 1] == "/"):
            return without_ext[index + len(root) :].replace("/", ".")
    return without_ext.replace("/", ".")


def java_package_name(import_name: str) -> str:
    """Package part of an import: segments before the first class segment.

    Examples:
        >>> java_package_name("java.util.List")
        'java.util'
        >>> java_package_name("org.junit.Assert.assertEquals")
        'org.junit'
        >>> java_package_name("com.acme.*")
        'com.acme'
    """
    parts = import_name.removesuffix(".*").split(".")
    package: list[str] = []
    for part in parts:
        if part[:1].isupper():
            break
        package.append(part)
    if len(package) == len(parts) and len(parts) > 1 and not import_name.endswith(".*"):
        package = package[:-1]
    return ".".join(package) if package else import_name


def extract_java(
    contents: str,
    capability_patterns: Sequence[CapabilityPattern] | None = None,
) -> ExtractionResult:
    imports = extract_java_imports(contents)

    collector = CapabilityCollector(capability_patterns)
    if collector.enabled:
        for ref in imports:
            line = ref.range.start_line if ref.range else None
            collector.add_import(ref.specifier, line, separator=".")
        collector.scan_lines(contents)

    return ExtractionResult(
        language="java",
        imports=imports,
        capabilities=collector.results(),
    )


__all__ = [
    "JAVA_SOURCE_ROOTS",
    "extract_java",
    "extract_java_imports",
    "java_class_name",
    "java_package_name",
]
