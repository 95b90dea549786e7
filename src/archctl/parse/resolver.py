"""Resolution of raw import specifiers to scanned project files.

Resolution only ever yields paths from the scanned file set, so a
resolved target is always a node of the graph. Anything else is either
an external package name or dropped.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import TYPE_CHECKING

from archctl.parse.java_imports import java_class_name, java_package_name
from archctl.utils import normalize_relative_path, path_to_module

if TYPE_CHECKING:
    from collections.abc import Iterable

    from archctl.models.graph import ImportRef
    from archctl.parse.tsconfig import TsConfigPaths

TS_PROBE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")
_JS_TO_TS = {".js": (".ts", ".tsx"), ".jsx": (".tsx",), ".mjs": (".mts",), ".cjs": (".cts",)}


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one import.

    Exactly one of ``target`` and ``external`` is set, or neither when
    the import looks internal but matches no scanned file.
    """

    target: str | None = None
    external: str | None = None


UNRESOLVED = Resolution()


def ts_package_name(specifier: str) -> str | None:
    """Package name of a bare TS/JS specifier.

    Examples:
        >>> ts_package_name("react/jsx-runtime")
        'react'
        >>> ts_package_name("@scope/pkg/sub")
        '@scope/pkg'
    """
    if not specifier:
        return None
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        return f"{parts[0]}/{parts[1]}"
    return parts[0] or None


def resolve_relative_import(importing_module: str, relative_module: str, level: int) -> str:
    """Resolve a relative import to an absolute module name.

    Args:
        importing_module: The package containing the importer (e.g., "pkg.sub")
        relative_module: The relative module name (e.g., "foo" from ".foo")
        level: Number of dots (1 for ".", 2 for "..", etc.)

    Examples:
        >>> resolve_relative_import("pkg.sub", "foo", 1)
        'pkg.sub.foo'
        >>> resolve_relative_import("pkg.sub", "bar", 2)
        'pkg.bar'
    """
    parts = importing_module.split(".") if importing_module else []
    drop = level - 1
    if drop > len(parts):
        return relative_module
    base_parts = parts[: len(parts) - drop]
    if relative_module:
        return ".".join([*base_parts, relative_module])
    return ".".join(base_parts)


def _dotted_module(path: str) -> str:
    """Dotted module name of a path without source-root stripping."""
    stem = path[: -len(".py")] if path.endswith(".py") else path
    parts = [part for part in stem.split("/") if part]
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def _alias_sort_key(item: tuple[int, str]) -> tuple[int, int, int]:
    index, alias = item
    star = alias.find("*")
    if star == -1:
        return (0, -len(alias), index)
    return (1, -star, index)


def _match_alias(alias: str, specifier: str) -> str | None:
    """Return the wildcard capture ("" for exact aliases) or None."""
    star = alias.find("*")
    if star == -1:
        return "" if alias == specifier else None
    prefix, suffix = alias[:star], alias[star + 1 :]
    if (
        len(specifier) >= len(prefix) + len(suffix)
        and specifier.startswith(prefix)
        and specifier.endswith(suffix)
    ):
        return specifier[len(prefix) : len(specifier) - len(suffix)]
    return None


class ImportResolver:
    """Resolve imports against a fixed set of scanned files."""

    def __init__(self, files: Iterable[str], tsconfig: TsConfigPaths | None = None) -> None:
        self._files = frozenset(files)
        self._tsconfig = tsconfig
        ordered = sorted(self._files)

        self._python_modules: dict[str, str] = {}
        self._java_classes: dict[str, str] = {}
        for path in ordered:
            if path.endswith(".py"):
                for name in (path_to_module(path), _dotted_module(path)):
                    if name:
                        self._python_modules.setdefault(name, path)
            elif path.endswith(".java"):
                fqcn = java_class_name(path)
                if fqcn:
                    self._java_classes.setdefault(fqcn, path)

        self._aliases: list[tuple[str, tuple[str, ...]]] = []
        if tsconfig is not None:
            ranked = sorted(enumerate(tsconfig.paths), key=_alias_sort_key)
            self._aliases = [(alias, tsconfig.paths[alias]) for _, alias in ranked]

    @property
    def files(self) -> frozenset[str]:
        return self._files

    def resolve(self, importer: str, ref: ImportRef, language: str) -> Resolution:
        if language in ("typescript", "javascript"):
            return self.resolve_tsjs(importer, ref.specifier)
        if language == "python":
            return self.resolve_python(importer, ref.specifier, ref.level)
        if language == "java":
            return self.resolve_java(ref.specifier, static=ref.style == "static-import")
        return UNRESOLVED

    # TypeScript / JavaScript

    def probe(self, base: str) -> str | None:
        """Find a scanned file for ``base`` by extension and index probing."""
        base = normalize_relative_path(base)
        if not base or base.startswith("../"):
            return None
        if base in self._files:
            return base
        root, ext = posixpath.splitext(base)
        for replacement in _JS_TO_TS.get(ext, ()):
            if root + replacement in self._files:
                return root + replacement
        for extension in TS_PROBE_EXTENSIONS:
            if base + extension in self._files:
                return base + extension
        for extension in TS_PROBE_EXTENSIONS:
            candidate = f"{base}/index{extension}"
            if candidate in self._files:
                return candidate
        return None

    def _resolve_alias(self, specifier: str) -> str | None:
        base_url = self._tsconfig.base_url if self._tsconfig else None
        for alias, targets in self._aliases:
            capture = _match_alias(alias, specifier)
            if capture is None:
                continue
            for target in targets:
                substituted = target.replace("*", capture, 1)
                joined = posixpath.join(base_url, substituted) if base_url else substituted
                found = self.probe(joined)
                if found is not None:
                    return found
        return None

    def resolve_tsjs(self, importer: str, specifier: str) -> Resolution:
        if self._aliases:
            aliased = self._resolve_alias(specifier)
            if aliased is not None:
                return Resolution(target=aliased)

        if specifier.startswith("."):
            base = posixpath.join(posixpath.dirname(importer), specifier)
            return Resolution(target=self.probe(base))
        if specifier.startswith("/"):
            return Resolution(target=self.probe(specifier.lstrip("/")))

        base_url = self._tsconfig.base_url if self._tsconfig else None
        if base_url is not None:
            found = self.probe(posixpath.join(base_url, specifier))
            if found is not None:
                return Resolution(target=found)

        return Resolution(external=ts_package_name(specifier))

    # Python

    def _python_lookup(self, module: str, importer_dir: str) -> str | None:
        if module in self._python_modules:
            return self._python_modules[module]
        module_path = module.replace(".", "/")
        for candidate in (f"{module_path}.py", f"{module_path}/__init__.py"):
            joined = normalize_relative_path(posixpath.join(importer_dir, candidate))
            if joined in self._files:
                return joined
        return None

    def resolve_python(self, importer: str, specifier: str, level: int = 0) -> Resolution:
        importer_dir = posixpath.dirname(importer)
        if level:
            package = path_to_module(importer_dir + "/__init__.py") if importer_dir else ""
            module = resolve_relative_import(package, specifier[level:], level)
            if not module:
                return UNRESOLVED
            found = self._python_lookup(module, importer_dir)
            if found is None:
                # ``from .pkg import name``: fall back to the package itself.
                parent = module.rpartition(".")[0]
                found = self._python_modules.get(parent) if parent else None
            return Resolution(target=found)

        parts = specifier.split(".")
        while parts:
            found = self._python_lookup(".".join(parts), importer_dir)
            if found is not None:
                return Resolution(target=found)
            parts.pop()
        return Resolution(external=specifier.split(".")[0])

    # Java

    def resolve_java(self, import_name: str, *, static: bool = False) -> Resolution:
        if import_name.endswith(".*"):
            # ``import static a.B.*`` pulls members of class ``a.B``.
            if static and import_name[:-2] in self._java_classes:
                return Resolution(target=self._java_classes[import_name[:-2]])
            prefix = import_name[:-1]
            if any(name.startswith(prefix) for name in self._java_classes):
                return UNRESOLVED
            return Resolution(external=java_package_name(import_name))

        if import_name in self._java_classes:
            return Resolution(target=self._java_classes[import_name])
        if static:
            owner = import_name.rpartition(".")[0]
            if owner in self._java_classes:
                return Resolution(target=self._java_classes[owner])
        return Resolution(external=java_package_name(import_name))


__all__ = [
    "TS_PROBE_EXTENSIONS",
    "UNRESOLVED",
    "ImportResolver",
    "Resolution",
    "resolve_relative_import",
    "ts_package_name",
]
