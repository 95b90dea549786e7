"""Build the project dependency graph from a list of scanned files.

Extraction is per file and independent, so it may run on a thread pool.
Resolution, classification and edge creation happen afterwards in input
order on the calling thread, so the result never depends on scheduling.
"""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass
from typing import TYPE_CHECKING

from archctl.graph.cache import (
    CACHE_FILENAME,
    ScanCache,
    compute_content_hash,
    compute_context_hash,
)
from archctl.logging import get_logger
from archctl.models.graph import (
    DependencyEdge,
    ExtractionResult,
    GraphStats,
    ProjectGraph,
    SourceFile,
)
from archctl.parse import EXTRACTOR_VERSION, SUPPORTED_LANGUAGES, extract_source
from archctl.parse.resolver import ImportResolver
from archctl.rules.config import ArchctlConfig, resolve_output_dir
from archctl.rules.contexts import ContextResolver
from archctl.rules.layers import LayerResolver
from archctl.utils import infer_language, normalize_relative_path

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from archctl.models.graph import ImportStyle
    from archctl.parse.tsconfig import TsConfigPaths
    from archctl.rules.config import CapabilityPattern

logger = get_logger("graph.builder")

# Syntactic matches are deterministic; confidence only separates
# static declarations from call-based loading.
EDGE_CONFIDENCE: dict[str, float] = {
    "import": 1.0,
    "export": 1.0,
    "static-import": 1.0,
    "from-import": 1.0,
    "dynamic-import": 0.95,
    "require": 0.95,
}

EXTRACTOR_IDS = {
    "typescript": "tsjs",
    "javascript": "tsjs",
    "python": "python",
    "java": "java",
}


@dataclass(frozen=True)
class _Extracted:
    path: str
    language: str
    content_hash: str
    result: ExtractionResult
    cached: bool


def _extract_file(
    root: Path,
    path: str,
    language: str,
    patterns: Sequence[CapabilityPattern],
    context_hash: str,
    cache: ScanCache | None,
) -> _Extracted | None:
    try:
        content = (root / path).read_bytes()
    except OSError as exc:
        logger.warning("Skipping unreadable file %s: %s", path, exc)
        return None

    content_hash = compute_content_hash(content, context_hash)
    if cache is not None:
        cached = cache.get(path, content_hash)
        if cached is not None:
            return _Extracted(path, language, content_hash, cached, cached=True)

    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.warning("Skipping undecodable file %s: %s", path, exc)
        return None

    try:
        result = extract_source(path, language, text, patterns)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Skipping file %s, extraction failed: %s", path, exc)
        return None
    return _Extracted(path, language, content_hash, result, cached=False)


def _candidate_files(files: Sequence[str]) -> list[tuple[str, str]]:
    seen: set[str] = set()
    candidates: list[tuple[str, str]] = []
    for raw in files:
        path = normalize_relative_path(raw)
        if not path or path in seen:
            continue
        language = infer_language(path)
        if language not in SUPPORTED_LANGUAGES:
            continue
        seen.add(path)
        candidates.append((path, language))
    return candidates


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def build_project_graph(
    root: Path,
    files: Sequence[str],
    config: ArchctlConfig | None = None,
    *,
    tsconfig: TsConfigPaths | None = None,
    use_cache: bool | None = None,
    max_workers: int | None = None,
) -> ProjectGraph:
    """Build a ``ProjectGraph`` for ``files`` under ``root``.

    Args:
        root: Absolute project root
        files: Project-relative paths, typically from ``find_source_files``
        config: Layer, context and capability configuration
        tsconfig: Optional alias configuration for TS/JS resolution
        use_cache: Override ``config.cache``
        max_workers: Override ``config.max_workers``

    Returns:
        The graph; unreadable or unparseable files are left out.
    """
    config = config or ArchctlConfig()
    use_cache = config.cache if use_cache is None else use_cache
    workers = config.max_workers if max_workers is None else max_workers
    patterns = list(config.capabilities)
    context_hash = compute_context_hash(patterns, EXTRACTOR_VERSION)

    cache: ScanCache | None = None
    if use_cache:
        cache_path = resolve_output_dir(root, config.output_dir) / CACHE_FILENAME
        cache = ScanCache.load(cache_path)

    candidates = _candidate_files(files)

    extracted: list[_Extracted | None]
    if workers > 1 and len(candidates) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(
                    _extract_file, root, path, language, patterns, context_hash, cache
                )
                for path, language in candidates
            ]
            extracted = [future.result() for future in futures]
    else:
        extracted = [
            _extract_file(root, path, language, patterns, context_hash, cache)
            for path, language in candidates
        ]

    results = [item for item in extracted if item is not None]

    if cache is not None:
        for item in results:
            if not item.cached:
                cache.put(item.path, item.content_hash, item.result)
        cache.prune({item.path for item in results})
        try:
            cache.save()
        except OSError as exc:
            logger.warning("Could not write scan cache %s: %s", cache.path, exc)

    resolver = ImportResolver((item.path for item in results), tsconfig)
    layer_resolver = LayerResolver(config.layers, config.layer_mappings)
    context_resolver = ContextResolver(config.context_mappings, config.contexts)

    graph_files: dict[str, SourceFile] = {}
    edges: list[DependencyEdge] = []
    for item in results:
        externals: list[str] = []
        for ref in item.result.imports:
            resolution = resolver.resolve(item.path, ref, item.language)
            if resolution.target is not None:
                if resolution.target == item.path:
                    continue
                edges.append(
                    DependencyEdge(
                        from_file=item.path,
                        to_file=resolution.target,
                        kind="import",
                        confidence=_edge_confidence(ref.style),
                        source=EXTRACTOR_IDS[item.language],
                        range=ref.range,
                    )
                )
            elif resolution.external:
                externals.append(resolution.external)

        graph_files[item.path] = SourceFile(
            path=item.path,
            language=item.language,
            layer=layer_resolver.resolve(item.path),
            context=context_resolver.resolve(item.path),
            raw_imports=[ref.specifier for ref in item.result.imports],
            external_imports=_unique(externals),
            capabilities=list(item.result.capabilities),
        )

    logger.debug("Built graph with %d files and %d edges", len(graph_files), len(edges))
    return ProjectGraph(files=graph_files, edges=edges)


def _edge_confidence(style: ImportStyle) -> float:
    return EDGE_CONFIDENCE.get(style, 0.9)


def get_graph_stats(graph: ProjectGraph) -> GraphStats:
    language_counts: dict[str, int] = {}
    layer_counts: dict[str, int] = {}
    unmapped = 0
    for source_file in graph.files.values():
        language_counts[source_file.language] = language_counts.get(source_file.language, 0) + 1
        if source_file.layer is None:
            unmapped += 1
        else:
            layer_counts[source_file.layer] = layer_counts.get(source_file.layer, 0) + 1

    file_count = len(graph.files)
    edge_count = len(graph.edges)
    return GraphStats(
        file_count=file_count,
        edge_count=edge_count,
        unmapped_files=unmapped,
        average_dependencies_per_file=edge_count / file_count if file_count else 0.0,
        language_counts=language_counts,
        layer_counts=layer_counts,
    )


def get_file_dependencies(graph: ProjectGraph, file_path: str) -> list[str]:
    """Files ``file_path`` imports, in first-import order."""
    return _unique([edge.to_file for edge in graph.edges if edge.from_file == file_path])


def get_file_dependents(graph: ProjectGraph, file_path: str) -> list[str]:
    """Files importing ``file_path``, in edge order."""
    return _unique([edge.from_file for edge in graph.edges if edge.to_file == file_path])


__all__ = [
    "EDGE_CONFIDENCE",
    "build_project_graph",
    "get_file_dependencies",
    "get_file_dependents",
    "get_graph_stats",
]
