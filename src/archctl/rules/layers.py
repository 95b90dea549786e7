"""Layer classification by priority-ordered glob mappings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

from archctl.logging import get_logger
from archctl.utils import matches_any, to_forward_slashes

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from archctl.rules.config import LayerConfig, LayerMapping

UNMAPPED = "__unmapped__"

logger = get_logger("rules.layers")


class _GlobMapping(Protocol):
    include: list[str]
    exclude: list[str]
    priority: int


M = TypeVar("M", bound=_GlobMapping)


def sort_by_priority(mappings: Iterable[M]) -> list[M]:
    """Sort mappings by priority descending; ties keep declaration order."""
    return sorted(mappings, key=lambda mapping: -mapping.priority)


def mapping_matches(path: str, mapping: _GlobMapping) -> bool:
    """Return True when ``include`` matches and no ``exclude`` vetoes it."""
    if not matches_any(path, mapping.include):
        return False
    return not matches_any(path, mapping.exclude)


class LayerResolver:
    """Resolve a file path to at most one declared layer.

    Mappings are tried highest priority first; on equal priority the
    first-declared mapping wins. A mapping whose ``exclude`` matches is
    skipped, not fatal. Mappings naming an undeclared layer are dropped
    with a warning when the resolver is built.
    """

    def __init__(
        self,
        layers: Sequence[LayerConfig],
        mappings: Sequence[LayerMapping] = (),
    ) -> None:
        declared = {layer.name for layer in layers}
        valid: list[LayerMapping] = []
        for mapping in mappings:
            if mapping.layer not in declared:
                logger.warning(
                    "Layer mapping references non-existent layer %r; ignoring it",
                    mapping.layer,
                )
                continue
            valid.append(mapping)
        self._declared = declared
        self._mappings = sort_by_priority(valid)

    @property
    def declared_layers(self) -> frozenset[str]:
        return frozenset(self._declared)

    def resolve(self, file_path: str) -> str | None:
        normalized = to_forward_slashes(file_path)
        for mapping in self._mappings:
            if mapping_matches(normalized, mapping):
                return mapping.layer
        return None


def resolve_layer(
    file_path: str,
    layers: Sequence[LayerConfig],
    mappings: Sequence[LayerMapping] = (),
) -> str | None:
    """Resolve which layer a file belongs to, or None when unmapped."""
    return LayerResolver(layers, mappings).resolve(file_path)


def group_files_by_layer(
    files: Iterable[str],
    layers: Sequence[LayerConfig],
    mappings: Sequence[LayerMapping] = (),
) -> dict[str, list[str]]:
    """Group files by resolved layer; unmapped files go under ``UNMAPPED``."""
    resolver = LayerResolver(layers, mappings)
    grouped: dict[str, list[str]] = {layer.name: [] for layer in layers}
    grouped[UNMAPPED] = []
    for file_path in files:
        layer = resolver.resolve(file_path)
        grouped[layer if layer is not None else UNMAPPED].append(file_path)
    return grouped


__all__ = [
    "UNMAPPED",
    "LayerResolver",
    "group_files_by_layer",
    "mapping_matches",
    "resolve_layer",
    "sort_by_priority",
]
