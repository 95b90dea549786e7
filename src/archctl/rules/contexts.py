"""Bounded-context classification and public API lookup."""

from __future__ import annotations

from typing import TYPE_CHECKING

from archctl.logging import get_logger
from archctl.rules.layers import mapping_matches, sort_by_priority
from archctl.utils import matches_any, to_forward_slashes

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from archctl.rules.config import ContextMapping

logger = get_logger("rules.contexts")


class ContextResolver:
    """Resolve a file path to its owning context.

    Same precedence as ``LayerResolver``. When ``declared`` is given,
    mappings for other contexts are dropped with a warning; when it is
    None every mapped context is accepted.
    """

    def __init__(
        self,
        mappings: Sequence[ContextMapping] = (),
        declared: Iterable[str] | None = None,
    ) -> None:
        declared_set = set(declared) if declared is not None else None
        valid: list[ContextMapping] = []
        for mapping in mappings:
            if declared_set is not None and mapping.context not in declared_set:
                logger.warning(
                    "Context mapping references undeclared context %r; ignoring it",
                    mapping.context,
                )
                continue
            valid.append(mapping)
        self._all_mappings = list(valid)
        self._mappings = sort_by_priority(valid)

    def resolve(self, file_path: str) -> str | None:
        normalized = to_forward_slashes(file_path)
        for mapping in self._mappings:
            if mapping_matches(normalized, mapping):
                return mapping.context
        return None

    def is_public(self, file_path: str) -> bool:
        """True iff any mapping's public globs match, regardless of owner."""
        normalized = to_forward_slashes(file_path)
        return any(
            matches_any(normalized, mapping.public) for mapping in self._all_mappings
        )


def resolve_context(
    file_path: str, mappings: Sequence[ContextMapping] = ()
) -> str | None:
    return ContextResolver(mappings).resolve(file_path)


def is_public(file_path: str, mappings: Sequence[ContextMapping] = ()) -> bool:
    return ContextResolver(mappings).is_public(file_path)


__all__ = ["ContextResolver", "is_public", "resolve_context"]
