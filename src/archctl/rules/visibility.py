"""Bounded-context visibility rule."""

from __future__ import annotations

from typing import TYPE_CHECKING

from archctl.models.violations import Violation
from archctl.rules.base import BaseRule
from archctl.rules.dependency import edge_range

if TYPE_CHECKING:
    from archctl.rules.base import RuleContext
    from archctl.rules.config import ContextVisibilityRuleConfig

NON_PUBLIC_TARGET = "non-public-target"
DISALLOWED_CONTEXT_DEPENDENCY = "disallowed-context-dependency"


class ContextVisibilityRule(BaseRule):
    """Check edges that cross context boundaries.

    A cross-context edge must target a public path. If it does, the
    source context's ``can_depend_on`` list, when declared, must name the
    target context. Edges with an unmapped endpoint are ignored.
    """

    def __init__(self, config: ContextVisibilityRuleConfig) -> None:
        super().__init__(config.id, config.title, config.description)
        self.allow_map: dict[str, list[str]] = {
            entry.context: list(entry.can_depend_on)
            for entry in config.contexts
            if entry.can_depend_on is not None
        }

    def check(self, context: RuleContext) -> list[Violation]:
        violations: list[Violation] = []
        for edge in context.edges:
            source = context.files.get(edge.from_file)
            target = context.files.get(edge.to_file)
            if source is None or target is None:
                continue
            from_context, to_context = source.context, target.context
            if from_context is None or to_context is None or from_context == to_context:
                continue

            if not context.contexts.is_public(edge.to_file):
                violations.append(
                    Violation(
                        rule_id=self.id,
                        severity=self.default_severity,
                        message=(
                            f'Context "{from_context}" cannot import internal path '
                            f'"{edge.to_file}" of context "{to_context}"; only its '
                            "public API may be imported"
                        ),
                        file=edge.from_file,
                        range=edge_range(edge),
                        suggestion=(
                            "Import from the target context's public API, or expose "
                            "the required behavior through it."
                        ),
                        metadata={
                            "fromContext": from_context,
                            "toContext": to_context,
                            "importedFile": edge.to_file,
                            "reason": NON_PUBLIC_TARGET,
                        },
                    )
                )
                continue

            allowed = self.allow_map.get(from_context)
            if allowed is not None and to_context not in allowed:
                violations.append(
                    Violation(
                        rule_id=self.id,
                        severity=self.default_severity,
                        message=(
                            f'Context "{from_context}" is not permitted to depend on '
                            f'context "{to_context}"'
                        ),
                        file=edge.from_file,
                        range=edge_range(edge),
                        suggestion=(
                            f'Remove the dependency or add "{to_context}" to the '
                            f'canDependOn list of "{from_context}".'
                        ),
                        metadata={
                            "fromContext": from_context,
                            "toContext": to_context,
                            "importedFile": edge.to_file,
                            "reason": DISALLOWED_CONTEXT_DEPENDENCY,
                            "allowedDependencies": list(allowed),
                        },
                    )
                )
        return violations


__all__ = [
    "DISALLOWED_CONTEXT_DEPENDENCY",
    "NON_PUBLIC_TARGET",
    "ContextVisibilityRule",
]
