"""Rule construction from configuration and fail-open evaluation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from archctl.logging import get_logger
from archctl.rules.base import BaseRule
from archctl.rules.capability import (
    AllowedCapabilityRule,
    ExternalDependencyRule,
    ForbiddenCapabilityRule,
)
from archctl.rules.config import (
    AllowedCapabilityRuleConfig,
    AllowedLayerImportRuleConfig,
    ContextVisibilityRuleConfig,
    CyclicDependencyRuleConfig,
    ExternalDependencyRuleConfig,
    FilePatternLayerRuleConfig,
    ForbiddenCapabilityRuleConfig,
    ForbiddenLayerImportRuleConfig,
    MaxDependenciesRuleConfig,
    NaturalLanguageRuleConfig,
    RuleConfig,
)
from archctl.rules.dependency import (
    AllowedLayerImportRule,
    CyclicDependencyRule,
    ForbiddenLayerImportRule,
    MaxDependenciesRule,
)
from archctl.rules.placement import FilePatternLayerRule
from archctl.rules.visibility import ContextVisibilityRule

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from archctl.models.violations import Severity, Violation
    from archctl.rules.base import RuleContext

logger = get_logger("rules.engine")

_RULE_CONFIG_ADAPTER: TypeAdapter[RuleConfig] = TypeAdapter(RuleConfig)

SEVERITIES: tuple[Severity, ...] = ("error", "warning", "info")


class RuleConfigError(ValueError):
    """Raised when a rule set cannot be built; no rules are returned."""


class NaturalLanguageRule(BaseRule):
    """Accepted in configuration but not evaluated; always clean."""

    def __init__(self, config: NaturalLanguageRuleConfig) -> None:
        super().__init__(config.id, config.title, config.description)
        self.prompt = config.prompt
        self.default_severity = config.severity

    def check(self, context: RuleContext) -> list[Violation]:
        return []


def create_rule(config: RuleConfig) -> BaseRule:
    """Instantiate the rule for one validated config."""
    match config:
        case ForbiddenLayerImportRuleConfig():
            return ForbiddenLayerImportRule(config)
        case AllowedLayerImportRuleConfig():
            return AllowedLayerImportRule(config)
        case FilePatternLayerRuleConfig():
            return FilePatternLayerRule(config)
        case MaxDependenciesRuleConfig():
            return MaxDependenciesRule(config)
        case CyclicDependencyRuleConfig():
            return CyclicDependencyRule(config)
        case ExternalDependencyRuleConfig():
            return ExternalDependencyRule(config)
        case AllowedCapabilityRuleConfig():
            return AllowedCapabilityRule(config)
        case ForbiddenCapabilityRuleConfig():
            return ForbiddenCapabilityRule(config)
        case ContextVisibilityRuleConfig():
            return ContextVisibilityRule(config)
        case NaturalLanguageRuleConfig():
            logger.warning(
                "Natural language rule %r is not evaluated; it will report no violations",
                config.id,
            )
            return NaturalLanguageRule(config)
        case _:
            msg = f"Unknown rule kind: {getattr(config, 'kind', type(config).__name__)!r}"
            raise RuleConfigError(msg)


def create_rules_from_config(
    configs: Iterable[RuleConfig | Mapping[str, Any]],
) -> list[BaseRule]:
    """Build rules for a whole rule set.

    Raw mappings are validated first. Any unknown ``kind`` or invalid
    entry rejects the entire set.

    Raises:
        RuleConfigError: If any entry is invalid.
    """
    rules: list[BaseRule] = []
    for index, raw in enumerate(configs):
        if isinstance(raw, Mapping):
            try:
                config = _RULE_CONFIG_ADAPTER.validate_python(raw)
            except ValidationError as exc:
                rule_id = raw.get("id", f"#{index}")
                msg = f"Invalid rule {rule_id!r} (kind={raw.get('kind')!r}): {exc}"
                raise RuleConfigError(msg) from exc
        else:
            config = raw
        rules.append(create_rule(config))
    return rules


def check_rules(rules: Sequence[BaseRule], context: RuleContext) -> list[Violation]:
    """Run every rule against ``context``.

    A rule that raises is logged and skipped; the others still run.
    """
    violations: list[Violation] = []
    for rule in rules:
        try:
            violations.extend(rule.check(context))
        except Exception:
            logger.exception("Rule %r failed and was skipped", rule.id)
    return violations


def group_violations_by_severity(
    violations: Iterable[Violation],
) -> dict[str, list[Violation]]:
    grouped: dict[str, list[Violation]] = {severity: [] for severity in SEVERITIES}
    for violation in violations:
        grouped.setdefault(violation.severity, []).append(violation)
    return grouped


def group_violations_by_file(violations: Iterable[Violation]) -> dict[str, list[Violation]]:
    grouped: dict[str, list[Violation]] = {}
    for violation in violations:
        grouped.setdefault(violation.file, []).append(violation)
    return grouped


def get_violation_summary(violations: Sequence[Violation]) -> dict[str, int]:
    """Counts by severity plus total and number of affected files."""
    by_severity = group_violations_by_severity(violations)
    return {
        "total": len(violations),
        "errors": len(by_severity["error"]),
        "warnings": len(by_severity["warning"]),
        "info": len(by_severity["info"]),
        "filesAffected": len({violation.file for violation in violations}),
    }


__all__ = [
    "NaturalLanguageRule",
    "RuleConfigError",
    "check_rules",
    "create_rule",
    "create_rules_from_config",
    "get_violation_summary",
    "group_violations_by_file",
    "group_violations_by_severity",
]
