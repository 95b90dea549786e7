"""Architecture rules: configuration, classification and evaluation."""

from archctl.rules.config import (
    ArchctlConfig,
    ConfigError,
    RuleConfig,
    load_config,
)
from archctl.rules.contexts import ContextResolver, is_public, resolve_context
from archctl.rules.layers import LayerResolver, group_files_by_layer, resolve_layer
from archctl.rules.base import BaseRule, FileInfo, RuleContext, build_rule_context
from archctl.rules.engine import (
    RuleConfigError,
    check_rules,
    create_rules_from_config,
    get_violation_summary,
    group_violations_by_file,
    group_violations_by_severity,
)

__all__ = [
    "ArchctlConfig",
    "BaseRule",
    "ConfigError",
    "ContextResolver",
    "FileInfo",
    "LayerResolver",
    "RuleConfig",
    "RuleConfigError",
    "RuleContext",
    "build_rule_context",
    "check_rules",
    "create_rules_from_config",
    "get_violation_summary",
    "group_files_by_layer",
    "group_violations_by_file",
    "group_violations_by_severity",
    "is_public",
    "load_config",
    "resolve_context",
    "resolve_layer",
]
