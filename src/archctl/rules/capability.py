"""Rules over what a file reaches outside the project graph.

Covers external package imports and detected capabilities (network,
filesystem, database, ...).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from archctl.models.violations import Violation
from archctl.rules.base import BaseRule

if TYPE_CHECKING:
    from archctl.models.graph import Capability
    from archctl.rules.base import FileInfo, RuleContext
    from archctl.rules.config import (
        AllowedCapabilityRuleConfig,
        ExternalDependencyRuleConfig,
        ForbiddenCapabilityRuleConfig,
    )


def package_allowed(package: str, allowed: frozenset[str]) -> bool:
    """True when ``package`` or one of its parents is allowed.

    Examples:
        >>> package_allowed("java.util", frozenset({"java"}))
        True
        >>> package_allowed("reactive", frozenset({"react"}))
        False
    """
    if package in allowed:
        return True
    return any(
        package.startswith(entry + ".") or package.startswith(entry + "/")
        for entry in allowed
    )


class ExternalDependencyRule(BaseRule):
    """One violation per file importing packages outside ``allowed_packages``."""

    def __init__(self, config: ExternalDependencyRuleConfig) -> None:
        super().__init__(config.id, config.title, config.description)
        self.allowed_packages = frozenset(config.allowed_packages)
        self._allowed_order = list(dict.fromkeys(config.allowed_packages))
        self.layer = config.layer

    def check(self, context: RuleContext) -> list[Violation]:
        violations: list[Violation] = []
        for path, info in context.files.items():
            if self.layer is not None and info.layer != self.layer:
                continue
            disallowed = [
                package
                for package in info.external_imports
                if not package_allowed(package, self.allowed_packages)
            ]
            if not disallowed:
                continue
            violations.append(
                Violation(
                    rule_id=self.id,
                    severity=self.default_severity,
                    message=(
                        "File imports disallowed external packages: "
                        + ", ".join(disallowed)
                    ),
                    file=path,
                    suggestion=(
                        "Only the following packages are allowed: "
                        f"{', '.join(self._allowed_order) or '(none)'}. "
                        "Remove or replace the disallowed imports."
                    ),
                    metadata={
                        "disallowedImports": disallowed,
                        "allowedPackages": self._allowed_order,
                        "layer": info.layer,
                        "totalImports": len(info.external_imports),
                    },
                )
            )
        return violations


class _CapabilityRule(BaseRule):
    """Shared iteration for capability rules: one violation per occurrence."""

    layer: str | None = None

    @abstractmethod
    def _offending(self, capability: Capability) -> bool:
        """Whether ``capability`` breaks this rule."""

    @abstractmethod
    def _violation(self, path: str, info: FileInfo, capability: Capability) -> Violation:
        """Build the violation reported for one offending capability."""

    def check(self, context: RuleContext) -> list[Violation]:
        violations: list[Violation] = []
        for path, info in context.files.items():
            if self.layer is not None and info.layer != self.layer:
                continue
            for capability in info.capabilities:
                if self._offending(capability):
                    violations.append(self._violation(path, info, capability))
        return violations


class AllowedCapabilityRule(_CapabilityRule):
    def __init__(self, config: AllowedCapabilityRuleConfig) -> None:
        super().__init__(config.id, config.title, config.description)
        self.allowed = frozenset(config.allowed_capabilities)
        self._allowed_order = list(dict.fromkeys(config.allowed_capabilities))
        self.layer = config.layer

    def _offending(self, capability: Capability) -> bool:
        return capability.type not in self.allowed

    def _violation(self, path: str, info: FileInfo, capability: Capability) -> Violation:
        scope = f" in layer '{self.layer}'" if self.layer else ""
        return Violation(
            rule_id=self.id,
            severity=self.default_severity,
            message=f"File uses disallowed capability: {capability.type}",
            file=path,
            line=capability.line,
            suggestion=(
                f"Only the following capabilities are allowed{scope}: "
                f"{', '.join(self._allowed_order) or '(none)'}. "
                "Remove or refactor the disallowed capability usage."
            ),
            metadata={
                "capability": capability.type,
                "action": capability.action,
                "allowedCapabilities": self._allowed_order,
                "layer": info.layer,
            },
        )


class ForbiddenCapabilityRule(_CapabilityRule):
    def __init__(self, config: ForbiddenCapabilityRuleConfig) -> None:
        super().__init__(config.id, config.title, config.description)
        self.forbidden = frozenset(config.forbidden_capabilities)
        self._forbidden_order = list(dict.fromkeys(config.forbidden_capabilities))
        self.layer = config.layer

    def _offending(self, capability: Capability) -> bool:
        return capability.type in self.forbidden

    def _violation(self, path: str, info: FileInfo, capability: Capability) -> Violation:
        scope = f" in layer '{self.layer}'" if self.layer else ""
        return Violation(
            rule_id=self.id,
            severity=self.default_severity,
            message=f"File uses forbidden capability: {capability.type}",
            file=path,
            line=capability.line,
            suggestion=(
                f"The following capabilities are forbidden{scope}: "
                f"{', '.join(self._forbidden_order)}. "
                "Remove or refactor the forbidden capability usage."
            ),
            metadata={
                "capability": capability.type,
                "action": capability.action,
                "layer": info.layer,
            },
        )


__all__ = [
    "AllowedCapabilityRule",
    "ExternalDependencyRule",
    "ForbiddenCapabilityRule",
    "package_allowed",
]
