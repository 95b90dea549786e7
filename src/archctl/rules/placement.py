"""Rules about where files live."""

from __future__ import annotations

from typing import TYPE_CHECKING

from archctl.models.violations import Violation
from archctl.rules.base import BaseRule
from archctl.utils import glob_match

if TYPE_CHECKING:
    from archctl.rules.base import RuleContext
    from archctl.rules.config import FilePatternLayerRuleConfig


class FilePatternLayerRule(BaseRule):
    """Files matching ``pattern`` must resolve to ``required_layer``."""

    default_severity = "warning"

    def __init__(self, config: FilePatternLayerRuleConfig) -> None:
        super().__init__(config.id, config.title, config.description)
        self.pattern = config.pattern
        self.required_layer = config.required_layer

    def check(self, context: RuleContext) -> list[Violation]:
        violations: list[Violation] = []
        for path, info in context.files.items():
            if not glob_match(path, self.pattern) or info.layer == self.required_layer:
                continue
            actual = info.layer or "unmapped"
            violations.append(
                Violation(
                    rule_id=self.id,
                    severity=self.default_severity,
                    message=(
                        f'File matching pattern "{self.pattern}" must be in '
                        f'"{self.required_layer}" layer, but is in "{actual}"'
                    ),
                    file=path,
                    suggestion=(
                        f'Move this file to the "{self.required_layer}" layer or '
                        "update layer mappings"
                    ),
                    metadata={
                        "pattern": self.pattern,
                        "requiredLayer": self.required_layer,
                        "actualLayer": info.layer,
                    },
                )
            )
        return violations


__all__ = ["FilePatternLayerRule"]
