"""Rules over dependency edges: layer direction, fan-out and cycles."""

from __future__ import annotations

from typing import TYPE_CHECKING

from archctl.graph.algos import build_adjacency, find_cycles
from archctl.models.violations import FILE_START_RANGE, Violation
from archctl.rules.base import BaseRule

if TYPE_CHECKING:
    from archctl.models.graph import DependencyEdge
    from archctl.models.violations import PositionRange
    from archctl.rules.base import RuleContext
    from archctl.rules.config import (
        AllowedLayerImportRuleConfig,
        CyclicDependencyRuleConfig,
        ForbiddenLayerImportRuleConfig,
        MaxDependenciesRuleConfig,
    )


def edge_range(edge: DependencyEdge) -> PositionRange:
    """Range of the import behind ``edge``, else the start of the file."""
    return edge.range if edge.range is not None else FILE_START_RANGE


class ForbiddenLayerImportRule(BaseRule):
    """Flag every edge from ``from_layer`` into ``to_layer``."""

    def __init__(self, config: ForbiddenLayerImportRuleConfig) -> None:
        super().__init__(config.id, config.title, config.description)
        self.from_layer = config.from_layer
        self.to_layer = config.to_layer

    def check(self, context: RuleContext) -> list[Violation]:
        violations: list[Violation] = []
        for edge in context.edges:
            source = context.files.get(edge.from_file)
            target = context.files.get(edge.to_file)
            if source is None or target is None:
                continue
            if source.layer != self.from_layer or target.layer != self.to_layer:
                continue
            violations.append(
                Violation(
                    rule_id=self.id,
                    severity=self.default_severity,
                    message=(
                        f'File in "{self.from_layer}" layer cannot import from '
                        f'"{self.to_layer}" layer'
                    ),
                    file=edge.from_file,
                    range=edge_range(edge),
                    suggestion=(
                        f'Remove the import of "{edge.to_file}" or refactor to use '
                        "an allowed layer"
                    ),
                    metadata={
                        "fromLayer": self.from_layer,
                        "toLayer": self.to_layer,
                        "importedFile": edge.to_file,
                    },
                )
            )
        return violations


class AllowedLayerImportRule(BaseRule):
    """Files in ``from_layer`` may only import the listed layers.

    The rule's own layer is not implied; list it to allow intra-layer
    imports. Targets without a layer are never flagged.
    """

    def __init__(self, config: AllowedLayerImportRuleConfig) -> None:
        super().__init__(config.id, config.title, config.description)
        self.from_layer = config.from_layer
        self.allowed_layers = frozenset(config.allowed_layers)
        self._allowed_order = list(dict.fromkeys(config.allowed_layers))

    def check(self, context: RuleContext) -> list[Violation]:
        violations: list[Violation] = []
        for edge in context.edges:
            source = context.files.get(edge.from_file)
            target = context.files.get(edge.to_file)
            if source is None or target is None:
                continue
            if source.layer != self.from_layer:
                continue
            if target.layer is None or target.layer in self.allowed_layers:
                continue
            allowed = ", ".join(self._allowed_order)
            violations.append(
                Violation(
                    rule_id=self.id,
                    severity=self.default_severity,
                    message=(
                        f'File in "{self.from_layer}" layer can only import from '
                        f'[{allowed}], but imports from "{target.layer}"'
                    ),
                    file=edge.from_file,
                    range=edge_range(edge),
                    suggestion=(
                        f'Remove the import of "{edge.to_file}" or move it to an '
                        "allowed layer"
                    ),
                    metadata={
                        "fromLayer": self.from_layer,
                        "toLayer": target.layer,
                        "allowedLayers": self._allowed_order,
                        "importedFile": edge.to_file,
                    },
                )
            )
        return violations


class MaxDependenciesRule(BaseRule):
    default_severity = "warning"

    def __init__(self, config: MaxDependenciesRuleConfig) -> None:
        super().__init__(config.id, config.title, config.description)
        self.max_dependencies = config.max_dependencies
        self.layer = config.layer

    def check(self, context: RuleContext) -> list[Violation]:
        violations: list[Violation] = []
        for path, info in context.files.items():
            if self.layer is not None and info.layer != self.layer:
                continue
            if info.dependency_count <= self.max_dependencies:
                continue
            violations.append(
                Violation(
                    rule_id=self.id,
                    severity=self.default_severity,
                    message=(
                        f"File has {info.dependency_count} dependencies, exceeding "
                        f"the maximum of {self.max_dependencies}"
                    ),
                    file=path,
                    suggestion=(
                        "Refactor this file to reduce dependencies. Consider splitting "
                        "it into smaller modules."
                    ),
                    metadata={
                        "dependencyCount": info.dependency_count,
                        "maxDependencies": self.max_dependencies,
                        "layer": info.layer,
                        "excessDependencies": info.dependency_count - self.max_dependencies,
                    },
                )
            )
        return violations


class CyclicDependencyRule(BaseRule):
    """One violation per file of every strongly connected component.

    Self-imports are not reported as cycles.
    """

    def __init__(self, config: CyclicDependencyRuleConfig) -> None:
        super().__init__(config.id, config.title, config.description)

    def check(self, context: RuleContext) -> list[Violation]:
        graph = build_adjacency(context.edges, context.files)
        violations: list[Violation] = []
        for cycle in find_cycles(graph):
            chain = " -> ".join([*cycle, cycle[0]])
            for path in cycle:
                violations.append(
                    Violation(
                        rule_id=self.id,
                        severity=self.default_severity,
                        message=(
                            f"File is part of a circular dependency involving "
                            f"{len(cycle)} files"
                        ),
                        file=path,
                        suggestion=f"Break the circular dependency. Cycle: {chain}",
                        metadata={"cycle": list(cycle), "cycleSize": len(cycle)},
                    )
                )
        return violations


__all__ = [
    "AllowedLayerImportRule",
    "CyclicDependencyRule",
    "ForbiddenLayerImportRule",
    "MaxDependenciesRule",
    "edge_range",
]
