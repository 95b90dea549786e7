"""End-to-end lint pipeline: scan, build, check, compare with the baseline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from archctl.baseline.store import BaselineStore
from archctl.graph.builder import build_project_graph, get_graph_stats
from archctl.logging import get_logger
from archctl.parse.tsconfig import load_tsconfig
from archctl.rules.base import build_rule_context
from archctl.rules.config import ArchctlConfig, load_config
from archctl.rules.engine import check_rules, create_rules_from_config
from archctl.scan.files import find_source_files

if TYPE_CHECKING:
    from pathlib import Path

    from archctl.models.baseline import ComparisonResult
    from archctl.models.graph import GraphStats, ProjectGraph
    from archctl.models.violations import Violation

logger = get_logger("lint")


@dataclass(frozen=True)
class LintResult:
    graph: ProjectGraph
    stats: GraphStats
    violations: list[Violation]
    comparison: ComparisonResult
    baseline_updated: bool = False


def run_lint(
    root: Path,
    config: ArchctlConfig | None = None,
    *,
    update_baseline: bool = False,
    use_cache: bool | None = None,
) -> LintResult:
    """Lint the project at ``root``.

    The comparison is made against the baseline as it was on disk. With
    ``update_baseline`` the baseline is then rewritten to the current
    violations and saved.

    Raises:
        ConfigError: If ``archctl.toml`` is invalid (when ``config`` is None).
        RuleConfigError: If the rule set cannot be built.
        BaselineError: If the updated baseline cannot be saved.
    """
    root = root.resolve()
    if config is None:
        config = load_config(root)

    rules = create_rules_from_config(config.rules)

    files = find_source_files(
        root,
        output_dir=config.output_dir,
        include_patterns=config.include or None,
        exclude_patterns=config.exclude or None,
        nested_gitignore=config.nested_gitignore,
    )
    logger.info("Scanning %d source files", len(files))

    graph = build_project_graph(
        root, files, config, tsconfig=load_tsconfig(root), use_cache=use_cache
    )
    stats = get_graph_stats(graph)

    violations = check_rules(rules, build_rule_context(graph, config, root))

    store = BaselineStore(root, config.output_dir)
    comparison = store.compare_violations(violations)

    if update_baseline:
        store.update_baseline(violations, stats, config.max_history_size)
        store.save()

    return LintResult(
        graph=graph,
        stats=stats,
        violations=violations,
        comparison=comparison,
        baseline_updated=update_baseline,
    )


__all__ = ["LintResult", "run_lint"]
