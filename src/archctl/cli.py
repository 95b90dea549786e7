"""Command-line interface for archctl."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from archctl.baseline.store import BaselineError
from archctl.graph.builder import build_project_graph, get_graph_stats
from archctl.lint import LintResult, run_lint
from archctl.logging import configure_logging
from archctl.parse.tsconfig import load_tsconfig
from archctl.rules.config import ConfigError, load_config
from archctl.rules.engine import RuleConfigError, get_violation_summary
from archctl.scan.files import find_source_files
from archctl.utils import dumps_json, write_json_atomic

if TYPE_CHECKING:
    from archctl.models.violations import Violation

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Project root (default: .)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="archctl")
    subparsers = parser.add_subparsers(dest="command", required=True)

    lint_parser = subparsers.add_parser("lint", help="Check architecture rules")
    _add_common_paths(lint_parser)
    lint_parser.add_argument(
        "--update-baseline",
        action="store_true",
        help="Record current violations as the new baseline",
    )
    lint_parser.add_argument(
        "--ratchet",
        action="store_true",
        help="Fail when baselined violations disappear without a baseline update",
    )
    lint_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore and do not write the extraction cache",
    )
    lint_parser.add_argument(
        "--json",
        action="store_true",
        help="Print violations and the baseline comparison as JSON",
    )

    graph_parser = subparsers.add_parser("graph", help="Export the dependency graph")
    _add_common_paths(graph_parser)
    graph_parser.add_argument(
        "--out",
        default=None,
        help="Write the graph JSON to this file instead of stdout",
    )

    return parser


def _format_location(violation: Violation) -> str:
    if violation.range is not None:
        return f"{violation.file}:{violation.range.start_line}:{violation.range.start_col}"
    if violation.line is not None:
        return f"{violation.file}:{violation.line}"
    return violation.file


def _write_text_report(result: LintResult) -> None:
    comparison = result.comparison
    for violation in comparison.new:
        sys.stdout.write(
            f"{_format_location(violation)}: {violation.severity} "
            f"[{violation.rule_id}] {violation.message}\n"
        )
    summary = get_violation_summary(result.violations)
    sys.stdout.write(
        f"{summary['total']} violations ({summary['errors']} errors, "
        f"{summary['warnings']} warnings, {summary['info']} info) in "
        f"{summary['filesAffected']} files; {len(comparison.new)} new, "
        f"{len(comparison.unchanged)} baselined, {len(comparison.resolved)} resolved\n"
    )


def _write_json_report(result: LintResult) -> None:
    payload = {
        "summary": get_violation_summary(result.violations),
        "stats": result.stats,
        "new": result.comparison.new,
        "unchanged": result.comparison.unchanged,
        "resolved": result.comparison.resolved,
    }
    sys.stdout.write(dumps_json(_jsonable(payload)).decode("utf-8"))
    sys.stdout.write("\n")


def _jsonable(value: object) -> object:
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if hasattr(value, "to_json_dict"):
        return value.to_json_dict()
    return value


def _handle_lint(
    root: Path,
    *,
    update_baseline: bool,
    ratchet: bool,
    no_cache: bool,
    as_json: bool,
) -> int:
    try:
        result = run_lint(
            root,
            update_baseline=update_baseline,
            use_cache=False if no_cache else None,
        )
    except (ConfigError, RuleConfigError) as exc:
        sys.stderr.write(f"config error: {exc}\n")
        return EXIT_CONFIG_ERROR
    except BaselineError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return EXIT_FAILED

    if as_json:
        _write_json_report(result)
    else:
        _write_text_report(result)

    if update_baseline:
        return EXIT_OK
    if result.comparison.has_new_errors:
        return EXIT_FAILED
    if ratchet and result.comparison.ratchet_breached:
        sys.stderr.write(
            f"ratchet: {len(result.comparison.resolved)} baselined violations were "
            "resolved; run with --update-baseline to record the improvement\n"
        )
        return EXIT_FAILED
    return EXIT_OK


def _handle_graph(root: Path, out: str | None) -> int:
    try:
        config = load_config(root)
    except ConfigError as exc:
        sys.stderr.write(f"config error: {exc}\n")
        return EXIT_CONFIG_ERROR

    files = find_source_files(
        root,
        output_dir=config.output_dir,
        include_patterns=config.include or None,
        exclude_patterns=config.exclude or None,
        nested_gitignore=config.nested_gitignore,
    )
    try:
        graph = build_project_graph(root, files, config, tsconfig=load_tsconfig(root))
    except ConfigError as exc:
        sys.stderr.write(f"config error: {exc}\n")
        return EXIT_CONFIG_ERROR
    payload = {"graph": graph.to_json_dict(), "stats": get_graph_stats(graph).to_json_dict()}

    if out is None:
        sys.stdout.write(dumps_json(payload).decode("utf-8"))
        sys.stdout.write("\n")
    else:
        write_json_atomic(Path(out).expanduser().resolve(), payload)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose)
    root = Path(args.root).expanduser().resolve()

    if args.command == "lint":
        return _handle_lint(
            root,
            update_baseline=args.update_baseline,
            ratchet=args.ratchet,
            no_cache=args.no_cache,
            as_json=args.json,
        )

    if args.command == "graph":
        return _handle_graph(root, args.out)

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
