"""
CLI entry point for reposcore. Wires the pipeline: ingest -> dump -> score -> resolve -> merge -> report
"""

import argparse
import logging
import os
import sys
from datetime import date
from typing import List, Optional, Sequence, Tuple

from ingest.github import GitHubClient
from normalize.identity import IdentityMapError, IdentityResolver
from normalize.models import LabelCounts
from report.formats import normalize_formats
from report.renderer import ReportDispatcher
from runner import BatchRunner, RepoOutcome
from scoring.utils import load_preset, load_weights

DEFAULT_OUTPUT_DIR = 'output'
LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(message)s'


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}' (expected YYYY-MM-DD)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reposcore",
        description="Score contributors of GitHub repositories by labelled pull requests and issues",
    )
    parser.add_argument("repos", nargs="+", metavar="owner/repo", help="Repositories to analyze, separated by spaces")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-o", "--output", type=str, default=None, help=f"Output directory (default: '{DEFAULT_OUTPUT_DIR}')")
    parser.add_argument("-f", "--format", nargs="+", default=None, help="Output formats: text, csv, chart, html, all (default: all)")
    parser.add_argument("-t", "--token", type=str, default=None, help="GitHub access token (or set GITHUB_TOKEN env var)")
    parser.add_argument("--include-user", nargs="+", default=None, dest="include_users", metavar="ID", help="Only report these user ids (case-insensitive)")
    parser.add_argument("--since", type=_iso_date, default=None, help="Only count PRs and issues created on or after this date (YYYY-MM-DD)")
    parser.add_argument("--until", type=_iso_date, default=None, help="Only count PRs and issues created on or before this date (YYYY-MM-DD)")
    parser.add_argument("--user-info", type=str, default=None, help="Path to a JSON or CSV file mapping user id -> display name")
    parser.add_argument("--preset", type=str, default=None, help="Named weight preset from the weights configuration (e.g. flat, docs_focused)")
    return parser


def _configure_logging(verbose: bool):
    logging.basicConfig(stream=sys.stdout, level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')


def _resolve_token(args) -> Optional[str]:
    """CLI flag takes precedence over the GITHUB_TOKEN environment variable."""
    return args.token or os.getenv('GITHUB_TOKEN') or None


def _print_default_notices(args):
    if not args.output or not args.output.strip():
        print(f"No output directory given; using default '{DEFAULT_OUTPUT_DIR}/'.")
    if not args.format:
        print("No output format given; using default 'all'.")


def print_summary(summaries: Sequence[Tuple[str, LabelCounts]]):
    if not summaries:
        return
    rule = '-' * 52
    print("\nSummary across repositories")
    print(rule)
    print(f"{'Repo':<30} {'B/F':>5} {'Doc':>5} {'typo':>5}")
    print(rule)
    for repo_name, counts in summaries:
        print(f"{repo_name:<30} {counts.bug:>5} {counts.documentation:>5} {counts.typo:>5}")


def print_failed_repos(failures: Sequence[RepoOutcome]):
    if not failures:
        return
    print("\nRepositories that were not processed:")
    for outcome in failures:
        print(f"- {outcome.slug} ({outcome.describe()})")


def main(argv: Optional[List[str]] = None, collector=None, dispatcher=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.since and args.until and args.since > args.until:
        parser.error("--since must not be later than --until")

    _configure_logging(args.verbose)

    try:
        resolver = IdentityResolver.from_path(args.user_info)
    except IdentityMapError as exc:
        print(f"Invalid user-info format: {exc}")
        sys.exit(1)

    _print_default_notices(args)
    formats = normalize_formats(args.format)
    output_dir = args.output.strip() if args.output and args.output.strip() else DEFAULT_OUTPUT_DIR
    try:
        weights = load_preset(args.preset) if args.preset else load_weights()
    except ValueError as exc:
        print(f"Invalid weights configuration: {exc}")
        sys.exit(1)

    runner = BatchRunner(
        collector=collector or GitHubClient(_resolve_token(args)),
        dispatcher=dispatcher or ReportDispatcher(),
        formats=formats,
        output_dir=output_dir,
        since=args.since,
        until=args.until,
        include_users=args.include_users,
        resolver=resolver,
        weights=weights,
    )
    result = runner.run(args.repos)

    if result.total_path:
        print(f"\nWrote run-wide totals to {result.total_path}")
    print_summary(result.summaries)
    print_failed_repos(result.failures)
    return 0


if __name__ == "__main__":
    sys.exit(main())
