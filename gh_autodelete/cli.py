"""CLI entry point for gh-autodelete."""

from __future__ import annotations

import argparse
import functools
import json
import os
import sys

from gh_autodelete.client import GitHubClient
from gh_autodelete.deadline import Deadline
from gh_autodelete.errors import EXIT_SUCCESS, AppError
from gh_autodelete.logging_utils import setup_logging
from gh_autodelete.models import DEFAULT_API_URL, DEFAULT_RATE_LIMIT_WAIT, DEFAULT_TIMEOUT, ConfigOutcome, Mode
from gh_autodelete.orchestrator import ConfigOrchestrator
from gh_autodelete.parser import parse_repository


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gh-autodelete",
        description="Enable automatic deletion of head branches after pull requests merge.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Token lookup order:
    1. --token
    2. GITHUB_TOKEN environment variable
    3. GitHub CLI login (~/.config/gh/hosts.yml)

Exit codes:
    0 success, 1 other failure, 2 invalid arguments, 3 authentication failed,
    4 insufficient permissions, 5 repository not found, 6 rate limited

Examples:
    # Enable the setting
    gh-autodelete octocat/hello-world

    # Show the current state only
    gh-autodelete https://github.com/octocat/hello-world --check

    # See what would happen
    gh-autodelete git@github.com:octocat/hello-world.git --dry-run
""",
    )
    parser.add_argument("repository", help="owner/repo, https://github.com/owner/repo or git@github.com:owner/repo")
    parser.add_argument("--token", default=None, help="GitHub token (overrides GITHUB_TOKEN and the gh CLI login)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--check", action="store_true", help="Only report the current setting")
    mode.add_argument("--dry-run", action="store_true", help="Show what would be done without making changes")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--json", action="store_true", dest="json_output", help="Print the result as JSON and log JSON lines to stderr"
    )
    parser.add_argument(
        "--api-url", default=None, help=f"GitHub API URL (default: from GITHUB_API_URL env or {DEFAULT_API_URL})"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Overall timeout in seconds for each API call, retries included (default: {DEFAULT_TIMEOUT:g})",
    )
    parser.add_argument(
        "--rate-limit-wait",
        type=float,
        default=DEFAULT_RATE_LIMIT_WAIT,
        help="Longest wait in seconds for a rate limit reset before retrying once; must fit in --timeout "
        "(default: fail immediately)",
    )
    return parser


def run(args: argparse.Namespace, orchestrator: ConfigOrchestrator, deadline: Deadline) -> ConfigOutcome:
    """Parse the repository, authenticate, then check or configure."""
    ref = parse_repository(args.repository)
    orchestrator.prepare(args.token, deadline)
    if args.check:
        return orchestrator.check_status(ref, deadline)
    mode = Mode.DRY_RUN if args.dry_run else Mode.APPLY
    return orchestrator.configure(ref, mode, deadline)


def render(outcome: ConfigOutcome, args: argparse.Namespace) -> list[str]:
    name = outcome.full_name
    if args.check:
        lines = [f"Repository: {name}", f"Default branch: {outcome.default_branch}"]
        if outcome.now_enabled:
            lines.append("Auto-delete branches: enabled")
        else:
            lines += ["Auto-delete branches: disabled", "To enable, run without --check flag"]
        return lines
    if args.dry_run:
        if outcome.already_enabled:
            return [f"Auto-delete branches already enabled for {name}", "No changes needed"]
        return [f"[DRY-RUN] Would enable auto-delete branches for {name}", "No changes made"]
    if outcome.already_enabled:
        return [f"✓ Auto-delete branches already enabled for {name}"]
    return [f"✓ Successfully enabled auto-delete branches for {name}"]


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(json_mode=args.json_output, verbose=args.verbose)

    api_url = args.api_url or os.environ.get("GITHUB_API_URL") or DEFAULT_API_URL
    client_factory = functools.partial(
        GitHubClient, base_url=api_url, timeout=args.timeout, rate_limit_wait=args.rate_limit_wait
    )
    orchestrator = ConfigOrchestrator(client_factory=client_factory)

    if args.dry_run:
        logger.debug("DRY-RUN MODE - no changes will be made")

    try:
        outcome = run(args, orchestrator, Deadline())
    except AppError as e:
        logger.error(e.message, extra={"app_error": e})
        return e.exit_code
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    logger.debug(
        f"Done: {outcome.full_name} already_enabled={outcome.already_enabled} now_enabled={outcome.now_enabled}",
        extra={"outcome": outcome},
    )
    if args.json_output:
        print(json.dumps(outcome.to_dict()))
    else:
        for line in render(outcome, args):
            print(line)
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
