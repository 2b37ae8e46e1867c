"""Command line entry point.

Usage:
    gh-release-notes --owner myorg --repository api \\
        --action recent --hours 24 --branch main --output notes.md

    gh-release-notes --owner myorg --repository api \\
        --action milestone --milestone "v2.3" --output notes.md

    gh-release-notes --owner myorg --repository api \\
        --action update --name v2.3.0 --input notes.md

Exit status is 0 when the action completes (an unknown milestone is
reported but is not an error) and 1 for configuration problems, missing
release notes, and any failure talking to GitHub.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from gh_release_notes import __version__
from gh_release_notes.collectors import (
    milestone_issues,
    recent_pull_requests,
    update_release,
)
from gh_release_notes.config import (
    ConfigurationError,
    Settings,
    load_file_config,
    resolve_settings,
)
from gh_release_notes.github import GitHubClient, GitHubClientProtocol
from gh_release_notes.logging_config import get_logger, setup_logging
from gh_release_notes.schemas import Action

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gh-release-notes",
        description="Collect release notes from GitHub and update releases",
    )
    parser.add_argument("--token", "-t", help="GitHub access token (or GITHUB_TOKEN)")
    parser.add_argument("--host", help="GitHub API base URL (or GITHUB_API_URL)")
    parser.add_argument("--owner", "-o", help="GitHub owner/organization")
    parser.add_argument("--repository", "-r", help="Repository name")
    parser.add_argument("--action", "-a", help="recent, milestone or update")
    parser.add_argument("--hours", type=float, help="Time window in hours (recent)")
    parser.add_argument(
        "--milestone", "-m",
        help="Milestone to collect release notes from (milestone)",
    )
    parser.add_argument("--branch", "-b", help="Base branch to pull recent PRs from (recent)")
    parser.add_argument(
        "--input", "-i",
        type=Path,
        help="File with the release notes to add (update)",
    )
    parser.add_argument("--output", type=Path, help="Output file for collected release notes")
    parser.add_argument("--name", "-n", help="Tag of the release to update (update)")
    parser.add_argument("--config", "-c", type=Path, help="YAML file with default options")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR (or LOG_LEVEL)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def run_action(
    settings: Settings,
    client: GitHubClientProtocol | None = None,
) -> int:
    """Run the configured action and return the process exit status.

    Args:
        settings: Resolved settings for this run
        client: GitHub client to use. A GitHubClient is created (and
                closed afterwards) when None.

    Raises:
        httpx.HTTPError: If a request to GitHub fails
    """
    if client is None:
        async with GitHubClient(
            token=settings.token,
            host=settings.host,
            per_page=settings.per_page,
        ) as github:
            return await run_action(settings, github)

    if settings.action is Action.RECENT:
        await recent_pull_requests(client, settings.notes)
    elif settings.action is Action.MILESTONE:
        # A missing milestone has already been reported; it is not a failure.
        await milestone_issues(client, settings.notes)
    elif settings.action is Action.UPDATE:
        if await update_release(client, settings.notes) is None:
            return EXIT_FAILURE
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])

    Returns:
        Process exit status
    """
    load_dotenv()
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as e:
        # --help and --version exit 0; usage errors are setup failures.
        if not e.code:
            raise
        return EXIT_FAILURE

    try:
        setup_logging(log_level=args.log_level)
    except ValueError as e:
        print(f"gh-release-notes: {e}", file=sys.stderr)
        return EXIT_FAILURE

    logger.info("gh_release_notes", version=__version__)

    try:
        file_config = load_file_config(args.config) if args.config else None
        settings = resolve_settings(args, file_config)
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e))
        return EXIT_FAILURE

    try:
        return asyncio.run(run_action(settings))
    except Exception as e:
        logger.error(
            "action_failed",
            action=settings.action.value,
            error=str(e),
            exc_info=True,
        )
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
