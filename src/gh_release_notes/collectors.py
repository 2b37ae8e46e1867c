"""Release note collectors and the release updater.

Each function here implements one action of the command line tool:

- recent_pull_requests(): pull requests merged within the last N hours
- milestone_issues(): every issue attached to an open milestone
- update_release(): append a prepared notes file to a release description

Collection and persistence are two separate stages. All pages are
fetched and formatted first; the output file is written once, at the
end, so a failure halfway through paging never leaves a partial file.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

from gh_release_notes.github import GitHubClientProtocol
from gh_release_notes.logging_config import get_logger
from gh_release_notes.paginate import Record, collect
from gh_release_notes.schemas import (
    Entry,
    Issue,
    Milestone,
    NotesConfig,
    PullRequest,
    Release,
    format_entries,
)

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def write_notes(path: str | Path, text: str) -> None:
    """Overwrite `path` with the collected notes (UTF-8)."""
    Path(path).write_text(text, encoding="utf-8")


def _finish(entries: list[Entry], output: Path | None) -> str:
    text = format_entries(entries)
    if output is not None:
        write_notes(output, text)
        logger.info("notes_written", path=str(output), entries=len(entries))
    return text


# ---------------------------------------------------------------------------
# Recent pull requests
# ---------------------------------------------------------------------------


async def recent_pull_requests(
    client: GitHubClientProtocol,
    config: NotesConfig,
    now: datetime | None = None,
) -> str:
    """Collect pull requests merged within the last `config.hours` hours.

    Closed pull requests are listed newest-updated first. Unmerged ones
    are skipped. The first merged pull request that falls outside the
    window ends the collection: everything after it is assumed older,
    so no further records or pages are looked at.

    Args:
        client: GitHub client
        config: Needs owner, repo and hours; branch and output are optional
        now: Reference time for ages (defaults to the current UTC time)

    Returns:
        The formatted notes, also written to config.output if set

    Raises:
        ValueError: If config.hours is not set
        httpx.HTTPStatusError: If a page request fails
    """
    if config.hours is None:
        raise ValueError("hours is required to collect recent pull requests")

    reference = now or datetime.now(UTC)
    window = timedelta(hours=config.hours)

    logger.info(
        "collection_started",
        action="recent",
        owner=config.owner,
        repo=config.repo,
        branch=config.branch,
        hours=config.hours,
    )

    async def fetch(page: int) -> list[Record]:
        return await client.list_pull_requests(
            config.owner,
            config.repo,
            state="closed",
            base=config.branch,
            sort="updated",
            direction="desc",
            page=page,
        )

    def too_old(record: Record) -> bool:
        merged_at = PullRequest.model_validate(record).merged_at
        return merged_at is not None and reference - merged_at >= window

    def accept(record: Record) -> Entry | None:
        pull_request = PullRequest.model_validate(record)
        if pull_request.merged_at is None:
            return None
        return pull_request.to_entry()

    entries = await collect(fetch, accept, stop=too_old)
    logger.info("collection_complete", action="recent", entries=len(entries))
    return _finish(entries, config.output)


# ---------------------------------------------------------------------------
# Milestone issues
# ---------------------------------------------------------------------------


async def find_milestone(
    client: GitHubClientProtocol, owner: str, repo: str, title: str
) -> Milestone | None:
    """Look up an open milestone by exact (case-sensitive) title.

    Only the first page of open milestones is searched. If several
    milestones share the title, the first one listed wins.
    """
    for record in await client.list_milestones(owner, repo, state="open"):
        milestone = Milestone.model_validate(record)
        if milestone.title == title:
            return milestone
    return None


async def milestone_issues(
    client: GitHubClientProtocol,
    config: NotesConfig,
) -> str | None:
    """Collect every issue attached to the milestone named `config.milestone`.

    Args:
        client: GitHub client
        config: Needs owner, repo and milestone; output is optional

    Returns:
        The formatted notes (also written to config.output if set), or
        None if no open milestone has that title. Nothing is written in
        that case.

    Raises:
        ValueError: If config.milestone is not set
        httpx.HTTPStatusError: If a request fails
    """
    if config.milestone is None:
        raise ValueError("milestone is required to collect milestone issues")

    milestone = await find_milestone(
        client, config.owner, config.repo, config.milestone
    )
    if milestone is None:
        logger.warning(
            "milestone_not_found",
            milestone=config.milestone,
            owner=config.owner,
            repo=config.repo,
        )
        return None

    logger.info(
        "collection_started",
        action="milestone",
        owner=config.owner,
        repo=config.repo,
        milestone=milestone.title,
        milestone_number=milestone.number,
    )

    async def fetch(page: int) -> list[Record]:
        return await client.list_issues(
            config.owner,
            config.repo,
            milestone=milestone.number,
            state="all",
            sort="updated",
            direction="desc",
            page=page,
        )

    entries = await collect(
        fetch, lambda record: Issue.model_validate(record).to_entry()
    )
    logger.info("collection_complete", action="milestone", entries=len(entries))
    return _finish(entries, config.output)


# ---------------------------------------------------------------------------
# Release update
# ---------------------------------------------------------------------------


def merge_release_body(existing: str | None, notes: str) -> str:
    """Append `notes` to an existing release description.

    >>> merge_release_body("A", "B\\n")
    'A\\nB\\n'
    >>> merge_release_body(None, "B\\n")
    '\\nB\\n'
    """
    return (existing or "") + "\n" + notes


async def update_release(
    client: GitHubClientProtocol,
    config: NotesConfig,
) -> str | None:
    """Append the notes in `config.input` to the release tagged `config.name`.

    The release is looked up by tag, but the update is addressed by the
    release's numeric id.

    Args:
        client: GitHub client
        config: Needs owner, repo, name and input

    Returns:
        The new release body, or None if there were no release notes to
        add (input unset or missing). No request is made in that case.

    Raises:
        ValueError: If config.name is not set
        httpx.HTTPStatusError: If the release does not exist or the
            update is rejected
    """
    if config.name is None:
        raise ValueError("name (release tag) is required to update a release")

    if config.input is None or not config.input.is_file():
        logger.error(
            "no_release_notes_found",
            input=str(config.input) if config.input else None,
        )
        return None

    # Undecodable bytes become U+FFFD.
    notes = config.input.read_text(encoding="utf-8", errors="replace")

    release = Release.model_validate(
        await client.get_release_by_tag(config.owner, config.repo, config.name)
    )
    logger.info(
        "release_fetched",
        tag=config.name,
        release_id=release.id,
        body_length=len(release.body or ""),
    )

    body = merge_release_body(release.body, notes)
    await client.update_release(config.owner, config.repo, release.id, body=body)
    logger.info("release_updated", tag=config.name, release_id=release.id)
    return body
