"""Pydantic models for the data that flows through the note collectors.

The hosting API returns large JSON objects; these models keep only the
fields the collectors actually read. Extra fields are ignored so that a
richer API response never breaks parsing.

Key design decisions:
- Entry is frozen: once a pull request or issue is turned into an output
  line it does not change
- NotesConfig is the explicit parameter struct every action receives,
  instead of reading command-line options from a global
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Action(StrEnum):
    """What the tool should do in this run.

    RECENT: Collect pull requests merged within the last N hours
    MILESTONE: Collect every issue attached to a named milestone
    UPDATE: Append prepared notes to an existing release description
    """

    RECENT = "recent"
    MILESTONE = "milestone"
    UPDATE = "update"


# ---------------------------------------------------------------------------
# Output Schemas
# ---------------------------------------------------------------------------


class Entry(BaseModel):
    """One line of release notes, built from a pull request or an issue.

    Attributes:
        number: Pull request or issue number
        title: Pull request or issue title
    """

    model_config = ConfigDict(frozen=True)

    number: int = Field(..., description="Pull request or issue number")
    title: str = Field(..., description="Pull request or issue title")

    def format(self) -> str:
        """Render the entry as a release notes line, newline included."""
        return f"- [{self.number}] {self.title}\n"


def format_entries(entries: list[Entry]) -> str:
    """Join entries into the text written to the output file."""
    return "".join(entry.format() for entry in entries)


# ---------------------------------------------------------------------------
# API Records
# ---------------------------------------------------------------------------


class PullRequest(BaseModel):
    """A pull request as returned by the list endpoint.

    Attributes:
        number: Pull request number
        title: Pull request title
        merged_at: When it was merged; None for open or closed-unmerged PRs
    """

    model_config = ConfigDict(extra="ignore")

    number: int
    title: str
    merged_at: datetime | None = None

    @field_validator("merged_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        """Timestamps without an offset are taken to be UTC."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def to_entry(self) -> Entry:
        return Entry(number=self.number, title=self.title)


class Issue(BaseModel):
    """An issue (or pull request, GitHub lists both) attached to a milestone."""

    model_config = ConfigDict(extra="ignore")

    number: int
    title: str

    def to_entry(self) -> Entry:
        return Entry(number=self.number, title=self.title)


class Milestone(BaseModel):
    """A named grouping of issues, referenced by number in API queries."""

    model_config = ConfigDict(extra="ignore")

    number: int
    title: str


class Release(BaseModel):
    """A published release.

    Attributes:
        id: Internal release identifier, used to target updates
        tag_name: Tag the release was looked up by
        body: Current description; None when the release has none
    """

    model_config = ConfigDict(extra="ignore")

    id: int
    tag_name: str | None = None
    body: str | None = None


# ---------------------------------------------------------------------------
# Action Parameters
# ---------------------------------------------------------------------------


class NotesConfig(BaseModel):
    """Parameters for a single collector or updater run.

    Attributes:
        owner: Repository owner or organization
        repo: Repository name
        branch: Base branch filter for recent pull requests
        hours: Recency window in hours
        milestone: Milestone title to collect issues for
        input: File holding prepared release notes (update)
        output: File the collected notes are written to
        name: Tag of the release to update
    """

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    branch: str | None = None
    hours: float | None = Field(None, gt=0, description="Recency window in hours")
    milestone: str | None = None
    input: Path | None = None
    output: Path | None = None
    name: str | None = None
