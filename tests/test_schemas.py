"""Tests for the pydantic models.

Run with: pytest tests/test_schemas.py -v
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from gh_release_notes.schemas import (
    Action,
    Entry,
    NotesConfig,
    PullRequest,
    Release,
    format_entries,
)


class TestEntry:
    """Tests for the formatted release notes line."""

    def test_format(self) -> None:
        assert Entry(number=42, title="Add caching layer").format() == "- [42] Add caching layer\n"

    def test_is_frozen(self) -> None:
        entry = Entry(number=1, title="x")
        with pytest.raises(ValidationError):
            entry.title = "y"

    def test_format_entries_keeps_order(self) -> None:
        entries = [Entry(number=3, title="c"), Entry(number=1, title="a")]
        assert format_entries(entries) == "- [3] c\n- [1] a\n"

    def test_format_entries_empty(self) -> None:
        assert format_entries([]) == ""


class TestRecords:
    """Tests for parsing API records."""

    def test_pull_request_parses_merged_at(self) -> None:
        pr = PullRequest.model_validate({
            "number": 7,
            "title": "Fix bug",
            "merged_at": "2026-03-01T10:00:00Z",
            "user": {"login": "dev"},
            "labels": [],
        })
        assert pr.merged_at == datetime(2026, 3, 1, 10, 0, tzinfo=UTC)
        assert pr.to_entry() == Entry(number=7, title="Fix bug")

    def test_merged_at_without_offset_is_utc(self) -> None:
        pr = PullRequest.model_validate(
            {"number": 7, "title": "x", "merged_at": "2026-03-01T10:00:00"}
        )
        assert pr.merged_at == datetime(2026, 3, 1, 10, 0, tzinfo=UTC)

    def test_pull_request_without_merge(self) -> None:
        pr = PullRequest.model_validate({"number": 7, "title": "x", "merged_at": None})
        assert pr.merged_at is None

    def test_missing_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PullRequest.model_validate({"title": "no number"})

    def test_release_body_optional(self) -> None:
        assert Release.model_validate({"id": 1}).body is None


class TestNotesConfig:
    """Tests for the action parameter struct."""

    def test_hours_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            NotesConfig(owner="o", repo="r", hours=-1)

    def test_action_values(self) -> None:
        assert [a.value for a in Action] == ["recent", "milestone", "update"]
