"""Tests for the shared pagination protocol.

These tests verify that the page walker:
- Requests pages 1, 2, 3, ... and stops at the first empty page
- Never requests a page after the stop predicate fires
- Lets fetch errors propagate without retrying

Run with: pytest tests/test_paginate.py -v
"""

from __future__ import annotations

import httpx
import pytest

from gh_release_notes.paginate import collect, iter_pages
from gh_release_notes.schemas import Entry


class FakePages:
    """Page source that records every page number it is asked for."""

    def __init__(self, pages: list[list[dict]]) -> None:
        self.pages = pages
        self.requested: list[int] = []

    async def __call__(self, page: int) -> list[dict]:
        self.requested.append(page)
        if page <= len(self.pages):
            return self.pages[page - 1]
        return []


def to_entry(record: dict) -> Entry:
    return Entry(number=record["number"], title=record["title"])


def records(*numbers: int) -> list[dict]:
    return [{"number": n, "title": f"Item {n}"} for n in numbers]


# ---------------------------------------------------------------------------
# iter_pages
# ---------------------------------------------------------------------------


class TestIterPages:
    """Tests for the lazy page sequence."""

    @pytest.mark.asyncio
    async def test_yields_until_empty_page(self) -> None:
        fetch = FakePages([records(1, 2), records(3)])
        pages = [page async for page in iter_pages(fetch)]
        assert pages == [records(1, 2), records(3)]
        assert fetch.requested == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_none_page_ends_sequence(self) -> None:
        async def fetch(page: int) -> None:
            return None

        pages = [page async for page in iter_pages(fetch)]
        assert pages == []

    @pytest.mark.asyncio
    async def test_is_lazy(self) -> None:
        """Breaking out after the first page must not fetch the second."""
        fetch = FakePages([records(1), records(2), records(3)])
        async for _ in iter_pages(fetch):
            break
        assert fetch.requested == [1]

    @pytest.mark.asyncio
    async def test_restarts_from_page_one(self) -> None:
        fetch = FakePages([records(1)])
        first = [page async for page in iter_pages(fetch)]
        second = [page async for page in iter_pages(fetch)]
        assert first == second
        assert fetch.requested == [1, 2, 1, 2]


# ---------------------------------------------------------------------------
# collect
# ---------------------------------------------------------------------------


class TestCollect:
    """Tests for record-level collection with a stop predicate."""

    @pytest.mark.asyncio
    async def test_collects_all_pages_in_order(self) -> None:
        fetch = FakePages([records(5, 4), records(3, 2), records(1)])
        entries = await collect(fetch, to_entry)
        assert [e.number for e in entries] == [5, 4, 3, 2, 1]

    @pytest.mark.asyncio
    async def test_accept_can_skip_records(self) -> None:
        fetch = FakePages([records(1, 2, 3, 4)])
        entries = await collect(
            fetch, lambda r: to_entry(r) if r["number"] % 2 == 0 else None
        )
        assert [e.number for e in entries] == [2, 4]

    @pytest.mark.asyncio
    async def test_stop_ends_whole_collection(self) -> None:
        """Records after the stop, on the same page or later, are ignored."""
        fetch = FakePages([records(1, 2), records(3, 4), records(5, 6)])
        entries = await collect(fetch, to_entry, stop=lambda r: r["number"] == 3)
        assert [e.number for e in entries] == [1, 2]
        assert fetch.requested == [1, 2]

    @pytest.mark.asyncio
    async def test_empty_first_page(self) -> None:
        fetch = FakePages([])
        assert await collect(fetch, to_entry) == []
        assert fetch.requested == [1]

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self) -> None:
        calls = []

        async def fetch(page: int) -> list[dict]:
            calls.append(page)
            if page == 2:
                raise httpx.ConnectError("connection refused")
            return records(page)

        with pytest.raises(httpx.ConnectError):
            await collect(fetch, to_entry)
        assert calls == [1, 2]
