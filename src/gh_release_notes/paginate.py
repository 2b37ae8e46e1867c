"""Page-by-page walking of GitHub list endpoints.

Both collectors follow the same protocol: request page 1, 2, 3, ... until
a page comes back empty, or until something in the data says the rest is
not worth fetching. This module expresses that protocol once:

- iter_pages() is a lazy async sequence of pages. Page n+1 is requested
  only when the consumer asks for it, so breaking out of the loop is all
  it takes to stop fetching.
- collect() walks that sequence record by record, turning accepted
  records into Entry objects and ending the whole walk the first time the
  stop predicate fires.

Errors raised by the fetch function propagate unchanged.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

from gh_release_notes.logging_config import get_logger
from gh_release_notes.schemas import Entry

logger = get_logger(__name__)

Record = dict[str, Any]
PageFetcher = Callable[[int], Awaitable[list[Record] | None]]
Accept = Callable[[Record], Entry | None]
StopPredicate = Callable[[Record], bool]


async def iter_pages(fetch: PageFetcher, start: int = 1) -> AsyncGenerator[list[Record], None]:
    """Yield pages from `fetch` until one is empty.

    Args:
        fetch: Coroutine function taking a 1-based page number
        start: First page to request

    Yields:
        Each non-empty page, in order
    """
    page = start
    while True:
        records = await fetch(page)
        logger.debug("page_fetched", page=page, records=len(records or []))
        if not records:
            return
        yield records
        page += 1


async def collect(
    fetch: PageFetcher,
    accept: Accept,
    stop: StopPredicate | None = None,
) -> list[Entry]:
    """Walk every page and gather entries.

    For each record in page order, `stop` is checked first; when it
    returns True nothing after that record is looked at and no further
    page is requested. Otherwise `accept` decides whether the record
    becomes an entry (it returns None to skip the record).

    Args:
        fetch: Coroutine function taking a 1-based page number
        accept: Turns a record into an Entry, or None to skip it
        stop: Optional predicate ending the whole collection

    Returns:
        Entries in the order they were discovered
    """
    entries: list[Entry] = []
    pages = iter_pages(fetch)
    try:
        async for records in pages:
            for record in records:
                if stop is not None and stop(record):
                    logger.debug("collection_stopped", number=record.get("number"))
                    return entries
                entry = accept(record)
                if entry is not None:
                    entries.append(entry)
    finally:
        await pages.aclose()
    return entries
