"""Range-bounded search over a reverse-chronological report listing.

Workflow:

- Validate the search configuration (range, strategy, transport, selectors).
- Open the page transport (requests, Playwright or Selenium).
- Fetch the first listing page and parse every row for a date and title.
- Stop on the first page holding an entry inside the target range, or once
  the oldest date on a page precedes the range (the listing is newest first),
  or when the paginator runs out of pages.

The listing order is assumed, never verified. If the site stops sorting by
date the search still terminates, but only when pagination ends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from . import config, strategies
from .config import SearchConfig
from .config_validation import Entrypoint, validate_search_config
from .logging_utils import _search_event
from .pagination import Cursor, PageFetcher, Paginator, RateLimiter, build_paginator
from .parser import LogEntry, make_document, parse_page
from .utils import log_line


class SearchOutcome(str, Enum):
    FOUND = "found"
    EXHAUSTED_OLDER = "exhausted_older"
    EXHAUSTED_PAGES = "exhausted_pages"


@dataclass
class SearchResult:
    outcome: SearchOutcome
    entries: List[LogEntry] = field(default_factory=list)
    page: int = 0
    url: Optional[str] = None
    pages_scanned: int = 0
    oldest_date: Optional[date] = None

    @property
    def found(self) -> bool:
        return self.outcome is SearchOutcome.FOUND

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "entries": [
                {"title": entry.title, "date": entry.date.isoformat()} for entry in self.entries
            ],
            "page": self.page,
            "url": self.url,
            "pages_scanned": self.pages_scanned,
            "oldest_date": self.oldest_date.isoformat() if self.oldest_date else None,
        }


def search(paginator: Paginator, search_config: SearchConfig) -> SearchResult:
    """Walk listing pages until a terminal outcome is reached.

    Transport failures raised by the paginator propagate unchanged.
    """

    date_range = search_config.date_range
    selectors = search_config.site.selectors
    cursor: Cursor = paginator.first_cursor()
    pages_scanned = 0

    while True:
        log_line(f"Fetching page {cursor.page}...")
        markup = paginator.fetch(cursor)
        document = make_document(markup)
        page_result = parse_page(document, date_range, selectors)
        pages_scanned += 1

        _search_event(
            "page",
            page=cursor.page,
            url=cursor.url,
            rows=page_result.rows_seen,
            dated=page_result.rows_dated,
            matches=len(page_result.matches),
            oldest=page_result.oldest_date,
        )

        if page_result.matches:
            return SearchResult(
                SearchOutcome.FOUND,
                entries=list(page_result.matches),
                page=cursor.page,
                url=cursor.url,
                pages_scanned=pages_scanned,
                oldest_date=page_result.oldest_date,
            )

        if page_result.oldest_date is not None:
            log_line(f"  Oldest date on page: {page_result.oldest_date.isoformat()}")
            if page_result.oldest_date < date_range.start:
                return SearchResult(
                    SearchOutcome.EXHAUSTED_OLDER,
                    page=cursor.page,
                    url=cursor.url,
                    pages_scanned=pages_scanned,
                    oldest_date=page_result.oldest_date,
                )
        else:
            log_line("  No dates found on this page")

        next_cursor = paginator.advance(cursor, document)
        if next_cursor is None:
            return SearchResult(
                SearchOutcome.EXHAUSTED_PAGES,
                page=cursor.page,
                url=cursor.url,
                pages_scanned=pages_scanned,
                oldest_date=page_result.oldest_date,
            )
        cursor = next_cursor


def open_transport(search_config: SearchConfig) -> PageFetcher:
    """Create the page transport named by ``search_config.transport``."""

    site = search_config.site
    transport = search_config.transport
    if transport == strategies.PLAYWRIGHT:
        from .browser import PlaywrightSession

        return PlaywrightSession(
            headless=site.headless,
            cookies=site.cookies,
            cookie_url=site.origin,
            page_wait_seconds=site.page_wait_seconds,
            wait_for_selector=site.selectors.wait_for_selector,
        )
    if transport == strategies.SELENIUM:
        from .selenium_client import SeleniumSession

        return SeleniumSession(
            headless=site.headless,
            cookies=site.cookies,
            cookie_url=site.origin,
            page_wait_seconds=site.page_wait_seconds,
            wait_for_selector=site.selectors.wait_for_selector,
        )
    from .http_client import HttpFetcher

    fetcher: PageFetcher = HttpFetcher(cookies=site.cookies)
    if config.RECORD_REPLAY_FIXTURES:
        from .replay_harness import RecordingFetcher

        fetcher = RecordingFetcher(fetcher)
    return fetcher


def run_search(
    search_config: SearchConfig,
    *,
    fetcher: Optional[PageFetcher] = None,
    limiter: Optional[RateLimiter] = None,
    entrypoint: Entrypoint = "cli",
) -> SearchResult:
    """Validate, open the transport, search, and always release the session.

    ``fetcher`` replaces the configured transport (replay fixtures, tests).
    """

    validate_search_config(search_config, entrypoint=entrypoint)

    _search_event(
        "search",
        phase="start",
        range=str(search_config.date_range),
        strategy=search_config.strategy,
        transport=search_config.transport if fetcher is None else type(fetcher).__name__,
        start_url=search_config.site.start_url,
    )

    transport = fetcher if fetcher is not None else open_transport(search_config)
    try:
        paginator = build_paginator(search_config, transport, limiter=limiter)
    except ValueError:
        transport.close()
        raise

    try:
        result = search(paginator, search_config)
    except Exception as exc:
        _search_event("error", phase="search", error=str(exc), error_code=getattr(exc, "error_code", None))
        raise
    finally:
        paginator.close()

    _search_event(
        "search",
        phase="end",
        outcome=result.outcome.value,
        page=result.page,
        pages_scanned=result.pages_scanned,
        matches=len(result.entries),
    )
    return result


__all__ = ["SearchOutcome", "SearchResult", "open_transport", "run_search", "search"]
