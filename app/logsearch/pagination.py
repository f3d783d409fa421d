"""Pagination drivers: how the search moves from one listing page to the next.

Three strategies share one contract so the search loop is written once:

- ``QueryParamPaginator`` substitutes the page number into a URL template.
- ``LinkFollowingPaginator`` follows the page's own "next" anchor.
- ``InteractivePaginator`` clicks the "next" control in a live browser tab,
  falling back to the anchor scan when no control resolves.

``advance`` is only called once the current page has been judged, so the
interactive strategy never clicks past a page the search still needs.
"""
from __future__ import annotations

import hashlib
import time
import urllib.parse
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol, Set

from bs4 import BeautifulSoup, Tag

from . import strategies
from .config import SearchConfig, SiteConfig
from .logging_utils import _search_event
from .parser import find_rows, make_document
from .selectors import ListingSelectors
from .utils import log_line


class PageFetcher(Protocol):
    def fetch(self, url: str) -> str: ...

    def close(self) -> None: ...


class BrowserSession(PageFetcher, Protocol):
    @property
    def current_url(self) -> str: ...

    def goto(self, url: str) -> None: ...

    def content(self) -> str: ...

    def click_next(self, selectors: Iterable[str]) -> Optional[str]: ...


@dataclass(frozen=True)
class Cursor:
    """Position in the page sequence (1-based page number and its URL)."""

    page: int
    url: Optional[str] = None

    def next(self, url: Optional[str]) -> "Cursor":
        return Cursor(self.page + 1, url)


class RateLimiter:
    """Enforce a minimum interval between consecutive page requests."""

    def __init__(
        self,
        min_interval: float,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_interval = max(0.0, float(min_interval or 0.0))
        self._sleep = sleep
        self._clock = clock
        self._last: Optional[float] = None

    def wait(self) -> None:
        if self._last is not None and self.min_interval > 0:
            remaining = self.min_interval - (self._clock() - self._last)
            if remaining > 0:
                self._sleep(remaining)
        self._last = self._clock()


def _anchor_text(anchor: Tag) -> str:
    return anchor.get_text(" ", strip=True).lower()


def is_next_anchor(anchor: Tag, markers: Iterable[str]) -> bool:
    rel = anchor.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    if "next" in [value.lower() for value in rel]:
        return True
    text = _anchor_text(anchor)
    return any(marker.lower() in text for marker in markers)


def find_next_links(document: BeautifulSoup, selectors: ListingSelectors) -> list[Tag]:
    """Return anchors that look like a "next page" link, in document order."""

    return [
        anchor
        for anchor in document.find_all("a")
        if is_next_anchor(anchor, selectors.next_link_markers)
    ]


def has_next_link(document: BeautifulSoup, selectors: ListingSelectors) -> bool:
    return bool(find_next_links(document, selectors))


def normalize_href(raw: str | None, *, base_url: str) -> str:
    """Resolve ``raw`` against ``base_url``; unusable hrefs become ``""``."""

    raw = (raw or "").strip()
    if not raw or raw.startswith("#") or raw.lower().startswith("javascript:"):
        return ""
    if raw.startswith("//"):
        return "https:" + raw
    if urllib.parse.urlsplit(raw).scheme:
        return raw
    if not base_url:
        return raw
    return urllib.parse.urljoin(base_url, raw)


def find_next_url(document: BeautifulSoup, selectors: ListingSelectors, *, base_url: str) -> Optional[str]:
    for anchor in find_next_links(document, selectors):
        url = normalize_href(anchor.get("href"), base_url=base_url)
        if url:
            return url
    return None


class Paginator:
    """Base class: owns the rate limiter and the page transport."""

    name = ""

    def __init__(self, site: SiteConfig, fetcher: PageFetcher, *, limiter: Optional[RateLimiter] = None) -> None:
        self.site = site
        self.selectors = site.selectors
        self.fetcher = fetcher
        self.limiter = limiter or RateLimiter(site.page_delay_seconds)

    def first_cursor(self) -> Cursor:
        return Cursor(1, self.site.start_url)

    def fetch(self, cursor: Cursor) -> str:
        self.limiter.wait()
        return self.fetcher.fetch(cursor.url)

    def advance(self, cursor: Cursor, document: BeautifulSoup) -> Optional[Cursor]:
        raise NotImplementedError

    def _link_base(self, cursor: Cursor) -> str:
        return self.site.base_url or cursor.url or self.site.origin

    def close(self) -> None:
        self.fetcher.close()


class QueryParamPaginator(Paginator):
    name = strategies.QUERY_PARAM

    def advance(self, cursor: Cursor, document: BeautifulSoup) -> Optional[Cursor]:
        if self.site.require_next_link:
            if not has_next_link(document, self.selectors):
                _search_event("pagination", strategy=self.name, page=cursor.page, reason="no_next_link")
                return None
        elif not find_rows(document, self.selectors):
            _search_event("pagination", strategy=self.name, page=cursor.page, reason="empty_page")
            return None
        page = cursor.page + 1
        return cursor.next(self.site.page_url(page))


class LinkFollowingPaginator(Paginator):
    name = strategies.LINK_FOLLOWING

    def __init__(self, site: SiteConfig, fetcher: PageFetcher, *, limiter: Optional[RateLimiter] = None) -> None:
        super().__init__(site, fetcher, limiter=limiter)
        self._visited: Set[str] = set()

    def fetch(self, cursor: Cursor) -> str:
        if cursor.url:
            self._visited.add(cursor.url)
        return super().fetch(cursor)

    def advance(self, cursor: Cursor, document: BeautifulSoup) -> Optional[Cursor]:
        url = find_next_url(document, self.selectors, base_url=self._link_base(cursor))
        if not url:
            _search_event("pagination", strategy=self.name, page=cursor.page, reason="no_next_link")
            return None
        if url in self._visited:
            log_line(f"[PAGINATION] Next link points back to {url}; treating as last page.")
            return None
        return cursor.next(url)


def _listing_fingerprint(url: str, markup: str, selectors: ListingSelectors) -> str:
    """Digest of the page URL and its listing rows.

    Markup outside the rows (relative timestamps, ads, nonces) is ignored.
    """

    rows = find_rows(make_document(markup), selectors)
    parts = [url or ""] + [row.get_text(" ", strip=True) for row in rows]
    return hashlib.sha1("\n".join(parts).encode("utf-8", "ignore")).hexdigest()


class InteractivePaginator(Paginator):
    name = strategies.INTERACTIVE

    def __init__(self, site: SiteConfig, session: BrowserSession, *, limiter: Optional[RateLimiter] = None) -> None:
        super().__init__(site, session, limiter=limiter)
        self.session = session
        self._loaded = False
        self._last_fingerprint: Optional[str] = None

    def fetch(self, cursor: Cursor) -> str:
        if not self._loaded:
            self.limiter.wait()
            self.session.goto(cursor.url)
            self._loaded = True
        markup = self.session.content()
        self._last_fingerprint = _listing_fingerprint(self.session.current_url, markup, self.selectors)
        return markup

    def advance(self, cursor: Cursor, document: BeautifulSoup) -> Optional[Cursor]:
        self.limiter.wait()
        clicked = self.session.click_next(self.selectors.next_control_selectors)
        if clicked:
            fingerprint = _listing_fingerprint(self.session.current_url, self.session.content(), self.selectors)
            if fingerprint == self._last_fingerprint:
                log_line(f"[PAGINATION] Clicking {clicked!r} did not change the page; treating as last page.")
                return None
            return cursor.next(self.session.current_url or None)

        url = find_next_url(document, self.selectors, base_url=self._link_base(cursor))
        if not url or url == cursor.url:
            _search_event("pagination", strategy=self.name, page=cursor.page, reason="no_next_control")
            return None
        self.session.goto(url)
        return cursor.next(url)


def build_paginator(
    search_config: SearchConfig,
    fetcher: PageFetcher,
    *,
    limiter: Optional[RateLimiter] = None,
) -> Paginator:
    """Pick the paginator named by ``search_config.strategy``."""

    strategy = search_config.strategy
    site = search_config.site
    if strategy == strategies.QUERY_PARAM:
        return QueryParamPaginator(site, fetcher, limiter=limiter)
    if strategy == strategies.LINK_FOLLOWING:
        return LinkFollowingPaginator(site, fetcher, limiter=limiter)
    if strategy == strategies.INTERACTIVE:
        if not callable(getattr(fetcher, "click_next", None)):
            raise ValueError("The interactive strategy needs a browser transport.")
        return InteractivePaginator(site, fetcher, limiter=limiter)
    raise ValueError(f"Unknown pagination strategy: {strategy!r}")


__all__ = [
    "BrowserSession",
    "Cursor",
    "InteractivePaginator",
    "LinkFollowingPaginator",
    "PageFetcher",
    "Paginator",
    "QueryParamPaginator",
    "RateLimiter",
    "build_paginator",
    "find_next_links",
    "find_next_url",
    "has_next_link",
    "normalize_href",
]
