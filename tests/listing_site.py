"""Fake listing pages and transports shared by the search tests."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from app.logsearch.config import SearchConfig, build_search_config
from app.logsearch.error_codes import ErrorCode, FetchError

TEMPLATE = "https://logs.example.test/zone/reports?zone=1006&page={page}"


def page_url(page: int) -> str:
    return TEMPLATE.format(page=page)


def listing_html(
    dates: Sequence[str],
    *,
    next_href: Optional[str] = None,
    first_index: int = 1,
) -> str:
    rows = "\n".join(
        f'<tr><td><a href="/reports/{first_index + i}">Report {first_index + i}</a></td><td>{value}</td></tr>'
        for i, value in enumerate(dates)
    )
    pager = f'<div class="pager"><a href="{next_href}">Next ›</a></div>' if next_href else ""
    return (
        "<html><body>"
        "<table><thead><tr><th>Report</th><th>Date</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
        f"{pager}</body></html>"
    )


def make_search_config(**overrides) -> SearchConfig:
    params = {
        "start": "2021-05-18",
        "end": "2021-06-01",
        "page_url_template": TEMPLATE,
        "base_url": "",
        "page_delay_seconds": 0.0,
        "page_wait_seconds": 0.0,
        "cookies": {},
    }
    params.update(overrides)
    return build_search_config(**params)


class FakeFetcher:
    """Serve canned pages by URL; unknown URLs answer 404."""

    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = dict(pages)
        self.calls: List[str] = []
        self.closed = False

    def fetch(self, url: str) -> str:
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(ErrorCode.HTTP_404, f"HTTP 404 for {url}", url=url, http_status=404)
        return self.pages[url]

    def close(self) -> None:
        self.closed = True


class FakeBrowserSession(FakeFetcher):
    """A tab over an ordered list of pages with a clickable next control."""

    def __init__(self, urls: Sequence[str], pages: Dict[str, str], *, clickable: bool = True) -> None:
        super().__init__(pages)
        self.urls = list(urls)
        self.clickable = clickable
        self.index: Optional[int] = None
        self.clicks: List[Iterable[str]] = []
        self.gotos: List[str] = []

    @property
    def current_url(self) -> str:
        return self.urls[self.index] if self.index is not None else ""

    def goto(self, url: str) -> None:
        self.gotos.append(url)
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(ErrorCode.HTTP_404, f"HTTP 404 for {url}", url=url, http_status=404)
        self.index = self.urls.index(url)

    def content(self) -> str:
        return self.pages[self.current_url]

    def click_next(self, selectors: Iterable[str]) -> Optional[str]:
        self.clicks.append(tuple(selectors))
        if not self.clickable or self.index is None or self.index + 1 >= len(self.urls):
            return None
        self.index += 1
        return "a[rel='next']"
