from __future__ import annotations

import pytest

from app.logsearch.pagination import (
    Cursor,
    InteractivePaginator,
    LinkFollowingPaginator,
    QueryParamPaginator,
    RateLimiter,
    build_paginator,
    find_next_url,
    has_next_link,
    normalize_href,
)
from app.logsearch.parser import make_document
from app.logsearch.selectors import DEFAULT_SELECTORS
from tests.listing_site import (
    FakeBrowserSession,
    FakeFetcher,
    listing_html,
    make_search_config,
    page_url,
)


def _no_wait() -> RateLimiter:
    return RateLimiter(0)


@pytest.mark.parametrize(
    "anchor, expected",
    [
        ('<a href="?page=2">Next</a>', True),
        ('<a href="?page=2">next page</a>', True),
        ('<a href="?page=2">›</a>', True),
        ('<a href="?page=2">»</a>', True),
        ('<a href="?page=2" rel="next">2</a>', True),
        ('<a href="?page=1">Previous</a>', False),
        ('<a href="/reports/3">Report 3</a>', False),
    ],
)
def test_has_next_link(anchor: str, expected: bool) -> None:
    document = make_document(f"<html><body>{anchor}</body></html>")
    assert has_next_link(document, DEFAULT_SELECTORS) is expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("/zone/reports?page=2", "https://logs.example.test/zone/reports?page=2"),
        ("?zone=1006&page=2", "https://logs.example.test/zone/reports?zone=1006&page=2"),
        ("//cdn.example.test/p2", "https://cdn.example.test/p2"),
        ("https://other.example.test/p2", "https://other.example.test/p2"),
        ("#", ""),
        ("javascript:void(0)", ""),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_href(raw: str | None, expected: str) -> None:
    base = "https://logs.example.test/zone/reports?zone=1006&page=1"
    assert normalize_href(raw, base_url=base) == expected


def test_find_next_url_skips_unusable_anchors() -> None:
    document = make_document(
        '<a href="#">Next</a><a href="javascript:void(0)">next</a><a href="/p/2">Next ›</a>'
    )

    url = find_next_url(document, DEFAULT_SELECTORS, base_url="https://logs.example.test/p/1")

    assert url == "https://logs.example.test/p/2"


def test_rate_limiter_sleeps_for_the_remaining_interval() -> None:
    now = [100.0]
    sleeps: list[float] = []

    def _sleep(seconds: float) -> None:
        sleeps.append(seconds)
        now[0] += seconds

    limiter = RateLimiter(1.0, sleep=_sleep, clock=lambda: now[0])

    limiter.wait()
    now[0] += 0.25
    limiter.wait()
    now[0] += 5.0
    limiter.wait()

    assert sleeps == [pytest.approx(0.75)]


def test_query_param_paginator_requires_next_link() -> None:
    cfg = make_search_config()
    paginator = QueryParamPaginator(cfg.site, FakeFetcher({}), limiter=_no_wait())
    cursor = paginator.first_cursor()

    with_next = make_document(listing_html(["2021-07-01"], next_href="?page=2"))
    without_next = make_document(listing_html(["2021-07-01"]))

    assert cursor == Cursor(1, page_url(1))
    assert paginator.advance(cursor, with_next) == Cursor(2, page_url(2))
    assert paginator.advance(cursor, without_next) is None


def test_query_param_paginator_without_next_check_stops_on_empty_page() -> None:
    cfg = make_search_config(require_next_link=False)
    paginator = QueryParamPaginator(cfg.site, FakeFetcher({}), limiter=_no_wait())
    cursor = Cursor(4, page_url(4))

    rows = make_document(listing_html(["2021-07-01"]))
    empty = make_document("<html><body><p>No reports</p></body></html>")

    assert paginator.advance(cursor, rows) == Cursor(5, page_url(5))
    assert paginator.advance(cursor, empty) is None


def test_link_following_resolves_relative_next_against_current_page() -> None:
    cfg = make_search_config(strategy="link")
    fetcher = FakeFetcher({page_url(1): listing_html(["2021-07-01"], next_href="?zone=1006&page=2")})
    paginator = LinkFollowingPaginator(cfg.site, fetcher, limiter=_no_wait())
    cursor = paginator.first_cursor()

    document = make_document(paginator.fetch(cursor))

    assert paginator.advance(cursor, document) == Cursor(2, page_url(2))


def test_link_following_prefers_configured_base_url() -> None:
    cfg = make_search_config(strategy="link", base_url="https://mirror.example.test/")
    paginator = LinkFollowingPaginator(cfg.site, FakeFetcher({}), limiter=_no_wait())
    document = make_document(listing_html([], next_href="/zone/reports?page=2"))

    nxt = paginator.advance(Cursor(1, page_url(1)), document)

    assert nxt == Cursor(2, "https://mirror.example.test/zone/reports?page=2")


def test_link_following_stops_when_next_points_back() -> None:
    cfg = make_search_config(strategy="link")
    fetcher = FakeFetcher({page_url(1): listing_html(["2021-07-01"], next_href=page_url(1))})
    paginator = LinkFollowingPaginator(cfg.site, fetcher, limiter=_no_wait())
    cursor = paginator.first_cursor()

    document = make_document(paginator.fetch(cursor))

    assert paginator.advance(cursor, document) is None


def test_interactive_paginator_clicks_next_control() -> None:
    urls = [page_url(1), page_url(2)]
    pages = {urls[0]: listing_html(["2021-07-02"]), urls[1]: listing_html(["2021-07-01"])}
    session = FakeBrowserSession(urls, pages)
    cfg = make_search_config(strategy="interactive", transport="playwright")
    paginator = InteractivePaginator(cfg.site, session, limiter=_no_wait())
    cursor = paginator.first_cursor()

    first = paginator.fetch(cursor)
    nxt = paginator.advance(cursor, make_document(first))
    second = paginator.fetch(nxt)

    assert nxt == Cursor(2, urls[1])
    assert second == pages[urls[1]]
    assert session.gotos == [urls[0]]
    assert session.clicks == [DEFAULT_SELECTORS.next_control_selectors]


def test_interactive_paginator_detects_click_without_navigation() -> None:
    class _StuckSession(FakeBrowserSession):
        def click_next(self, selectors):
            self.clicks.append(tuple(selectors))
            return "a.next"

    urls = [page_url(1)]
    session = _StuckSession(urls, {urls[0]: listing_html(["2021-07-02"])})
    cfg = make_search_config(strategy="interactive", transport="playwright")
    paginator = InteractivePaginator(cfg.site, session, limiter=_no_wait())
    cursor = paginator.first_cursor()

    markup = paginator.fetch(cursor)

    assert paginator.advance(cursor, make_document(markup)) is None


def test_interactive_paginator_falls_back_to_next_link() -> None:
    urls = [page_url(1), page_url(2)]
    pages = {
        urls[0]: listing_html(["2021-07-02"], next_href="?zone=1006&page=2"),
        urls[1]: listing_html(["2021-07-01"]),
    }
    session = FakeBrowserSession(urls, pages, clickable=False)
    cfg = make_search_config(strategy="interactive", transport="playwright")
    paginator = InteractivePaginator(cfg.site, session, limiter=_no_wait())
    cursor = paginator.first_cursor()

    nxt = paginator.advance(cursor, make_document(paginator.fetch(cursor)))

    assert nxt == Cursor(2, urls[1])
    assert session.gotos == urls
    assert paginator.fetch(nxt) == pages[urls[1]]


def test_build_paginator_selects_strategy() -> None:
    fetcher = FakeFetcher({})
    session = FakeBrowserSession([page_url(1)], {})

    assert isinstance(build_paginator(make_search_config(), fetcher), QueryParamPaginator)
    assert isinstance(build_paginator(make_search_config(strategy="follow"), fetcher), LinkFollowingPaginator)
    assert isinstance(
        build_paginator(make_search_config(strategy="click", transport="playwright"), session),
        InteractivePaginator,
    )


def test_build_paginator_rejects_interactive_without_browser() -> None:
    with pytest.raises(ValueError):
        build_paginator(make_search_config(strategy="interactive"), FakeFetcher({}))


def test_interactive_paginator_ignores_markup_churn_outside_rows() -> None:
    class _TickingSession(FakeBrowserSession):
        """One page whose footer timestamp changes on every read; next is dead."""

        def __init__(self, urls, pages):
            super().__init__(urls, pages)
            self.reads = 0

        def content(self) -> str:
            self.reads += 1
            return super().content().replace("</body>", f"<span>{self.reads}s ago</span></body>")

        def click_next(self, selectors):
            self.clicks.append(tuple(selectors))
            return "a:has-text('Next')"

    urls = [page_url(1)]
    session = _TickingSession(urls, {urls[0]: listing_html(["2021-07-02"])})
    cfg = make_search_config(strategy="interactive", transport="playwright")
    paginator = InteractivePaginator(cfg.site, session, limiter=_no_wait())
    cursor = paginator.first_cursor()

    markup = paginator.fetch(cursor)

    assert paginator.advance(cursor, make_document(markup)) is None


def test_interactive_paginator_accepts_new_rows_at_same_url() -> None:
    class _ScriptPagedSession(FakeBrowserSession):
        """Client-side pagination: the URL never changes, the rows do."""

        def __init__(self, url, bodies):
            super().__init__([url], {url: bodies[0]})
            self.bodies = list(bodies)
            self.shown = 0

        def content(self) -> str:
            return self.bodies[self.shown]

        def click_next(self, selectors):
            self.clicks.append(tuple(selectors))
            if self.shown + 1 >= len(self.bodies):
                return None
            self.shown += 1
            return "button.next"

    url = page_url(1)
    session = _ScriptPagedSession(url, [listing_html(["2021-07-02"]), listing_html(["2021-06-20"])])
    cfg = make_search_config(strategy="interactive", transport="playwright")
    paginator = InteractivePaginator(cfg.site, session, limiter=_no_wait())
    cursor = paginator.first_cursor()

    nxt = paginator.advance(cursor, make_document(paginator.fetch(cursor)))

    assert nxt == Cursor(2, url)
