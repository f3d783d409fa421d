"""Configuration constants and the per-run search configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import urlsplit

from .selectors import DEFAULT_SELECTORS, ListingSelectors
from .strategies import normalize_strategy, normalize_transport

DATA_DIR: Path = Path(os.getenv("LOGSEARCH_DATA_DIR", "data"))
LOG_DIR: Path = DATA_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "latest.log"
REPLAY_FIXTURES_DIR: Path = DATA_DIR / "replay_fixtures"

# WarcraftLogs Classic report listing for zone 1006 (Naxxramas).
DEFAULT_PAGE_URL_TEMPLATE: str = os.getenv(
    "LOGSEARCH_PAGE_URL_TEMPLATE",
    "https://classic.warcraftlogs.com/zone/reports?zone=1006&page={page}",
)
DEFAULT_BASE_URL: str = os.getenv("LOGSEARCH_BASE_URL", "")

# TBC pre-patch period: May 18, 2021 - June 1, 2021
DEFAULT_RANGE_START: str = os.getenv("LOGSEARCH_RANGE_START", "2021-05-18")
DEFAULT_RANGE_END: str = os.getenv("LOGSEARCH_RANGE_END", "2021-06-01")

DEFAULT_STRATEGY: str = os.getenv("LOGSEARCH_STRATEGY", "query").strip().lower() or "query"
DEFAULT_TRANSPORT: str = os.getenv("LOGSEARCH_TRANSPORT", "http").strip().lower() or "http"

PAGE_DELAY_SECONDS: float = float(os.getenv("PAGE_DELAY_SECONDS", "1.0"))
PAGE_WAIT_SECONDS: float = float(os.getenv("PAGE_WAIT_SECONDS", "3.0"))
FETCH_MAX_RETRIES: int = int(os.getenv("FETCH_MAX_RETRIES", "3"))
REQUIRE_NEXT_LINK: bool = os.getenv("LOGSEARCH_REQUIRE_NEXT_LINK", "true").strip().lower() != "false"
HEADLESS: bool = os.getenv("LOGSEARCH_HEADLESS", "true").strip().lower() != "false"
CHROME_BINARY: str = os.getenv("CHROME_BINARY", "")


def _parse_timeout_seconds(env_var: str, default: int, *, minimum: int = 1) -> int:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


# Per-request timeout for plain HTTP fetches.
FETCH_TIMEOUT_SECONDS: int = _parse_timeout_seconds("FETCH_TIMEOUT_SECONDS", 30)
# Navigation timeout for browser goto/click round trips.
PLAYWRIGHT_NAV_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "LOGSEARCH_NAV_TIMEOUT_SECONDS", 30
)
# Selector waits (the listing table appearing after render).
PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "LOGSEARCH_SELECTOR_TIMEOUT_SECONDS", 10
)
# Click-level timeout remains in milliseconds to match Playwright API expectations.
PLAYWRIGHT_CLICK_TIMEOUT_MS: int = int(os.getenv("PLAYWRIGHT_CLICK_TIMEOUT_MS", "2000"))

RECORD_REPLAY_FIXTURES: bool = os.getenv("LOGSEARCH_RECORD_FIXTURES", "0").strip().lower() not in {
    "0",
    "false",
}

COMMON_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Connection": "keep-alive",
}


def parse_cookie_header(raw: str | None) -> dict[str, str]:
    """Split a ``name=value; name2=value2`` cookie string into a dict."""

    cookies: dict[str, str] = {}
    for part in (raw or "").split(";"):
        name, sep, value = part.strip().partition("=")
        if sep and name.strip():
            cookies[name.strip()] = value.strip()
    return cookies


DEFAULT_COOKIES: dict[str, str] = parse_cookie_header(os.getenv("LOGSEARCH_COOKIES"))


def parse_iso_date(value: str | date) -> date:
    """Parse a ``YYYY-MM-DD`` value; ``date`` instances pass through."""

    if isinstance(value, date):
        return value
    return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` for ``url`` (empty when not absolute)."""

    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}"


@dataclass(frozen=True)
class DateRange:
    """Inclusive date interval searched by a run."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"Range start {self.start.isoformat()} is after range end {self.end.isoformat()}."
            )

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end

    @classmethod
    def parse(cls, start: str | date, end: str | date) -> "DateRange":
        return cls(parse_iso_date(start), parse_iso_date(end))

    def __str__(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"


@dataclass(frozen=True)
class SiteConfig:
    """Everything the crawl needs to know about the listing site."""

    page_url_template: str = DEFAULT_PAGE_URL_TEMPLATE
    base_url: str = ""
    page_delay_seconds: float = PAGE_DELAY_SECONDS
    page_wait_seconds: float = PAGE_WAIT_SECONDS
    require_next_link: bool = REQUIRE_NEXT_LINK
    headless: bool = HEADLESS
    cookies: Mapping[str, str] = field(default_factory=dict)
    selectors: ListingSelectors = DEFAULT_SELECTORS

    @property
    def start_url(self) -> str:
        return self.page_url(1)

    @property
    def origin(self) -> str:
        """Base origin used to resolve relative pagination links."""

        return self.base_url or origin_of(self.start_url)

    def page_url(self, page: int) -> str:
        return self.page_url_template.format(page=page)


@dataclass(frozen=True)
class SearchConfig:
    date_range: DateRange
    site: SiteConfig = field(default_factory=SiteConfig)
    strategy: str = DEFAULT_STRATEGY
    transport: str = DEFAULT_TRANSPORT


def build_search_config(
    *,
    start: Optional[str | date] = None,
    end: Optional[str | date] = None,
    strategy: Optional[str] = None,
    transport: Optional[str] = None,
    page_url_template: Optional[str] = None,
    base_url: Optional[str] = None,
    page_delay_seconds: Optional[float] = None,
    page_wait_seconds: Optional[float] = None,
    require_next_link: Optional[bool] = None,
    headless: Optional[bool] = None,
    cookies: Optional[Mapping[str, str]] = None,
    selectors: Optional[ListingSelectors] = None,
) -> SearchConfig:
    """Combine explicit overrides with environment defaults.

    Strategy and transport names are normalised here; the result is not
    validated (see ``config_validation.validate_search_config``).
    """

    site = SiteConfig(
        page_url_template=page_url_template or DEFAULT_PAGE_URL_TEMPLATE,
        base_url=base_url if base_url is not None else DEFAULT_BASE_URL,
        page_delay_seconds=PAGE_DELAY_SECONDS if page_delay_seconds is None else page_delay_seconds,
        page_wait_seconds=PAGE_WAIT_SECONDS if page_wait_seconds is None else page_wait_seconds,
        require_next_link=REQUIRE_NEXT_LINK if require_next_link is None else require_next_link,
        headless=HEADLESS if headless is None else headless,
        cookies=dict(DEFAULT_COOKIES if cookies is None else cookies),
        selectors=selectors or DEFAULT_SELECTORS,
    )
    return SearchConfig(
        date_range=DateRange.parse(start or DEFAULT_RANGE_START, end or DEFAULT_RANGE_END),
        site=site,
        strategy=normalize_strategy(strategy or DEFAULT_STRATEGY),
        transport=normalize_transport(transport or DEFAULT_TRANSPORT),
    )
