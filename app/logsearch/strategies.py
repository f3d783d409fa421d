from __future__ import annotations

"""Pagination strategy and page transport identifiers.

``strategy`` decides how the crawl moves from one listing page to the next;
``transport`` decides what fetches the markup. Both are plain strings so they
can come straight from the environment, the CLI or a JSON request body.
"""

import logging

LOGGER = logging.getLogger("logsearch")

QUERY_PARAM = "query"
LINK_FOLLOWING = "link"
INTERACTIVE = "interactive"

ALL_STRATEGIES = (QUERY_PARAM, LINK_FOLLOWING, INTERACTIVE)

HTTP = "http"
PLAYWRIGHT = "playwright"
SELENIUM = "selenium"

ALL_TRANSPORTS = (HTTP, PLAYWRIGHT, SELENIUM)
BROWSER_TRANSPORTS = (PLAYWRIGHT, SELENIUM)

_STRATEGY_ALIASES = {
    QUERY_PARAM: {"query", "query-param", "query_param", "qp", "page-param", "url"},
    LINK_FOLLOWING: {"link", "link-following", "link_following", "follow", "next-link"},
    INTERACTIVE: {"interactive", "click", "browser-click"},
}

_TRANSPORT_ALIASES = {
    HTTP: {"http", "requests", "plain"},
    PLAYWRIGHT: {"playwright", "pw", "browser", "chromium"},
    SELENIUM: {"selenium", "webdriver", "chrome"},
}


def _normalize(value: str | None, aliases: dict[str, set[str]], default: str) -> str:
    if not value:
        return default
    raw = value.strip().lower()
    for canonical, names in aliases.items():
        if raw in names:
            return canonical
    return raw


def normalize_strategy(value: str | None) -> str:
    """Return a canonical strategy name.

    Empty values map to the query-parameter strategy. Unknown values are
    returned lower-cased so configuration validation can reject them.
    """

    normalized = _normalize(value, _STRATEGY_ALIASES, QUERY_PARAM)
    if normalized not in ALL_STRATEGIES:
        LOGGER.warning("[STRATEGIES][WARN] Unknown pagination strategy %r.", value)
    return normalized


def normalize_transport(value: str | None) -> str:
    """Return a canonical transport name; same rules as ``normalize_strategy``."""

    normalized = _normalize(value, _TRANSPORT_ALIASES, HTTP)
    if normalized not in ALL_TRANSPORTS:
        LOGGER.warning("[STRATEGIES][WARN] Unknown page transport %r.", value)
    return normalized


def is_browser_transport(transport: str) -> bool:
    return transport in BROWSER_TRANSPORTS


__all__ = [
    "ALL_STRATEGIES",
    "ALL_TRANSPORTS",
    "INTERACTIVE",
    "LINK_FOLLOWING",
    "QUERY_PARAM",
    "HTTP",
    "PLAYWRIGHT",
    "SELENIUM",
    "normalize_strategy",
    "normalize_transport",
    "is_browser_transport",
]
