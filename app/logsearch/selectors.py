from __future__ import annotations

"""Selector hints for the report listing."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ListingSelectors:
    """Ordered selector chains used to find rows, cells and the next control.

    ``row_selectors`` and ``cell_pairs`` are CSS selectors evaluated by
    BeautifulSoup (soupsieve). ``next_control_selectors`` are handed to the
    browser session as-is, so they may use Playwright extensions such as
    ``:has-text()``; sessions that do not understand a selector skip it.
    """

    row_selectors: Tuple[str, ...] = (
        "table tbody tr",
        ".report-overview-table tr",
        "tr.report-row",
        "div.report-row",
    )
    # (date cell, title cell) pairs for known table layouts.
    cell_pairs: Tuple[Tuple[str, str], ...] = (
        ("td.report-date, td.date", "td.report-name a, td.name a"),
        ("td.start-date", "td.report-title a, td.report-title"),
        ("time[datetime]", "a.report-link"),
        ("td:last-child", "td:first-child a"),
    )
    title_fallback_selector: str = "a"
    next_link_markers: Tuple[str, ...] = ("next", "›", "»")
    next_control_selectors: Tuple[str, ...] = (
        "a[rel='next']",
        "li.next:not(.disabled) a",
        "a.next",
        "button.next:not([disabled])",
        "a:has-text('Next')",
        "button:has-text('Next')",
        "[aria-label*='Next' i]",
    )
    wait_for_selector: str = "table"


DEFAULT_SELECTORS = ListingSelectors()

__all__ = [
    "ListingSelectors",
    "DEFAULT_SELECTORS",
]
