"""Listing page parsing: rows, dated entries and the page's oldest date."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, List, Optional, TypeVar, Union

from bs4 import BeautifulSoup, Tag

from .config import DateRange
from .date_utils import extract_date
from .selectors import DEFAULT_SELECTORS, ListingSelectors

UNKNOWN_TITLE = "Unknown"

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class LogEntry:
    title: str
    date: date


@dataclass
class PageResult:
    matches: List[LogEntry] = field(default_factory=list)
    oldest_date: Optional[date] = None
    rows_seen: int = 0
    rows_dated: int = 0


RowStrategy = Callable[[Tag], Optional[LogEntry]]


def first_success(strategies: Iterable[Callable[[T], Optional[R]]], value: T) -> Optional[R]:
    """Return the first non-``None`` result of applying ``strategies`` in order."""

    for strategy in strategies:
        result = strategy(value)
        if result is not None:
            return result
    return None


def _node_text(node: Tag) -> str:
    return node.get_text(" ", strip=True)


def make_document(markup: Union[str, bytes, BeautifulSoup]) -> BeautifulSoup:
    if isinstance(markup, BeautifulSoup):
        return markup
    return BeautifulSoup(markup, "html5lib")


def _machine_date(cell: Tag) -> Optional[date]:
    # <time datetime="..."> carries an ISO value; the visible text may be "3 days ago".
    value = cell.get("datetime")
    return extract_date(value) if isinstance(value, str) else None


def _text_date(cell: Tag) -> Optional[date]:
    return extract_date(_node_text(cell))


def _cell_pair_strategy(date_selector: str, title_selector: str) -> RowStrategy:
    """Build a strategy reading the date and title from two known cells."""

    def _extract(row: Tag) -> Optional[LogEntry]:
        date_cell = row.select_one(date_selector)
        title_cell = row.select_one(title_selector)
        if date_cell is None or title_cell is None:
            return None
        parsed = first_success((_machine_date, _text_date), date_cell)
        if parsed is None:
            return None
        return LogEntry(title=_node_text(title_cell) or UNKNOWN_TITLE, date=parsed)

    return _extract


def _flattened_text_strategy(title_selector: str) -> RowStrategy:
    """Build a strategy using the whole row text as the date source."""

    def _extract(row: Tag) -> Optional[LogEntry]:
        parsed = extract_date(_node_text(row))
        if parsed is None:
            return None
        link = row.select_one(title_selector)
        title = _node_text(link) if link is not None else ""
        return LogEntry(title=title or UNKNOWN_TITLE, date=parsed)

    return _extract


def row_strategies(selectors: ListingSelectors = DEFAULT_SELECTORS) -> List[RowStrategy]:
    """Structured cell pairs first, then the flattened-text fallback."""

    strategies = [_cell_pair_strategy(d, t) for d, t in selectors.cell_pairs]
    strategies.append(_flattened_text_strategy(selectors.title_fallback_selector))
    return strategies


def extract_row(
    row: Tag,
    selectors: ListingSelectors = DEFAULT_SELECTORS,
    *,
    strategies: Optional[List[RowStrategy]] = None,
) -> Optional[LogEntry]:
    """Recover a dated entry from one listing row, or ``None``."""

    return first_success(strategies or row_strategies(selectors), row)


def find_rows(document: BeautifulSoup, selectors: ListingSelectors = DEFAULT_SELECTORS) -> List[Tag]:
    """Return candidates from the first row selector that matches anything.

    Results are never merged across selectors so one row matched by two
    patterns is only counted once.
    """

    for selector in selectors.row_selectors:
        rows = document.select(selector)
        if rows:
            return rows
    return []


def parse_page(
    document: Union[str, bytes, BeautifulSoup],
    date_range: DateRange,
    selectors: ListingSelectors = DEFAULT_SELECTORS,
) -> PageResult:
    """Collect in-range entries and the oldest parsed date on one page.

    Every row is processed even after a match: the oldest date drives the
    caller's decision to stop paginating.
    """

    soup = make_document(document)
    strategies = row_strategies(selectors)
    result = PageResult()

    for row in find_rows(soup, selectors):
        result.rows_seen += 1
        entry = extract_row(row, strategies=strategies)
        if entry is None:
            continue
        result.rows_dated += 1
        if result.oldest_date is None or entry.date < result.oldest_date:
            result.oldest_date = entry.date
        if date_range.contains(entry.date):
            result.matches.append(entry)

    return result


__all__ = [
    "LogEntry",
    "PageResult",
    "UNKNOWN_TITLE",
    "extract_row",
    "find_rows",
    "first_success",
    "make_document",
    "parse_page",
    "row_strategies",
]
