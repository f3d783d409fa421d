from __future__ import annotations

import re
from datetime import date, datetime
from typing import Iterable, Optional, Pattern, Tuple

# Order matters: "%m/%d/%y" must come after "%m/%d/%Y" so a four digit year is
# never read as a two digit one.
DATE_FORMATS: Tuple[str, ...] = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)

_DATE_PATTERNS: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"(\d{4}-\d{2}-\d{2})"), "%Y-%m-%d"),
    (re.compile(r"(\d{1,2}/\d{1,2}/\d{4})"), "%m/%d/%Y"),
    (re.compile(r"(\d{1,2}/\d{1,2}/\d{2})"), "%m/%d/%y"),
)


def _strptime_date(value: str, fmt: str) -> Optional[date]:
    try:
        return datetime.strptime(value, fmt).date()
    except ValueError:
        return None


def parse_whole(text: str, formats: Iterable[str] = DATE_FORMATS) -> Optional[date]:
    """Parse ``text`` as a whole with the first matching format."""

    for fmt in formats:
        parsed = _strptime_date(text, fmt)
        if parsed is not None:
            return parsed
    return None


def parse_embedded(text: str) -> Optional[date]:
    """Find a date-looking substring inside ``text`` and parse it.

    Each pattern contributes its first match only; a match that does not form
    a real calendar date falls through to the next pattern.
    """

    for pattern, fmt in _DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        parsed = _strptime_date(match.group(1), fmt)
        if parsed is not None:
            return parsed
    return None


def extract_date(text: str | None) -> Optional[date]:
    """Recover a calendar date from a listing text fragment.

    Whole-string formats are tried before substring extraction. Returns
    ``None`` when nothing date-like is present, which is routine for header
    and spacer rows.
    """

    candidate = (text or "").strip()
    if not candidate:
        return None
    return parse_whole(candidate) or parse_embedded(candidate)


__all__ = ["DATE_FORMATS", "extract_date", "parse_whole", "parse_embedded"]
