from __future__ import annotations

from datetime import date
from typing import Any

from .utils import log_line


def _format_value(value: Any) -> str:
    # Dates read better as ISO strings than as datetime.date(...) reprs.
    if isinstance(value, date):
        return value.isoformat()
    return repr(value)


def _search_event(label: str = "", *, phase: str | None = None, **fields: Any) -> None:
    """Emit a structured search log line: ``[SEARCH][LABEL] key=value, ...``.

    ``phase`` may be used as a keyword alias for the label. When both ``label``
    and ``phase`` are provided, ``phase`` is emitted as part of the payload.
    ``None`` values are dropped to keep page-level lines short.
    """

    try:
        event_label = label or (phase or "")
        if phase and label:
            fields.setdefault("phase", phase)
        payload = ", ".join(
            f"{key}={_format_value(value)}"
            for key, value in sorted(fields.items())
            if value is not None
        )
        log_line(f"[SEARCH][{event_label.upper()}] {payload}")
    except Exception:
        # Never let logging break the search.
        return


__all__ = ["_search_event"]
