from __future__ import annotations

from typing import Optional

from .error_codes import ErrorCode
from .logging_utils import _search_event

RETRYABLE_ERROR_CODES = {
    ErrorCode.NETWORK,
    ErrorCode.TIMEOUT,
    ErrorCode.HTTP_5XX,
    ErrorCode.RATE_LIMIT,
}

NON_RETRYABLE_ERROR_CODES = {
    ErrorCode.HTTP_401,
    ErrorCode.HTTP_403,
    ErrorCode.HTTP_404,
    ErrorCode.HTTP_4XX,
    ErrorCode.NAVIGATION,
    ErrorCode.SESSION_CLOSED,
    ErrorCode.BROWSER_LAUNCH,
    ErrorCode.REPLAY_MISS,
}


def compute_backoff_seconds(attempt_index: int) -> float:
    """Return a capped exponential backoff for the given attempt (1-based)."""

    return float(min(2 ** max(0, attempt_index - 1), 30))


def decide_retry(
    attempt_index: int,
    max_attempts: int,
    *,
    error_code: Optional[str] = None,
    http_status: Optional[int] = None,
) -> bool:
    """Decide whether a failed page fetch should be retried by the transport."""

    code = (error_code or "").strip()

    if attempt_index >= max_attempts:
        kind, will_retry = "capped", False
    elif code in NON_RETRYABLE_ERROR_CODES:
        kind, will_retry = "non_retryable", False
    elif code in RETRYABLE_ERROR_CODES:
        kind, will_retry = "retryable", True
    elif http_status is not None and http_status >= 500:
        kind, will_retry = "retryable", True
    else:
        kind, will_retry = ("unknown" if code else "missing_error_code"), False

    _search_event(
        "state",
        phase="retry_decision",
        kind=kind,
        error_code=code or None,
        attempt=attempt_index,
        max_attempts=max_attempts,
        http_status=http_status,
        will_retry=will_retry,
    )
    return will_retry


__all__ = [
    "compute_backoff_seconds",
    "decide_retry",
    "NON_RETRYABLE_ERROR_CODES",
    "RETRYABLE_ERROR_CODES",
]
