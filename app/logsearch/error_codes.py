from __future__ import annotations

"""Centralised error code taxonomy for page fetch failures.

These codes are attached to ``FetchError`` and included in structured logs so
that a failed run explains why the listing could not be read.
"""


class ErrorCode:
    NETWORK = "network_error"
    TIMEOUT = "timeout"
    HTTP_4XX = "http_4xx"
    HTTP_401 = "http_401_unauthorised"
    HTTP_403 = "http_403_forbidden"
    HTTP_404 = "http_404_not_found"
    HTTP_5XX = "http_5xx"
    RATE_LIMIT = "rate_limit"
    NAVIGATION = "navigation_failed"
    SESSION_CLOSED = "session_closed"
    BROWSER_LAUNCH = "browser_launch_failed"
    REPLAY_MISS = "replay_fixture_missing"
    INTERNAL = "internal_error"


class FetchError(Exception):
    """A page could not be fetched; fatal to the current search."""

    def __init__(
        self,
        error_code: str,
        message: str,
        *,
        url: str | None = None,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.url = url
        self.http_status = http_status

    def __str__(self) -> str:  # pragma: no cover - inherited behaviour
        return str(self.args[0]) if self.args else ""


__all__ = ["ErrorCode", "FetchError"]
