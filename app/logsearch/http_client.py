from __future__ import annotations

import time
import urllib.parse
from typing import Callable, Mapping, Optional

import requests

from . import config
from .error_codes import ErrorCode, FetchError
from .logging_utils import _search_event
from .retry_policy import compute_backoff_seconds, decide_retry
from .utils import log_line


def _redact_url(url: str) -> str:
    try:
        parsed = urllib.parse.urlparse(url)
        return urllib.parse.urlunparse(parsed._replace(query=""))
    except Exception:
        return url


def classify_http_status(status: Optional[int]) -> str:
    if status is None:
        return ErrorCode.INTERNAL
    if status == 401:
        return ErrorCode.HTTP_401
    if status == 403:
        return ErrorCode.HTTP_403
    if status == 404:
        return ErrorCode.HTTP_404
    if status == 429:
        return ErrorCode.RATE_LIMIT
    if 400 <= status < 500:
        return ErrorCode.HTTP_4XX
    if status >= 500:
        return ErrorCode.HTTP_5XX
    return ErrorCode.INTERNAL


class HttpFetcher:
    """Fetch listing pages with ``requests``.

    Transient failures (connection errors, timeouts, 5xx, 429) are retried
    here with capped exponential backoff; anything else, or the last failed
    attempt, surfaces as ``FetchError``.
    """

    def __init__(
        self,
        *,
        cookies: Optional[Mapping[str, str]] = None,
        timeout: int = config.FETCH_TIMEOUT_SECONDS,
        max_retries: int = config.FETCH_MAX_RETRIES,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.update(config.COMMON_HEADERS)
        if cookies:
            self.session.cookies.update(dict(cookies))
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self._sleep = sleep

    def _get_once(self, url: str) -> str:
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.Timeout as exc:
            raise FetchError(ErrorCode.TIMEOUT, str(exc), url=url) from exc
        except requests.ConnectionError as exc:
            raise FetchError(ErrorCode.NETWORK, str(exc), url=url) from exc
        except requests.RequestException as exc:
            raise FetchError(ErrorCode.INTERNAL, str(exc), url=url) from exc

        status = response.status_code
        if status >= 400:
            raise FetchError(
                classify_http_status(status),
                f"HTTP {status} for {_redact_url(url)}",
                url=url,
                http_status=status,
            )

        encoding = (response.encoding or "").lower()
        if not encoding or encoding == "iso-8859-1":
            response.encoding = response.apparent_encoding or "utf-8"
        return response.text

    def fetch(self, url: str) -> str:
        safe_url = _redact_url(url)
        for attempt in range(1, self.max_retries + 1):
            try:
                html = self._get_once(url)
            except FetchError as exc:
                should_retry = decide_retry(
                    attempt,
                    self.max_retries,
                    error_code=exc.error_code,
                    http_status=exc.http_status,
                )
                backoff = compute_backoff_seconds(attempt)
                _search_event(
                    "error",
                    phase="fetch",
                    url=safe_url,
                    attempt=attempt,
                    error_code=exc.error_code,
                    http_status=exc.http_status,
                    will_retry=should_retry,
                    backoff_seconds=backoff if should_retry else None,
                )
                if not should_retry:
                    raise
                log_line(f"[HTTP] Attempt {attempt} for {safe_url} failed: {exc}; retrying in {backoff:.0f}s")
                self._sleep(backoff)
                continue

            _search_event("fetch", url=safe_url, attempt=attempt, bytes=len(html))
            return html

        raise FetchError(ErrorCode.INTERNAL, f"No fetch attempts made for {safe_url}", url=url)

    def close(self) -> None:
        self.session.close()


__all__ = ["HttpFetcher", "classify_http_status"]
