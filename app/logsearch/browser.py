"""Playwright-backed browser session for rendered listing pages.

The listing is rendered client-side, so a plain HTTP fetch may return a shell
without the report table. A browser session loads the page, waits for the
table selector, gives scripts a short settle period and then hands back the
rendered markup. The same session can click the listing's "next" control for
the interactive pagination strategy.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from playwright.sync_api import (
    Browser,
    BrowserContext,
    Error as PWError,
    Page,
    Playwright,
    TimeoutError as PWTimeout,
    sync_playwright,
)

from . import config
from .error_codes import ErrorCode, FetchError
from .http_client import classify_http_status
from .logging_utils import _search_event
from .utils import log_line

UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36"
)


def wait_seconds(page: Optional[Page], seconds: float) -> None:
    """Wait safely for ``seconds`` only if *page* remains open."""

    if page is None:
        return

    if seconds is None or seconds <= 0:
        return

    if not page.is_closed():
        page.wait_for_timeout(int(seconds * 1000))


def _is_target_closed_error(exc: Exception) -> bool:
    message = str(exc).lower()
    return "target closed" in message or "has been closed" in message


class PlaywrightSession:
    """One Chromium tab kept open for the whole search."""

    def __init__(
        self,
        *,
        headless: bool = config.HEADLESS,
        cookies: Optional[Mapping[str, str]] = None,
        cookie_url: str = "",
        page_wait_seconds: float = config.PAGE_WAIT_SECONDS,
        wait_for_selector: str = "table",
    ) -> None:
        self.headless = headless
        self.cookies = dict(cookies or {})
        self.cookie_url = cookie_url
        self.page_wait_seconds = page_wait_seconds
        self.wait_for_selector = wait_for_selector
        self._pw: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    def start(self) -> Page:
        if self.page is not None:
            return self.page

        log_line("Launching browser...")
        try:
            self._pw = sync_playwright().start()
            self._browser = self._pw.chromium.launch(headless=self.headless)
            self._context = self._browser.new_context(user_agent=UA, locale="en-US")
            if self.cookies and self.cookie_url:
                self._context.add_cookies(
                    [
                        {"name": name, "value": value, "url": self.cookie_url}
                        for name, value in self.cookies.items()
                    ]
                )
            self.page = self._context.new_page()
        except PWError as exc:
            self.close()
            _search_event("error", phase="browser_launch", transport="playwright", error=str(exc))
            raise FetchError(ErrorCode.BROWSER_LAUNCH, f"Could not start Chromium: {exc}") from exc
        return self.page

    @property
    def current_url(self) -> str:
        return self.page.url if self.page is not None else ""

    def _settle(self) -> None:
        """Wait for network quiet, the listing table and the render delay."""

        page = self.page
        timeout_ms = config.PLAYWRIGHT_NAV_TIMEOUT_SECONDS * 1000
        try:
            page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except PWTimeout:
            log_line("[BROWSER] networkidle timeout; continuing.")

        if self.wait_for_selector:
            try:
                page.wait_for_selector(
                    self.wait_for_selector,
                    timeout=config.PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS * 1000,
                )
            except PWTimeout:
                log_line(f"[BROWSER] {self.wait_for_selector!r} did not appear; parsing what rendered.")

        wait_seconds(page, self.page_wait_seconds)

    def goto(self, url: str) -> None:
        page = self.start()
        _search_event("nav", step="goto", url=url)
        try:
            response = page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=config.PLAYWRIGHT_NAV_TIMEOUT_SECONDS * 1000,
            )
        except PWTimeout as exc:
            raise FetchError(ErrorCode.TIMEOUT, f"goto({url!r}) timed out: {exc}", url=url) from exc
        except PWError as exc:
            code = ErrorCode.SESSION_CLOSED if _is_target_closed_error(exc) else ErrorCode.NAVIGATION
            raise FetchError(code, f"goto({url!r}) failed: {exc}", url=url) from exc

        if response is not None and response.status >= 400:
            raise FetchError(
                classify_http_status(response.status),
                f"HTTP {response.status} for {url}",
                url=url,
                http_status=response.status,
            )
        self._settle()

    def content(self) -> str:
        try:
            return self.start().content()
        except PWError as exc:
            raise FetchError(ErrorCode.SESSION_CLOSED, f"Failed to get page content: {exc}") from exc

    def fetch(self, url: str) -> str:
        self.goto(url)
        return self.content()

    def click_next(self, selectors: Iterable[str]) -> Optional[str]:
        """Click the first visible control matching ``selectors``.

        Returns the selector that was clicked, or ``None`` when no control
        resolved.
        """

        page = self.start()
        for selector in selectors:
            try:
                locator = page.locator(selector).first
                if not locator.count() or not locator.is_visible():
                    continue
                locator.click(timeout=config.PLAYWRIGHT_CLICK_TIMEOUT_MS)
            except PWTimeout:
                log_line(f"[BROWSER][WARN] Click timed out for {selector!r}")
                continue
            except PWError as exc:
                if _is_target_closed_error(exc):
                    raise FetchError(ErrorCode.SESSION_CLOSED, str(exc)) from exc
                log_line(f"[BROWSER][WARN] Locator error for {selector!r}: {exc}")
                continue

            _search_event("nav", step="click_next", selector=selector)
            self._settle()
            return selector
        return None

    def close(self) -> None:
        for closer in (self._context, self._browser):
            if closer is None:
                continue
            try:
                closer.close()
            except Exception as exc:  # noqa: BLE001
                log_line(f"[BROWSER][WARN] Error while closing browser: {exc}")
        if self._pw is not None:
            try:
                self._pw.stop()
            except Exception as exc:  # noqa: BLE001
                log_line(f"[BROWSER][WARN] Error while stopping Playwright: {exc}")
        self._pw = self._browser = self._context = self.page = None


__all__ = ["PlaywrightSession", "wait_seconds"]
