"""Selenium session helpers for rendered listing pages."""
from __future__ import annotations

import time
from typing import Iterable, Mapping, Optional

from selenium import webdriver
from selenium.common.exceptions import (
    InvalidSelectorException,
    NoSuchWindowException,
    StaleElementReferenceException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from . import config
from .error_codes import ErrorCode, FetchError
from .logging_utils import _search_event
from .utils import log_line


def make_driver(headless: bool = True) -> WebDriver:
    """Instantiate a Chrome WebDriver instance."""
    chrome_options = Options()
    if config.CHROME_BINARY:
        chrome_options.binary_location = config.CHROME_BINARY
    if headless:
        chrome_options.add_argument("--headless=new")
    chrome_options.add_argument("--disable-gpu")
    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument("--window-size=1920,1080")
    driver = webdriver.Chrome(options=chrome_options)
    driver.set_page_load_timeout(config.PLAYWRIGHT_NAV_TIMEOUT_SECONDS)
    return driver


class SeleniumSession:
    """Same contract as ``PlaywrightSession`` on top of a Chrome WebDriver.

    Selectors Selenium cannot parse (Playwright's ``:has-text()`` for
    instance) are skipped by ``click_next``.
    """

    def __init__(
        self,
        *,
        headless: bool = config.HEADLESS,
        cookies: Optional[Mapping[str, str]] = None,
        cookie_url: str = "",
        page_wait_seconds: float = config.PAGE_WAIT_SECONDS,
        wait_for_selector: str = "table",
        driver: Optional[WebDriver] = None,
    ) -> None:
        self.headless = headless
        self.cookies = dict(cookies or {})
        self.cookie_url = cookie_url
        self.page_wait_seconds = page_wait_seconds
        self.wait_for_selector = wait_for_selector
        self.driver = driver
        self._cookies_applied = not self.cookies

    def start(self) -> WebDriver:
        if self.driver is None:
            log_line("Launching Chrome WebDriver...")
            try:
                self.driver = make_driver(self.headless)
            except WebDriverException as exc:
                _search_event("error", phase="browser_launch", transport="selenium", error=exc.msg)
                raise FetchError(ErrorCode.BROWSER_LAUNCH, f"Could not start Chrome: {exc.msg}") from exc
        return self.driver

    @property
    def current_url(self) -> str:
        return self.driver.current_url if self.driver is not None else ""

    def _apply_cookies(self, url: str) -> None:
        # WebDriver only accepts cookies for the domain currently loaded.
        driver = self.driver
        driver.get(self.cookie_url or url)
        for name, value in self.cookies.items():
            driver.add_cookie({"name": name, "value": value})
        self._cookies_applied = True

    def _settle(self) -> None:
        driver = self.driver
        if self.wait_for_selector:
            try:
                WebDriverWait(driver, config.PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS).until(
                    EC.presence_of_element_located((By.CSS_SELECTOR, self.wait_for_selector))
                )
            except TimeoutException:
                log_line(f"[BROWSER] {self.wait_for_selector!r} did not appear; parsing what rendered.")
        if self.page_wait_seconds > 0:
            time.sleep(self.page_wait_seconds)

    def goto(self, url: str) -> None:
        driver = self.start()
        _search_event("nav", step="goto", url=url)
        try:
            if not self._cookies_applied:
                self._apply_cookies(url)
            driver.get(url)
        except TimeoutException as exc:
            raise FetchError(ErrorCode.TIMEOUT, f"get({url!r}) timed out: {exc.msg}", url=url) from exc
        except NoSuchWindowException as exc:
            raise FetchError(ErrorCode.SESSION_CLOSED, f"Browser window closed: {exc.msg}", url=url) from exc
        except WebDriverException as exc:
            raise FetchError(ErrorCode.NAVIGATION, f"get({url!r}) failed: {exc.msg}", url=url) from exc
        self._settle()

    def content(self) -> str:
        try:
            return self.start().page_source
        except WebDriverException as exc:
            raise FetchError(ErrorCode.SESSION_CLOSED, f"Failed to get page content: {exc.msg}") from exc

    def fetch(self, url: str) -> str:
        self.goto(url)
        return self.content()

    def click_next(self, selectors: Iterable[str]) -> Optional[str]:
        driver = self.start()
        for selector in selectors:
            try:
                elements = driver.find_elements(By.CSS_SELECTOR, selector)
            except InvalidSelectorException:
                continue
            except NoSuchWindowException as exc:
                raise FetchError(ErrorCode.SESSION_CLOSED, str(exc.msg)) from exc

            for element in elements:
                try:
                    if not element.is_displayed():
                        continue
                    driver.execute_script("arguments[0].scrollIntoView(true);", element)
                    # Click through JavaScript to avoid overlay interception.
                    driver.execute_script("arguments[0].click();", element)
                except StaleElementReferenceException:
                    continue
                _search_event("nav", step="click_next", selector=selector)
                self._settle()
                return selector
        return None

    def close(self) -> None:
        if self.driver is None:
            return
        try:
            self.driver.quit()
        except Exception as exc:  # noqa: BLE001
            log_line(f"[BROWSER][WARN] Error while quitting WebDriver: {exc}")
        self.driver = None


__all__ = ["make_driver", "SeleniumSession"]
