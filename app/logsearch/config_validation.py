from __future__ import annotations

from typing import Literal

import soupsieve

from . import config, strategies
from .config import SearchConfig
from .logging_utils import _search_event
from .utils import log_line

Entrypoint = Literal["api", "cli", "replay", "tests"]


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _search_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def validate_runtime_config(entrypoint: Entrypoint) -> None:
    """Validate process-level configuration for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    """

    if config.PAGE_DELAY_SECONDS < 0:
        _raise_config_error(
            "PAGE_DELAY_SECONDS must be non-negative.",
            entrypoint=entrypoint,
            error="page_delay_invalid",
        )

    if config.FETCH_MAX_RETRIES < 1:
        _raise_config_error(
            "FETCH_MAX_RETRIES must be at least 1.",
            entrypoint=entrypoint,
            error="max_retries_invalid",
        )

    timeout_fields = [
        ("FETCH_TIMEOUT_SECONDS", config.FETCH_TIMEOUT_SECONDS),
        ("PLAYWRIGHT_NAV_TIMEOUT_SECONDS", config.PLAYWRIGHT_NAV_TIMEOUT_SECONDS),
        ("PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS", config.PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS),
    ]

    for field_name, value in timeout_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_timeout",
            )


def validate_search_config(search_config: SearchConfig, *, entrypoint: Entrypoint = "cli") -> None:
    """Reject a search configuration before anything is fetched."""

    if search_config.strategy not in strategies.ALL_STRATEGIES:
        _raise_config_error(
            f"Unknown pagination strategy {search_config.strategy!r}.",
            entrypoint=entrypoint,
            error="unknown_strategy",
        )

    if search_config.transport not in strategies.ALL_TRANSPORTS:
        _raise_config_error(
            f"Unknown page transport {search_config.transport!r}.",
            entrypoint=entrypoint,
            error="unknown_transport",
        )

    if search_config.strategy == strategies.INTERACTIVE and not strategies.is_browser_transport(
        search_config.transport
    ):
        _raise_config_error(
            "The interactive strategy needs a browser transport (playwright or selenium).",
            entrypoint=entrypoint,
            error="interactive_without_browser",
        )

    site = search_config.site
    if "{page}" not in site.page_url_template:
        _raise_config_error(
            "The page URL template must contain a {page} placeholder.",
            entrypoint=entrypoint,
            error="page_template_invalid",
        )

    if site.page_delay_seconds < 0:
        _raise_config_error(
            "The inter-page delay must be non-negative.",
            entrypoint=entrypoint,
            error="page_delay_invalid",
        )

    selectors = site.selectors
    if not selectors.row_selectors:
        _raise_config_error(
            "At least one row selector is required.",
            entrypoint=entrypoint,
            error="row_selectors_empty",
        )

    css_selectors = list(selectors.row_selectors) + [selectors.title_fallback_selector]
    for date_selector, title_selector in selectors.cell_pairs:
        css_selectors.extend((date_selector, title_selector))
    for selector in css_selectors:
        try:
            soupsieve.compile(selector)
        except soupsieve.SelectorSyntaxError:
            _raise_config_error(
                f"Invalid CSS selector {selector!r}.",
                entrypoint=entrypoint,
                error="selector_invalid",
            )


__all__ = ["validate_runtime_config", "validate_search_config", "Entrypoint"]
