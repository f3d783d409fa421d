from __future__ import annotations

"""Command line entry point for a single range-bounded listing search."""

import argparse
import sys
from typing import Sequence

from . import config, strategies
from .config import SearchConfig, build_search_config, parse_cookie_header
from .config_validation import validate_runtime_config, validate_search_config
from .error_codes import FetchError
from .search import SearchOutcome, SearchResult, run_search
from .utils import ensure_dirs, setup_run_logger


def _build_parser() -> argparse.ArgumentParser:
    """Return an argument parser for the search CLI."""

    parser = argparse.ArgumentParser(
        description="Find the first listing page with entries dated inside a target range.",
    )
    parser.add_argument("--start", default=None, help=f"Range start, YYYY-MM-DD (default {config.DEFAULT_RANGE_START}).")
    parser.add_argument("--end", default=None, help=f"Range end, YYYY-MM-DD (default {config.DEFAULT_RANGE_END}).")
    parser.add_argument(
        "--strategy",
        default=None,
        help=f"Pagination strategy: {', '.join(strategies.ALL_STRATEGIES)} (default {config.DEFAULT_STRATEGY}).",
    )
    parser.add_argument(
        "--transport",
        default=None,
        help=f"Page transport: {', '.join(strategies.ALL_TRANSPORTS)} (default {config.DEFAULT_TRANSPORT}).",
    )
    parser.add_argument(
        "--url-template",
        dest="page_url_template",
        default=None,
        help="Listing URL with a {page} placeholder.",
    )
    parser.add_argument("--base-url", default=None, help="Origin used to resolve relative next links.")
    parser.add_argument("--delay", type=float, default=None, help="Minimum seconds between page requests.")
    parser.add_argument("--page-wait", type=float, default=None, help="Seconds to let a browser render each page.")
    parser.add_argument(
        "--no-next-check",
        dest="require_next_link",
        action="store_false",
        default=None,
        help="Query strategy: keep paging while pages have rows instead of requiring a next link.",
    )
    parser.add_argument(
        "--headed",
        dest="headless",
        action="store_false",
        default=None,
        help="Show the browser window.",
    )
    parser.add_argument("--cookie", default=None, help="Cookies to send, 'name=value; name2=value2'.")
    return parser


def _config_from_args(args: argparse.Namespace) -> SearchConfig:
    return build_search_config(
        start=args.start,
        end=args.end,
        strategy=args.strategy,
        transport=args.transport,
        page_url_template=args.page_url_template,
        base_url=args.base_url,
        page_delay_seconds=args.delay,
        page_wait_seconds=args.page_wait,
        require_next_link=args.require_next_link,
        headless=args.headless,
        cookies=parse_cookie_header(args.cookie) if args.cookie else None,
    )


def format_result(result: SearchResult, search_config: SearchConfig) -> str:
    if result.outcome is SearchOutcome.FOUND:
        lines = [f"Found {len(result.entries)} logs from {search_config.date_range} on page {result.page}:"]
        lines.extend(f"  - {entry.date.isoformat()} | {entry.title}" for entry in result.entries)
        lines.append("")
        lines.append(f"First matching page: {result.page}")
        lines.append(f"URL: {result.url}")
        return "\n".join(lines)
    if result.outcome is SearchOutcome.EXHAUSTED_OLDER:
        return (
            f"Reached logs older than {search_config.date_range.start.isoformat()} "
            f"on page {result.page}. No logs found."
        )
    return f"No more pages after page {result.page}. No logs found from {search_config.date_range}."


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the search CLI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    ensure_dirs()
    try:
        validate_runtime_config("cli")
        search_config = _config_from_args(args)
        validate_search_config(search_config, entrypoint="cli")
    except ValueError as exc:
        parser.error(str(exc))

    setup_run_logger()
    print(f"Searching for logs from {search_config.date_range}")
    print(f"Listing: {search_config.site.start_url} ({search_config.strategy} via {search_config.transport})")
    print()

    try:
        result = run_search(search_config, entrypoint="cli")
    except FetchError as exc:
        print(f"Fetch failed [{exc.error_code}]: {exc}", file=sys.stderr)
        return 1

    print()
    print(format_result(result, search_config))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
