"""Offline replay of recorded listing pages.

Pages fetched during a live search can be recorded into a fixtures directory
(``index.jsonl`` plus one HTML file per page). ``run_replay`` then repeats the
search against those files without touching the network, which is how
selector or date-format changes are checked against real markup.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from . import config
from .config import SearchConfig
from .config_validation import validate_runtime_config
from .error_codes import ErrorCode, FetchError
from .logging_utils import _search_event
from .pagination import PageFetcher, RateLimiter
from .search import SearchResult, run_search
from .utils import append_json_line, load_json_lines, log_line

INDEX_NAME = "index.jsonl"


@dataclass
class ReplayConfig:
    fixtures_dir: Path
    search_config: SearchConfig


def load_page_fixtures(fixtures_dir: Path) -> Iterable[Dict[str, Any]]:
    for item in load_json_lines(Path(fixtures_dir) / INDEX_NAME):
        if not isinstance(item, dict):
            continue
        if not item.get("url") or not item.get("file"):
            continue
        yield item


def record_page(fixtures_dir: Path, url: str, html: str) -> Path:
    """Store ``html`` for ``url`` and add it to the fixtures index."""

    fixtures_dir = Path(fixtures_dir)
    fixtures_dir.mkdir(parents=True, exist_ok=True)
    name = hashlib.sha1(url.encode("utf-8")).hexdigest()[:16] + ".html"
    path = fixtures_dir / name
    path.write_text(html, encoding="utf-8")
    append_json_line(fixtures_dir / INDEX_NAME, {"url": url, "file": name})
    return path


class ReplayFetcher:
    """Serve pages from a fixtures directory; later entries win."""

    def __init__(self, fixtures_dir: Path) -> None:
        self.fixtures_dir = Path(fixtures_dir)
        self.pages: Dict[str, Path] = {
            item["url"]: self.fixtures_dir / item["file"]
            for item in load_page_fixtures(self.fixtures_dir)
        }

    def fetch(self, url: str) -> str:
        path = self.pages.get(url)
        if path is None or not path.exists():
            raise FetchError(ErrorCode.REPLAY_MISS, f"No recorded page for {url}", url=url)
        _search_event("replay", phase="fetch", url=url, file=path.name)
        return path.read_text(encoding="utf-8")

    def close(self) -> None:
        return None


class RecordingFetcher:
    """Wrap a transport and keep a copy of every page it returns."""

    def __init__(self, inner: PageFetcher, fixtures_dir: Optional[Path] = None) -> None:
        self.inner = inner
        self.fixtures_dir = Path(fixtures_dir or config.REPLAY_FIXTURES_DIR)

    def fetch(self, url: str) -> str:
        html = self.inner.fetch(url)
        record_page(self.fixtures_dir, url, html)
        return html

    def close(self) -> None:
        self.inner.close()


def run_replay(config_obj: ReplayConfig) -> SearchResult:
    """Repeat a search against recorded pages, with no inter-page delay."""

    validate_runtime_config("replay")
    fetcher = ReplayFetcher(config_obj.fixtures_dir)
    if not fetcher.pages:
        log_line(f"[REPLAY] No fixtures found under {config_obj.fixtures_dir}.")

    site = replace(config_obj.search_config.site, page_delay_seconds=0.0)
    search_config = replace(config_obj.search_config, site=site)

    _search_event("replay", phase="start", fixtures=str(config_obj.fixtures_dir), pages=len(fetcher.pages))
    result = run_search(search_config, fetcher=fetcher, limiter=RateLimiter(0), entrypoint="replay")
    _search_event("replay", phase="end", outcome=result.outcome.value, pages_scanned=result.pages_scanned)
    return result


if __name__ == "__main__":  # pragma: no cover
    import argparse

    from .config import build_search_config

    parser = argparse.ArgumentParser(description="Replay recorded listing pages offline.")
    parser.add_argument("fixtures", help="Directory holding index.jsonl and recorded pages")
    parser.add_argument("--start", default=None)
    parser.add_argument("--end", default=None)
    parser.add_argument("--strategy", default=None)
    args = parser.parse_args()

    cfg = build_search_config(start=args.start, end=args.end, strategy=args.strategy, transport="http")
    outcome = run_replay(ReplayConfig(fixtures_dir=Path(args.fixtures), search_config=cfg))
    log_line(f"[REPLAY] Outcome: {outcome.outcome.value} after {outcome.pages_scanned} page(s)")
