from __future__ import annotations

import json
import logging
import shutil
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from . import config

LOGGER = logging.getLogger("logsearch")
LOG_FORMAT = logging.Formatter(fmt="[%(asctime)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

_LOGGER_INITIALISED = False
_CURRENT_LOG_FILE: Path = config.LOG_FILE


def _drop_handlers() -> None:
    while LOGGER.handlers:
        handler = LOGGER.handlers[0]
        LOGGER.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # noqa: BLE001
            pass


def _configure_logger(log_path: Path) -> None:
    """Point the ``logsearch`` logger at stdout and ``log_path``."""

    global _LOGGER_INITIALISED, _CURRENT_LOG_FILE

    ensure_dirs()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    _drop_handlers()

    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_path, encoding="utf-8")):
        handler.setFormatter(LOG_FORMAT)
        LOGGER.addHandler(handler)
    LOGGER.setLevel(logging.INFO)
    LOGGER.propagate = False

    _CURRENT_LOG_FILE = log_path
    _LOGGER_INITIALISED = True


def _ensure_logger() -> None:
    if not _LOGGER_INITIALISED:
        _configure_logger(config.LOG_FILE)


def setup_run_logger() -> Path:
    """Start a fresh ``search_<timestamp>.log`` for the current run."""

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    run_log = config.LOG_DIR / f"search_{stamp}.log"
    _configure_logger(run_log)
    LOGGER.info("Search log: %s", run_log)
    return run_log


def get_current_log_path() -> Path:
    _ensure_logger()
    return _CURRENT_LOG_FILE


def ensure_dirs() -> None:
    """Create the data and log directories if they are missing."""

    for directory in (config.DATA_DIR, config.LOG_DIR):
        directory.mkdir(parents=True, exist_ok=True)


def log_line(message: str) -> None:
    """Log ``message`` to stdout and the active search log."""

    _ensure_logger()
    LOGGER.info(message)


def disk_has_room(min_free_mb: int, path: Path) -> bool:
    """Return True when the filesystem holding ``path`` has ``min_free_mb`` free."""

    try:
        usage = shutil.disk_usage(path)
    except OSError:
        return False
    return usage.free >= min_free_mb * 1024 * 1024


def load_json_lines(path: Path) -> Iterator[Any]:
    """Yield decoded JSON values from a JSONL file, skipping broken lines."""

    if not path.is_file():
        return
    with path.open("r", encoding="utf-8") as handle:
        for raw in handle:
            raw = raw.strip()
            if not raw:
                continue
            try:
                yield json.loads(raw)
            except json.JSONDecodeError:
                continue


def append_json_line(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(payload, ensure_ascii=False) + "\n")
