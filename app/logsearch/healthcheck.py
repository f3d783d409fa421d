from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from . import config
from .config import build_search_config
from .config_validation import validate_runtime_config, validate_search_config
from .logging_utils import _search_event
from .utils import disk_has_room, ensure_dirs, log_line

MIN_FREE_MB = 50


@dataclass
class HealthResult:
    ok: bool
    checks: dict[str, dict[str, Any]]


def run_health_checks(entrypoint: str = "cli") -> HealthResult:
    checks: dict[str, dict[str, Any]] = {}

    try:
        validate_runtime_config(entrypoint or "cli")
        checks["config"] = {"ok": True}
    except ValueError as exc:
        checks["config"] = {"ok": False, "error": str(exc)}

    try:
        default_search = build_search_config()
        validate_search_config(default_search, entrypoint=entrypoint or "cli")
        checks["search_defaults"] = {
            "ok": True,
            "range": str(default_search.date_range),
            "strategy": default_search.strategy,
            "transport": default_search.transport,
        }
    except ValueError as exc:
        checks["search_defaults"] = {"ok": False, "error": str(exc)}

    try:
        ensure_dirs()
        probe = config.LOG_DIR / ".write_probe"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink()
        fs_ok = disk_has_room(MIN_FREE_MB, config.DATA_DIR)
        checks["filesystem"] = {"ok": fs_ok, "data_dir": str(config.DATA_DIR), "min_free_mb": MIN_FREE_MB}
    except OSError as exc:
        checks["filesystem"] = {"ok": False, "data_dir": str(config.DATA_DIR), "error": str(exc)}

    overall_ok = all(check.get("ok", False) for check in checks.values())

    _search_event(
        "state" if overall_ok else "error",
        phase="health",
        context="healthcheck",
        ok=overall_ok,
        checks=checks,
    )

    return HealthResult(ok=overall_ok, checks=checks)


if __name__ == "__main__":  # pragma: no cover
    result = run_health_checks(entrypoint="cli")
    for name, info in result.checks.items():
        status = "OK" if info.get("ok") else "FAIL"
        log_line(f"[HEALTH] {name}: {status} {info}")
    raise SystemExit(0 if result.ok else 1)
