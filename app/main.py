from __future__ import annotations

import os
from typing import Any, Dict

from flask import Flask, Response, jsonify, request

from app.logsearch.config import build_search_config, parse_cookie_header
from app.logsearch.config_validation import validate_runtime_config, validate_search_config
from app.logsearch.error_codes import FetchError
from app.logsearch.healthcheck import run_health_checks
from app.logsearch.logging_utils import _search_event
from app.logsearch.search import run_search
from app.logsearch.utils import ensure_dirs

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-change-me")

# WSGI entrypoints import this module directly, so prepare data paths here.
ensure_dirs()


def _optional_float(payload: Dict[str, Any], key: str) -> float | None:
    raw = payload.get(key)
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number") from None


def _optional_bool(payload: Dict[str, Any], key: str) -> bool | None:
    raw = payload.get(key)
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() not in {"0", "false", "no", "off"}


def _cookies_from_payload(payload: Dict[str, Any]) -> Dict[str, str] | None:
    raw = payload.get("cookies")
    if raw is None or raw == "":
        return None
    if isinstance(raw, dict):
        return {str(name): str(value) for name, value in raw.items()}
    return parse_cookie_header(str(raw))


def _search_config_from_payload(payload: Dict[str, Any]):
    return build_search_config(
        start=payload.get("start") or None,
        end=payload.get("end") or None,
        strategy=payload.get("strategy") or None,
        transport=payload.get("transport") or None,
        page_url_template=payload.get("url_template") or None,
        base_url=payload.get("base_url"),
        page_delay_seconds=_optional_float(payload, "delay"),
        page_wait_seconds=_optional_float(payload, "page_wait"),
        require_next_link=_optional_bool(payload, "require_next_link"),
        headless=_optional_bool(payload, "headless"),
        cookies=_cookies_from_payload(payload),
    )


@app.get("/api/health")
def api_health() -> Response:
    """Return a JSON health summary for configuration and the filesystem."""

    result = run_health_checks(entrypoint="api")
    status = 200 if result.ok else 503
    return jsonify({"ok": result.ok, "checks": result.checks}), status


@app.post("/api/search")
def api_search() -> Response:
    """Run one range-bounded search and report where matching logs start."""

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"ok": False, "error": "invalid_params", "details": "JSON object expected"}), 400

    try:
        validate_runtime_config("api")
        search_config = _search_config_from_payload(payload)
        validate_search_config(search_config, entrypoint="api")
    except ValueError as exc:
        _search_event("error", phase="api", context="search", error="config_invalid", message=str(exc))
        return jsonify({"ok": False, "error": "config_invalid", "details": str(exc)}), 400

    try:
        result = run_search(search_config, entrypoint="api")
    except FetchError as exc:
        return (
            jsonify(
                {
                    "ok": False,
                    "error": "fetch_failed",
                    "error_code": exc.error_code,
                    "details": str(exc),
                    "url": exc.url,
                }
            ),
            502,
        )

    return jsonify({"ok": True, "range": str(search_config.date_range), **result.to_dict()})


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8080)
