from __future__ import annotations

from pathlib import Path

import pytest

from app.logsearch import config, utils


@pytest.fixture(autouse=True)
def _temp_data_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setattr(config, "DATA_DIR", data_dir)
    monkeypatch.setattr(config, "LOG_DIR", data_dir / "logs")
    monkeypatch.setattr(config, "LOG_FILE", data_dir / "logs" / "latest.log")
    monkeypatch.setattr(config, "REPLAY_FIXTURES_DIR", data_dir / "replay_fixtures")
    monkeypatch.setattr(config, "RECORD_REPLAY_FIXTURES", False)
    monkeypatch.setattr(utils, "_LOGGER_INITIALISED", False)
    return data_dir
