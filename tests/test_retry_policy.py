from __future__ import annotations

import pytest

from app.logsearch import retry_policy
from app.logsearch.error_codes import ErrorCode


@pytest.fixture
def event_recorder(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, dict]]:
    events: list[tuple[str, dict]] = []

    def _record(event_label: str, **fields: object) -> None:
        events.append((event_label, fields))

    monkeypatch.setattr(retry_policy, "_search_event", _record)
    return events


@pytest.mark.parametrize(
    "attempt, expected, kind",
    [
        (1, True, "retryable"),
        (2, True, "retryable"),
        (3, False, "capped"),
        (5, False, "capped"),
    ],
)
def test_network_retry_limits(
    attempt: int, expected: bool, kind: str, event_recorder: list[tuple[str, dict]]
) -> None:
    result = retry_policy.decide_retry(attempt, 3, error_code=ErrorCode.NETWORK)
    assert result is expected
    assert len(event_recorder) == 1
    label, fields = event_recorder[0]
    assert label == "state"
    assert fields["phase"] == "retry_decision"
    assert fields["error_code"] == ErrorCode.NETWORK
    assert fields["attempt"] == attempt
    assert fields["max_attempts"] == 3
    assert fields["will_retry"] is expected
    assert fields["kind"] == kind


@pytest.mark.parametrize(
    "error_code",
    [
        ErrorCode.HTTP_401,
        ErrorCode.HTTP_403,
        ErrorCode.HTTP_404,
        ErrorCode.NAVIGATION,
        ErrorCode.REPLAY_MISS,
    ],
)
def test_non_retryable_error_codes(error_code: str, event_recorder: list[tuple[str, dict]]) -> None:
    assert error_code in retry_policy.NON_RETRYABLE_ERROR_CODES
    assert retry_policy.decide_retry(1, 3, error_code=error_code) is False
    _, fields = event_recorder[0]
    assert fields["kind"] == "non_retryable"


@pytest.mark.parametrize(
    "error_code, http_status, expected, kind",
    [
        ("", None, False, "missing_error_code"),
        (None, None, False, "missing_error_code"),
        ("unexpected_code", None, False, "unknown"),
        ("unexpected_code", 502, True, "retryable"),
    ],
)
def test_missing_or_unknown_error_codes(
    error_code: str | None,
    http_status: int | None,
    expected: bool,
    kind: str,
    event_recorder: list[tuple[str, dict]],
) -> None:
    assert retry_policy.decide_retry(1, 3, error_code=error_code, http_status=http_status) is expected
    _, fields = event_recorder[0]
    assert fields["kind"] == kind


def test_backoff_is_exponential_and_capped() -> None:
    assert [retry_policy.compute_backoff_seconds(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]
    assert retry_policy.compute_backoff_seconds(20) == 30.0
