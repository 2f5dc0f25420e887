# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger, metrics


def test_log_event_emits_valid_jsonl(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """
    Contract:
    - log_event emits exactly one JSONL line
    - payload is serialized as-is, plus ts_ms when missing
    - output sink is patchable
    """
    captured: list[str] = []

    def fake_print(line: str) -> None:
        captured.append(line)

    # Patch the explicit output sink used by logger
    monkeypatch.setattr(logger, "_print", fake_print)
    monkeypatch.setattr(logger, "_json_enabled", True)

    payload: dict[str, Any] = {
        "ts_ms": 1,
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    # Exactly one line emitted
    assert len(captured) == 1

    # Payload must be preserved exactly
    assert json.loads(captured[0]) == payload


def test_log_event_fills_timestamp(events: list[dict[str, Any]]) -> None:
    logger.log_event({"event_type": "TEST"})

    assert isinstance(events[0]["ts_ms"], int)


def test_log_event_never_raises_on_unserializable(events: list[dict[str, Any]]) -> None:
    logger.log_event({"event_type": "TEST", "value": object()})

    assert events[0]["event_type"] == "LOGGER_SERIALIZATION_ERROR"


def test_plain_rendering(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[str] = []
    monkeypatch.setattr(logger, "_print", captured.append)
    monkeypatch.setattr(logger, "_json_enabled", True)

    logger.configure(enable_json=False)
    try:
        logger.log_event({"event_type": "CYCLE_STARTED", "cycle_id": "c1", "ts_ms": 5})
    finally:
        logger.configure(enable_json=True)

    assert captured == ["CYCLE_STARTED cycle_id='c1' ts_ms=5"]


def test_timed_emits_one_metric_and_leaks_nothing(events: list[dict[str, Any]]) -> None:
    before = metrics.active_timer_count()

    with pytest.raises(RuntimeError):
        with metrics.timed("cycle_playback", session_id="s1", cycle_id="c1"):
            raise RuntimeError("boom")

    assert metrics.active_timer_count() == before
    metric_events = [e for e in events if e["event_type"] == "METRIC_TIMER"]
    assert len(metric_events) == 1
    assert metric_events[0]["metric"] == "cycle_playback"
    assert metric_events[0]["cycle_id"] == "c1"
    assert metric_events[0]["value_ms"] >= 0


def test_stop_unknown_timer_returns_none() -> None:
    assert metrics.stop_timer("timer_missing") is None
