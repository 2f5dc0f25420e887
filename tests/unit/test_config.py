# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from config import AppConfig
from constants import (
    DEFAULT_PAUSE_MULTIPLIER,
    RECENT_AVOID_COUNT,
    SEGMENT_SAFETY_TIMEOUT_MS,
    STALL_CHECK_INTERVAL_MS,
    ms_to_seconds,
)

_VARS = (
    "ENV", "LOG_LEVEL", "ENABLE_JSON_LOGS", "CATALOG_PATH", "AUDIO_CACHE_DIR",
    "AUDIO_BASE_URL", "PAUSE_MULTIPLIER", "RECENT_AVOID_COUNT",
    "STALL_CHECK_INTERVAL_MS", "SEGMENT_SAFETY_TIMEOUT_MS", "HOST", "PORT",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_come_from_constants(clean_env: pytest.MonkeyPatch):
    config = AppConfig.load_from_env()

    assert config.env == "dev"
    assert config.catalog_path is None
    assert config.audio_base_url == "/api/audio"
    assert config.pause_multiplier == DEFAULT_PAUSE_MULTIPLIER
    assert config.recent_avoid_count == RECENT_AVOID_COUNT
    assert config.stall_check_interval_ms == STALL_CHECK_INTERVAL_MS
    assert config.segment_safety_timeout_ms == SEGMENT_SAFETY_TIMEOUT_MS
    assert config.enable_json_logs is True
    assert config.port == 8000


def test_environment_overrides(clean_env: pytest.MonkeyPatch):
    clean_env.setenv("PAUSE_MULTIPLIER", "0.75")
    clean_env.setenv("RECENT_AVOID_COUNT", "4")
    clean_env.setenv("ENABLE_JSON_LOGS", "0")
    clean_env.setenv("AUDIO_CACHE_DIR", "/var/cache/audio")
    clean_env.setenv("PORT", "9001")

    config = AppConfig.load_from_env()

    assert config.pause_multiplier == 0.75
    assert config.recent_avoid_count == 4
    assert config.enable_json_logs is False
    assert config.audio_cache_dir == "/var/cache/audio"
    assert config.port == 9001


def test_bad_number_raises(clean_env: pytest.MonkeyPatch):
    clean_env.setenv("STALL_CHECK_INTERVAL_MS", "soon")

    with pytest.raises(ValueError):
        AppConfig.load_from_env()


def test_watchdog_defaults():
    assert STALL_CHECK_INTERVAL_MS == 1_500
    assert SEGMENT_SAFETY_TIMEOUT_MS == 15_000
    assert ms_to_seconds(1_500) == 1.5
    assert ms_to_seconds(-5) == 0.0
