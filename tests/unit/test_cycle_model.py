# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from playback.cycle import Cycle, CycleType, validate_cycle, validate_session
from playback.playback_config import (
    BEGINNER_CONFIG,
    TURBO_CONFIG,
    PlaybackConfig,
    calculate_pause_duration,
    create_playback_config,
)

from playback_fakes import make_cycle


# ---------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------

def test_from_dict_accepts_camel_case():
    cycle = Cycle.from_dict({
        "id": "c1",
        "seedId": "s1",
        "legoId": "l1",
        "type": "debut",
        "known": {"text": "hello", "audioId": "a-k", "durationMs": 900},
        "target": {
            "text": "hola",
            "voice1AudioId": "a-v1",
            "voice2AudioId": "a-v2",
            "voice1DurationMs": 1000,
            "voice2DurationMs": 1100,
        },
        "pauseDurationMs": 2500,
    })

    assert cycle.id == "c1"
    assert cycle.cycle_type is CycleType.DEBUT
    assert cycle.audio_ids() == ("a-k", "a-v1", "a-v2")
    assert cycle.known.duration_ms == 900
    assert cycle.pause_duration_ms == 2500


def test_from_dict_accepts_snake_case_with_defaults():
    cycle = Cycle.from_dict({
        "id": "c2",
        "known": {"audio_id": "k"},
        "target": {"voice1_audio_id": "v1", "voice2_audio_id": "v2"},
        "pause_duration_ms": 0,
    })

    assert cycle.cycle_type is CycleType.PRACTICE
    assert cycle.target.text == ""


def test_from_dict_missing_field_raises_key_error():
    with pytest.raises(KeyError):
        Cycle.from_dict({"id": "c3", "known": {"audio_id": "k"}, "target": {}})


def test_negative_pause_is_rejected():
    with pytest.raises(ValueError):
        make_cycle("c1", pause_ms=-1)


def test_empty_id_is_rejected():
    with pytest.raises(ValueError):
        make_cycle("")


# ---------------------------------------------------------------------
# Cache validation
# ---------------------------------------------------------------------

def test_validate_cycle_lists_missing_ids_in_order():
    result = validate_cycle(make_cycle("c1"), {"c1-v1"})

    assert result.ready is False
    assert result.missing == ("c1-k", "c1-v2")


def test_validate_session_deduplicates():
    a = make_cycle("a")
    cached = set(a.audio_ids())
    result = validate_session([a, make_cycle("b"), make_cycle("b")], cached)

    assert result.ready is False
    assert result.missing == ("b-k", "b-v1", "b-v2")
    assert validate_session([a], cached).ready is True


# ---------------------------------------------------------------------
# Pacing
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "base_ms, multiplier, expected",
    [
        (2000, 1.0, 2000),
        (2000, TURBO_CONFIG["pause_multiplier"], 1500),
        (2000, BEGINNER_CONFIG["pause_multiplier"], 2500),
        (3, 0.5, 2),
        (0, 2.0, 0),
    ],
)
def test_pause_duration_scaling(base_ms: int, multiplier: float, expected: int):
    config = create_playback_config(pause_multiplier=multiplier)
    assert calculate_pause_duration(base_ms, config) == expected


def test_presets_build_configs():
    turbo = create_playback_config(**TURBO_CONFIG)

    assert turbo.turbo_mode is True
    assert turbo.adaptive_pause is False
    assert create_playback_config() == PlaybackConfig()


def test_negative_multiplier_is_rejected():
    with pytest.raises(ValueError):
        PlaybackConfig(pause_multiplier=-0.5)
