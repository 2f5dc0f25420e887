"""
Playback pacing configuration.

Config changes alter pause pacing only; they never rebuild cycles.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Final

from constants import (
    BEGINNER_PAUSE_MULTIPLIER,
    DEFAULT_PAUSE_MULTIPLIER,
    TURBO_PAUSE_MULTIPLIER,
)


@dataclass(frozen=True)
class PlaybackConfig:
    """
    Immutable pacing options.

    pause_multiplier scales each cycle's pause: 0.5 (fast) to 2.0 (slow).
    """
    turbo_mode: bool = False
    pause_multiplier: float = DEFAULT_PAUSE_MULTIPLIER
    adaptive_pause: bool = True

    def __post_init__(self) -> None:
        if self.pause_multiplier < 0:
            raise ValueError("pause_multiplier must be >= 0")


DEFAULT_PLAYBACK_CONFIG: Final[PlaybackConfig] = PlaybackConfig()

# Experienced learners who want fast drilling
TURBO_CONFIG: Final[dict[str, Any]] = {
    "turbo_mode": True,
    "pause_multiplier": TURBO_PAUSE_MULTIPLIER,
    "adaptive_pause": False,
}

# Slower pace
BEGINNER_CONFIG: Final[dict[str, Any]] = {
    "turbo_mode": False,
    "pause_multiplier": BEGINNER_PAUSE_MULTIPLIER,
    "adaptive_pause": True,
}


def create_playback_config(**overrides: Any) -> PlaybackConfig:
    """Merge overrides onto the defaults."""
    return replace(DEFAULT_PLAYBACK_CONFIG, **overrides)


def calculate_pause_duration(base_duration_ms: int, config: PlaybackConfig) -> int:
    """Scaled pause in whole milliseconds, rounded half-up."""
    return int(math.floor(base_duration_ms * config.pause_multiplier + 0.5))
