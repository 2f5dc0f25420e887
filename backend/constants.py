"""
BEHAVIOR-AS-CONSTANTS
---------------------
Single source of truth for every timing and sizing rule of the playback engine.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final, Mapping

# =============================================================================
# Segment watchdogs
# =============================================================================

# Cadence of the playback-position sampler.
STALL_CHECK_INTERVAL_MS: Final[int] = 1_500

# No single audio segment may block a cycle beyond this ceiling.
SEGMENT_SAFETY_TIMEOUT_MS: Final[int] = 15_000

# =============================================================================
# Cycle timing
# =============================================================================

DEFAULT_PAUSE_MULTIPLIER: Final[float] = 1.0
TURBO_PAUSE_MULTIPLIER: Final[float] = 0.75
BEGINNER_PAUSE_MULTIPLIER: Final[float] = 1.25

# =============================================================================
# Offline degradation
# =============================================================================

RECENT_AVOID_COUNT: Final[int] = 10

# =============================================================================
# Learning session
# =============================================================================

# Pause before the next pick after a cycle failed, so repeated failures
# cannot spin the loop.
FAILED_CYCLE_BACKOFF_MS: Final[int] = 500

# =============================================================================
# Media error codes (HTML MediaError numbering, reported by output devices)
# =============================================================================

MEDIA_ERR_ABORTED: Final[int] = 1
MEDIA_ERR_NETWORK: Final[int] = 2
MEDIA_ERR_DECODE: Final[int] = 3
MEDIA_ERR_SRC_NOT_SUPPORTED: Final[int] = 4

# =============================================================================
# Temporary object URLs
# =============================================================================

OBJECT_URL_PREFIX: Final[str] = "/blob"
OBJECT_URL_TOKEN_HEX_LEN: Final[int] = 16

# =============================================================================
# Local audio cache
# =============================================================================

AUDIO_FILE_EXTENSIONS: Final[Mapping[str, str]] = {
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
}
DEFAULT_AUDIO_MIME_TYPE: Final[str] = "audio/mpeg"


# =============================================================================
# Helper Functions
# =============================================================================

def ms_to_seconds(duration_ms: float) -> float:
    """
    Convert milliseconds to seconds for asyncio.sleep().

    Negative input returns 0.0.
    """
    if duration_ms <= 0:
        return 0.0
    return duration_ms / 1000.0
