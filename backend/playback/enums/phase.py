"""
Cycle phase enumeration.

Rules:
- This enum defines ONLY the playback phases of a single cycle.
- Transitions are owned exclusively by CyclePlayer.
"""

from __future__ import annotations

from enum import Enum


class Phase(str, Enum):
    """
    Steps of one cycle, in playback order.

    IDLE is both the initial state and the terminal-success state.
    """

    IDLE = "IDLE"
    PROMPT = "PROMPT"
    PAUSE = "PAUSE"
    VOICE_1 = "VOICE_1"
    VOICE_2 = "VOICE_2"


# Successful-run order, IDLE excluded
PHASE_SEQUENCE: tuple[Phase, ...] = (
    Phase.PROMPT,
    Phase.PAUSE,
    Phase.VOICE_1,
    Phase.VOICE_2,
)
