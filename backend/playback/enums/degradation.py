"""
Degradation level enumeration.

Levels are ordered from full fidelity to last resort.
"""

from __future__ import annotations

from enum import Enum


class DegradationLevel(str, Enum):
    """
    How far the engine has fallen back from the intended content.

    NORMAL:
        The scheduled cycle is locally cached and plays as-is.

    BELT_ONLY:
        Any cached cycle from the current pool, avoiding recent items.

    USE_PHRASES:
        Already-mastered content only (requires a mastered-cycle accessor).

    REPEAT:
        The last successfully played cycle, verbatim.
    """

    NORMAL = "normal"
    BELT_ONLY = "belt-only"
    USE_PHRASES = "use-phrases"
    REPEAT = "repeat"
