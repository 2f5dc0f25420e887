"""
Offline degradation controller.

When the scheduled cycle cannot be played from the local cache, pick
something that can, through four decreasing levels of fidelity:

1. NORMAL       scheduled cycle is cached -> play it as-is
2. BELT_ONLY    random cached cycle, avoiding recent ids when possible
3. USE_PHRASES  random cached *mastered* cycle (only if an accessor is wired)
4. REPEAT       last successfully played cycle

Connectivity is mirrored for UI and can_play_cycle(), but it does not gate
level 1: a cycle can be fully cached while offline, or not yet downloaded
while online. Cache presence is the admission test.

Only a first-ever session with nothing cached and nothing played yields
None; that case is logged and the level is left untouched.
"""

from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass
from typing import Callable, Sequence

from constants import RECENT_AVOID_COUNT
from observability.logger import log_event
from playback.cycle import Cycle
from playback.enums.degradation import DegradationLevel


GetCyclesFn = Callable[[], Sequence[Cycle]]
IsCycleCachedFn = Callable[[Cycle], bool]


DEGRADATION_MESSAGES: dict[DegradationLevel, str | None] = {
    DegradationLevel.NORMAL: None,
    DegradationLevel.BELT_ONLY: "Playing from your offline library",
    DegradationLevel.USE_PHRASES: "Reviewing mastered content while offline",
    DegradationLevel.REPEAT: "Repeating last lesson - go online to continue",
}


@dataclass(frozen=True)
class DegradationState:
    """Read-only snapshot for UI feedback and logs."""
    degradation_level: DegradationLevel
    last_played_cycle: Cycle | None
    recent_item_ids: tuple[str, ...]
    cached_pool_size: int
    is_offline: bool
    is_infinite_play: bool


class OfflineDegradationController:
    """
    Chooses the next playable cycle and tracks recent history.

    History (recent ids, last played cycle) lives only as long as this
    object; nothing is persisted.
    """

    def __init__(
        self,
        *,
        get_cached_cycles: GetCyclesFn,
        is_cycle_cached: IsCycleCachedFn,
        get_mastered_cycles: GetCyclesFn | None = None,
        recent_avoid_count: int = RECENT_AVOID_COUNT,
        is_online: bool = True,
        rng: random.Random | None = None,
    ) -> None:
        if recent_avoid_count < 0:
            raise ValueError("recent_avoid_count must be >= 0")

        self._get_cached_cycles = get_cached_cycles
        self._is_cycle_cached = is_cycle_cached
        self._get_mastered_cycles = get_mastered_cycles
        self._recent_avoid_count = recent_avoid_count
        self._rng = rng if rng is not None else random.Random()

        self._is_online = is_online
        self._force_infinite_play = False
        self._recent_item_ids: deque[str] = deque(maxlen=recent_avoid_count)
        self._degradation_level = DegradationLevel.NORMAL
        self._last_played_cycle: Cycle | None = None
        self._cached_pool: tuple[Cycle, ...] = ()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def degradation_level(self) -> DegradationLevel:
        return self._degradation_level

    @property
    def last_played_cycle(self) -> Cycle | None:
        return self._last_played_cycle

    @property
    def recent_item_ids(self) -> tuple[str, ...]:
        return tuple(self._recent_item_ids)

    @property
    def cached_pool(self) -> tuple[Cycle, ...]:
        return self._cached_pool

    @property
    def is_online(self) -> bool:
        return self._is_online

    @property
    def is_infinite_play(self) -> bool:
        """Offline, or infinite play forced on."""
        return not self._is_online or self._force_infinite_play

    @property
    def state(self) -> DegradationState:
        return DegradationState(
            degradation_level=self._degradation_level,
            last_played_cycle=self._last_played_cycle,
            recent_item_ids=self.recent_item_ids,
            cached_pool_size=len(self._cached_pool),
            is_offline=not self._is_online,
            is_infinite_play=self.is_infinite_play,
        )

    # ------------------------------------------------------------------
    # Connectivity mirror
    # ------------------------------------------------------------------

    def set_online(self, online: bool) -> None:
        """Mirror a platform online/offline notification."""
        if online == self._is_online:
            return
        self._is_online = online
        log_event({
            "event_type": "NETWORK_ONLINE" if online else "NETWORK_OFFLINE",
        })

    def enable_infinite_play(self) -> None:
        """Force infinite play regardless of connectivity."""
        self._force_infinite_play = True
        log_event({"event_type": "INFINITE_PLAY_FORCED", "enabled": True})

    def disable_infinite_play(self) -> None:
        """Stop forcing infinite play."""
        self._force_infinite_play = False
        log_event({"event_type": "INFINITE_PLAY_FORCED", "enabled": False})

    def toggle_infinite_play(self) -> bool:
        """Flip forced infinite play; returns the new value."""
        if self._force_infinite_play:
            self.disable_infinite_play()
        else:
            self.enable_infinite_play()
        return self._force_infinite_play

    # ------------------------------------------------------------------
    # Cached pool
    # ------------------------------------------------------------------

    def refresh_cached_pool(self) -> int:
        """
        Recompute the pool of locally available cycles.

        Caller-triggered; the pool is not kept in sync between refreshes.
        Returns the new pool size.
        """
        self._cached_pool = tuple(
            c for c in self._get_cached_cycles() if self._is_cycle_cached(c)
        )
        log_event({
            "event_type": "CACHED_POOL_REFRESHED",
            "cached_cycles": len(self._cached_pool),
        })
        return len(self._cached_pool)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def get_next_playable_cycle(self, scheduled_cycle: Cycle | None = None) -> Cycle | None:
        """
        Return the best playable cycle, degrading as needed.

        None only when nothing has ever been cached or played.
        """
        # Level 1: the scheduled cycle itself
        if scheduled_cycle is not None and self._is_cycle_cached(scheduled_cycle):
            self._set_level(DegradationLevel.NORMAL)
            return scheduled_cycle

        # Level 2: anything from the cached pool
        pick = self._pick_avoiding_recent(self._cached_pool)
        if pick is not None:
            self._set_level(DegradationLevel.BELT_ONLY, scheduled_cycle, len(self._cached_pool))
            return pick

        # Level 3: mastered content, when the caller wired it in
        if self._get_mastered_cycles is not None:
            mastered = tuple(
                c for c in self._get_mastered_cycles() if self._is_cycle_cached(c)
            )
            pick = self._pick_avoiding_recent(mastered)
            if pick is not None:
                self._set_level(DegradationLevel.USE_PHRASES, scheduled_cycle, len(mastered))
                return pick

        # Level 4: repeat the last good cycle
        if self._last_played_cycle is not None:
            self._set_level(DegradationLevel.REPEAT, scheduled_cycle, 1)
            return self._last_played_cycle

        log_event({
            "event_type": "NO_FALLBACK_AVAILABLE",
            "scheduled_cycle_id": scheduled_cycle.id if scheduled_cycle else None,
            "is_online": self._is_online,
        })
        return None

    def can_play_cycle(self, cycle: Cycle) -> bool:
        """Cached, or online so it can be streamed."""
        return self._is_cycle_cached(cycle) or self._is_online

    def resume_normal(self) -> None:
        """Back to NORMAL when the caller admits a scheduled cycle for streaming."""
        self._set_level(DegradationLevel.NORMAL)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def mark_cycle_as_played(self, cycle: Cycle) -> None:
        """
        Record a successful play.

        Callers invoke this only after the player reports completion. It
        always clears degradation, even if the next pick degrades again.
        """
        self._last_played_cycle = cycle
        if self._recent_avoid_count > 0:
            self._recent_item_ids.append(cycle.id)
        self._degradation_level = DegradationLevel.NORMAL

    def clear_recent_history(self) -> None:
        """Forget recent ids (e.g. when normal playback resumes)."""
        self._recent_item_ids.clear()

    def get_degradation_message(self) -> str | None:
        """User-facing status; None while NORMAL."""
        return DEGRADATION_MESSAGES.get(self._degradation_level)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _pick_avoiding_recent(self, pool: Sequence[Cycle]) -> Cycle | None:
        if not pool:
            return None
        recent = set(self._recent_item_ids)
        fresh = [c for c in pool if c.id not in recent]
        return self._rng.choice(fresh or list(pool))

    def _set_level(
        self,
        level: DegradationLevel,
        scheduled_cycle: Cycle | None = None,
        available: int | None = None,
    ) -> None:
        changed = level is not self._degradation_level
        self._degradation_level = level
        if changed and level is not DegradationLevel.NORMAL:
            log_event({
                "event_type": "PLAYBACK_DEGRADED",
                "level": level.value,
                "scheduled_cycle_id": scheduled_cycle.id if scheduled_cycle else None,
                "available": available,
                "is_online": self._is_online,
            })
