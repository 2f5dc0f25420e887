"""
Cycle value objects.

A Cycle is an immutable learning unit where text and audio are bound
together by id. Cycles are created upstream (catalog / content loading) and
only read by the playback engine.

Rules:
- All classes here are frozen dataclasses.
- Validation happens at construction; a constructed Cycle is always playable
  in principle (its audio may still be missing from the cache).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Collection, Iterable, Mapping


class CycleType(str, Enum):
    """Position of a cycle in the learning sequence."""

    INTRO = "intro"
    DEBUT = "debut"
    PRACTICE = "practice"
    REVIEW = "review"


@dataclass(frozen=True)
class AudioReference:
    """Known-language side: text plus the audio id played as the prompt."""
    text: str
    audio_id: str
    duration_ms: int = 0


@dataclass(frozen=True)
class TargetSide:
    """Target-language side: shared text, two independently addressable voices."""
    text: str
    voice1_audio_id: str
    voice2_audio_id: str
    voice1_duration_ms: int = 0
    voice2_duration_ms: int = 0


@dataclass(frozen=True)
class Cycle:
    """
    One PROMPT -> PAUSE -> VOICE_1 -> VOICE_2 playback unit.

    pause_duration_ms is the silent gap after the prompt. It is caller
    supplied and unbounded above, but must not be negative.
    """

    id: str
    known: AudioReference
    target: TargetSide
    pause_duration_ms: int

    seed_id: str = ""
    lego_id: str = ""
    cycle_type: CycleType = CycleType.PRACTICE

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Cycle.id must be non-empty")
        if self.pause_duration_ms < 0:
            raise ValueError(
                f"Cycle {self.id}: pause_duration_ms must be >= 0, "
                f"got {self.pause_duration_ms}"
            )

    def audio_ids(self) -> tuple[str, str, str]:
        """Audio ids in playback order: known, voice 1, voice 2."""
        return (
            self.known.audio_id,
            self.target.voice1_audio_id,
            self.target.voice2_audio_id,
        )

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> Cycle:
        """
        Build a Cycle from a JSON mapping.

        Accepts both snake_case and camelCase keys, as produced by the
        content tooling.

        Raises:
            KeyError if a required field is missing.
            ValueError if a field is invalid.
        """
        known = data["known"]
        target = data["target"]
        return Cycle(
            id=str(data["id"]),
            known=AudioReference(
                text=known.get("text", ""),
                audio_id=_pick(known, "audio_id", "audioId"),
                duration_ms=int(_pick(known, "duration_ms", "durationMs", default=0)),
            ),
            target=TargetSide(
                text=target.get("text", ""),
                voice1_audio_id=_pick(target, "voice1_audio_id", "voice1AudioId"),
                voice2_audio_id=_pick(target, "voice2_audio_id", "voice2AudioId"),
                voice1_duration_ms=int(
                    _pick(target, "voice1_duration_ms", "voice1DurationMs", default=0)
                ),
                voice2_duration_ms=int(
                    _pick(target, "voice2_duration_ms", "voice2DurationMs", default=0)
                ),
            ),
            pause_duration_ms=int(_pick(data, "pause_duration_ms", "pauseDurationMs")),
            seed_id=str(_pick(data, "seed_id", "seedId", default="")),
            lego_id=str(_pick(data, "lego_id", "legoId", default="")),
            cycle_type=CycleType(data.get("type", CycleType.PRACTICE.value)),
        )


_MISSING = object()


def _pick(data: Mapping[str, Any], *keys: str, default: Any = _MISSING) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    if default is _MISSING:
        raise KeyError(keys[0])
    return default


# =============================================================================
# Cache validation
# =============================================================================

@dataclass(frozen=True)
class ValidationResult:
    """Whether every audio id is cached, and which ones are not."""
    ready: bool
    missing: tuple[str, ...] = field(default_factory=tuple)


def validate_cycle(cycle: Cycle, cached_ids: Collection[str]) -> ValidationResult:
    """Check that all three audio files of a cycle are in the cache."""
    missing = tuple(a for a in cycle.audio_ids() if a not in cached_ids)
    return ValidationResult(ready=not missing, missing=missing)


def validate_session(
    cycles: Iterable[Cycle],
    cached_ids: Collection[str],
) -> ValidationResult:
    """
    Check a whole session; missing ids are aggregated without duplicates,
    in first-seen order.
    """
    seen: dict[str, None] = {}
    for cycle in cycles:
        for audio_id in validate_cycle(cycle, cached_ids).missing:
            seen.setdefault(audio_id, None)
    return ValidationResult(ready=not seen, missing=tuple(seen))
