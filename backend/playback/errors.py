"""
Playback error taxonomy.

Propagation rules:
- SourceNotFoundError and MediaError are fatal to the current cycle attempt.
  They surface via PlaybackState.error and are raised from play_cycle().
- PlaybackAborted signals cancellation (stop() or a superseding play_cycle()).
  It never sets PlaybackState.error.
- Stalls and safety timeouts are NOT errors; they settle a segment
  successfully and only appear in logs.
"""

from __future__ import annotations

from playback.enums.media_error import MediaErrorKind


class PlaybackError(Exception):
    """Base class for everything play_cycle() may raise."""


class SourceNotFoundError(PlaybackError):
    """The resolver returned nothing for a required audio id."""

    def __init__(self, side: str, audio_id: str) -> None:
        self.side = side
        self.audio_id = audio_id
        super().__init__(f"{side} audio not found: {audio_id}")


class MediaError(PlaybackError):
    """The output device reported a failure."""

    def __init__(
        self,
        kind: MediaErrorKind,
        *,
        code: int | None = None,
        detail: str | None = None,
    ) -> None:
        self.kind = kind
        self.code = code
        self.detail = detail
        message = f"Audio playback error: {kind.value}"
        if code is not None:
            message += f" (code {code})"
        if detail:
            message += f" - {detail}"
        super().__init__(message)

    @classmethod
    def from_code(cls, code: int | None, detail: str | None = None) -> MediaError:
        """Classify a device error code."""
        return cls(MediaErrorKind.from_code(code), code=code, detail=detail)


class PlaybackAborted(PlaybackError):
    """Playback was cancelled before it could complete."""

    def __init__(self, reason: str = "stopped") -> None:
        self.reason = reason
        super().__init__(f"Playback aborted: {reason}")
