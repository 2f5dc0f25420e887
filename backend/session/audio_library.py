"""
Cache-first audio library.

Responsibilities:
- Resolve audio ids to sources: cached file first, remote URL when online
- Answer "is every audio file of this cycle cached?"

Non-responsibilities:
- No downloading or cache population
- No playback
- No degradation decisions (OfflineDegradationController)

Cache layout: <cache_dir>/<audio_id><ext>, ext from AUDIO_FILE_EXTENSIONS.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable

from constants import AUDIO_FILE_EXTENSIONS
from observability.logger import log_event
from playback.cycle import Cycle
from playback.sources import AudioSource, BlobSource, UrlSource


class LocalAudioLibrary:
    """Directory-backed resolver with a streaming fallback."""

    def __init__(
        self,
        *,
        cache_dir: str | Path | None,
        base_url: str,
        is_online: Callable[[], bool] = lambda: True,
    ) -> None:
        self._cache_dir = Path(cache_dir) if cache_dir else None
        self._base_url = base_url.rstrip("/")
        self._is_online = is_online

    # ------------------------------------------------------------------
    # Resolver
    # ------------------------------------------------------------------

    async def resolve_audio(self, audio_id: str) -> AudioSource | None:
        """
        Cached blob, else remote URL while online, else None.

        Unsafe ids (path separators, dot segments) never resolve.
        """
        if not _is_safe_id(audio_id):
            log_event({"event_type": "AUDIO_ID_REJECTED", "audio_id": audio_id})
            return None

        path = self._cached_path(audio_id)
        if path is not None:
            data = await asyncio.to_thread(path.read_bytes)
            return BlobSource(data=data, mime_type=AUDIO_FILE_EXTENSIONS[path.suffix])

        if self._is_online():
            return UrlSource(url=f"{self._base_url}/{audio_id}")

        log_event({"event_type": "AUDIO_UNAVAILABLE_OFFLINE", "audio_id": audio_id})
        return None

    # ------------------------------------------------------------------
    # Cache queries
    # ------------------------------------------------------------------

    def is_cached(self, audio_id: str) -> bool:
        return _is_safe_id(audio_id) and self._cached_path(audio_id) is not None

    def is_cycle_cached(self, cycle: Cycle) -> bool:
        """True when all three audio files of the cycle are on disk."""
        return all(self.is_cached(audio_id) for audio_id in cycle.audio_ids())

    def cached_audio_ids(self) -> set[str]:
        """Every audio id with a recognised file in the cache directory."""
        if self._cache_dir is None or not self._cache_dir.is_dir():
            return set()
        return {
            p.stem
            for p in self._cache_dir.iterdir()
            if p.is_file() and p.suffix in AUDIO_FILE_EXTENSIONS
        }

    def _cached_path(self, audio_id: str) -> Path | None:
        if self._cache_dir is None:
            return None
        for ext in AUDIO_FILE_EXTENSIONS:
            path = self._cache_dir / f"{audio_id}{ext}"
            if path.is_file():
                return path
        return None


def _is_safe_id(audio_id: str) -> bool:
    if not audio_id or audio_id in (".", ".."):
        return False
    return "/" not in audio_id and "\\" not in audio_id
