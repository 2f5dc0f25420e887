"""
Audio source variants and the resolver contract.

An AudioSource is a closed tagged union:
- BlobSource: in-memory bytes (offline / cached playback)
- UrlSource: remote URI (streamed playback)

Resolution of an audio id into a source is an external, asynchronous
collaborator. The engine treats it as opaque.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from constants import DEFAULT_AUDIO_MIME_TYPE


@dataclass(frozen=True)
class BlobSource:
    """Audio bytes held in memory; played through a temporary object URL."""
    data: bytes
    mime_type: str = DEFAULT_AUDIO_MIME_TYPE

    def __repr__(self) -> str:
        return f"BlobSource(<{len(self.data)} bytes>, mime_type={self.mime_type!r})"


@dataclass(frozen=True)
class UrlSource:
    """Audio addressable by URL; played directly."""
    url: str


AudioSource = Union[BlobSource, UrlSource]

# resolve_audio(audio_id) -> AudioSource, or None when the id is unknown
AudioResolver = Callable[[str], Awaitable[AudioSource | None]]
