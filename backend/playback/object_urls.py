"""
Temporary object URL store.

Maps short-lived URLs to in-memory audio blobs so an output device can
address bytes that never touched the network. The HTTP layer serves live
entries; revoked entries are gone for good.

This store does not enforce the one-live-URL policy itself; that belongs
to AudioResourceManager, which owns the single slot.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from constants import OBJECT_URL_PREFIX, OBJECT_URL_TOKEN_HEX_LEN


@dataclass(frozen=True)
class StoredBlob:
    """Bytes and media type behind one object URL."""
    data: bytes
    mime_type: str


class ObjectUrlStore:
    """In-memory registry of live object URLs."""

    def __init__(self, *, prefix: str = OBJECT_URL_PREFIX) -> None:
        self._prefix = prefix.rstrip("/")
        self._blobs: dict[str, StoredBlob] = {}

    def create(self, data: bytes, mime_type: str) -> str:
        """Register a blob and return its URL."""
        token = uuid.uuid4().hex[:OBJECT_URL_TOKEN_HEX_LEN]
        self._blobs[token] = StoredBlob(data=data, mime_type=mime_type)
        return f"{self._prefix}/{token}"

    def revoke(self, url: str) -> bool:
        """
        Drop a URL. Idempotent.

        Returns True if the URL was live.
        """
        return self._blobs.pop(self._token(url), None) is not None

    def get(self, token: str) -> StoredBlob | None:
        """Look up a live blob by token (the last URL path segment)."""
        return self._blobs.get(token)

    def is_live(self, url: str) -> bool:
        """True until the URL is revoked."""
        return self._token(url) in self._blobs

    @property
    def live_count(self) -> int:
        """Number of URLs not yet revoked."""
        return len(self._blobs)

    def _token(self, url: str) -> str:
        return url.rsplit("/", 1)[-1]
