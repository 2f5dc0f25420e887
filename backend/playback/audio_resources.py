"""
Audio resource ownership.

Responsibilities:
- Own exactly one reusable OutputDevice (created lazily, never recreated)
- Own the single temporary object URL slot
- Revoke the previous object URL before creating the next one

Non-responsibilities:
- No playback sequencing
- No watchdogs
- No knowledge of cycles or phases

Single writer: only CyclePlayer calls into this object.
"""

from __future__ import annotations

from typing import Callable

from constants import DEFAULT_AUDIO_MIME_TYPE
from observability.logger import log_event
from playback.device import OutputDevice
from playback.object_urls import ObjectUrlStore


DeviceFactory = Callable[[], OutputDevice]


class AudioResourceManager:
    """
    Holder of the shared output handle and the one-live-URL slot.

    Invariant: at most one object URL created here is live at any instant.
    """

    def __init__(
        self,
        *,
        device_factory: DeviceFactory,
        url_store: ObjectUrlStore | None = None,
    ) -> None:
        self._device_factory = device_factory
        self._url_store = url_store if url_store is not None else ObjectUrlStore()
        self._device: OutputDevice | None = None
        self._current_url: str | None = None

    # ------------------------------------------------------------------
    # Output device
    # ------------------------------------------------------------------

    def acquire_device(self) -> OutputDevice:
        """Return the shared device, creating it on first use."""
        if self._device is None:
            self._device = self._device_factory()
            log_event({"event_type": "OUTPUT_DEVICE_CREATED"})
        return self._device

    @property
    def device(self) -> OutputDevice | None:
        """The device if it has been created, without creating it."""
        return self._device

    # ------------------------------------------------------------------
    # Object URL slot
    # ------------------------------------------------------------------

    def create_object_url(
        self,
        data: bytes,
        mime_type: str = DEFAULT_AUDIO_MIME_TYPE,
    ) -> str:
        """Materialize a blob as a URL, revoking the previous one first."""
        self.revoke_object_url()
        url = self._url_store.create(data, mime_type)
        self._current_url = url
        return url

    def revoke_object_url(self, url: str | None = None) -> None:
        """
        Revoke the URL held in the slot.

        With url given, revoke only if it is still the slot's URL; a URL that
        was already replaced has already been revoked. Idempotent.
        """
        if self._current_url is None:
            return
        if url is not None and url != self._current_url:
            return
        self._url_store.revoke(self._current_url)
        self._current_url = None

    @property
    def current_object_url(self) -> str | None:
        """The live object URL, if any."""
        return self._current_url

    @property
    def url_store(self) -> ObjectUrlStore:
        """Backing store (served by the HTTP layer)."""
        return self._url_store

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def release(self) -> None:
        """
        Revoke the live URL and detach the device's source.

        The device handle itself is kept: a later acquire_device() returns
        the same instance.
        """
        self.revoke_object_url()
        if self._device is not None:
            self._device.pause()
            self._device.unload()
