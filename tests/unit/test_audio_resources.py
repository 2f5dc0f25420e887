# pylint: disable=missing-module-docstring,missing-function-docstring

from typing import Any

from playback.audio_resources import AudioResourceManager
from playback.object_urls import ObjectUrlStore

from playback_fakes import FakeDevice, event_types


def _manager(store: ObjectUrlStore | None = None) -> tuple[AudioResourceManager, list[FakeDevice]]:
    created: list[FakeDevice] = []

    def factory() -> FakeDevice:
        device = FakeDevice()
        created.append(device)
        return device

    return AudioResourceManager(device_factory=factory, url_store=store), created


# ---------------------------------------------------------------------
# Device handle
# ---------------------------------------------------------------------

def test_device_is_created_once_and_reused(events: list[dict[str, Any]]):
    manager, created = _manager()

    assert manager.device is None
    first = manager.acquire_device()
    second = manager.acquire_device()

    assert first is second
    assert len(created) == 1
    assert event_types(events).count("OUTPUT_DEVICE_CREATED") == 1


def test_release_keeps_the_device_handle():
    manager, created = _manager()
    device = manager.acquire_device()
    device.load("/blob/x")

    manager.release()

    assert manager.acquire_device() is device
    assert len(created) == 1
    assert created[0].unload_count == 1


# ---------------------------------------------------------------------
# Object URL slot
# ---------------------------------------------------------------------

def test_creating_a_url_revokes_the_previous_one():
    store = ObjectUrlStore()
    manager, _ = _manager(store)

    first = manager.create_object_url(b"one", "audio/mpeg")
    second = manager.create_object_url(b"two", "audio/mpeg")

    assert first != second
    assert not store.is_live(first)
    assert store.is_live(second)
    assert store.live_count == 1
    assert manager.current_object_url == second


def test_revoking_a_replaced_url_leaves_the_live_one_alone():
    store = ObjectUrlStore()
    manager, _ = _manager(store)

    stale = manager.create_object_url(b"one")
    live = manager.create_object_url(b"two")
    manager.revoke_object_url(stale)

    assert store.is_live(live)
    assert manager.current_object_url == live


def test_revoke_is_idempotent():
    store = ObjectUrlStore()
    manager, _ = _manager(store)
    url = manager.create_object_url(b"x")

    manager.revoke_object_url(url)
    manager.revoke_object_url(url)
    manager.revoke_object_url()

    assert store.live_count == 0
    assert manager.current_object_url is None


def test_release_revokes_live_url():
    store = ObjectUrlStore()
    manager, _ = _manager(store)
    manager.create_object_url(b"x")

    manager.release()

    assert store.live_count == 0


# ---------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------

def test_store_serves_until_revoked():
    store = ObjectUrlStore()
    url = store.create(b"abc", "audio/ogg")
    token = url.rsplit("/", 1)[-1]

    assert url.startswith("/blob/")
    blob = store.get(token)
    assert blob is not None
    assert blob.data == b"abc"
    assert blob.mime_type == "audio/ogg"

    assert store.revoke(url) is True
    assert store.revoke(url) is False
    assert store.get(token) is None
