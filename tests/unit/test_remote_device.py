# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
from typing import Any

import pytest

from playback.device import DeviceEvent
from session.remote_device import RemoteOutputDevice

from playback_fakes import event_types


def _device() -> tuple[RemoteOutputDevice, list[dict[str, Any]]]:
    sent: list[dict[str, Any]] = []
    return RemoteOutputDevice(send_control=sent.append, session_id="sess_t"), sent


def test_commands_become_control_messages():
    device, sent = _device()

    device.load("/blob/abc")
    asyncio.run(device.play())
    device.pause()
    device.seek(0.0)
    device.unload()

    assert [m["type"] for m in sent] == [
        "AUDIO_LOAD", "AUDIO_PLAY", "AUDIO_PAUSE", "AUDIO_SEEK", "AUDIO_UNLOAD",
    ]
    assert sent[0]["src"] == "/blob/abc"
    assert sent[3]["position_s"] == 0.0
    assert device.src is None


def test_play_without_source_raises():
    device, _ = _device()

    with pytest.raises(RuntimeError):
        asyncio.run(device.play())


def test_commands_without_source_are_silent():
    device, sent = _device()

    device.pause()
    device.seek(0.0)
    device.unload()

    assert sent == []


def test_reports_update_state_and_dispatch():
    device, _ = _device()
    ended: list[str] = []
    errors: list[str] = []
    device.add_listener(DeviceEvent.ENDED, lambda: ended.append("ended"))
    device.add_listener(DeviceEvent.ERROR, lambda: errors.append("error"))

    device.load("/blob/abc")
    device.on_media_time(current_time=1.25, paused=False, src="/blob/abc")
    assert device.current_time == 1.25
    assert device.paused is False

    device.on_media_error(code=3, message="decode", src="/blob/abc")
    assert errors == ["error"]
    assert device.error is not None and device.error.code == 3

    device.on_media_ended(src="/blob/abc")
    assert ended == ["ended"]


def test_stale_reports_are_dropped(events: list[dict[str, Any]]):
    device, _ = _device()
    ended: list[str] = []
    device.add_listener(DeviceEvent.ENDED, lambda: ended.append("ended"))

    device.load("/blob/new")
    device.on_media_ended(src="/blob/old")
    device.on_media_time(current_time=9.0, paused=False, src="/blob/old")

    assert ended == []
    assert device.current_time == 0.0
    assert event_types(events).count("STALE_MEDIA_REPORT") == 2


def test_load_clears_previous_error():
    device, _ = _device()
    device.load("/blob/a")
    device.on_media_error(code=2, src="/blob/a")

    device.load("/blob/b")

    assert device.error is None
    assert device.paused is True
