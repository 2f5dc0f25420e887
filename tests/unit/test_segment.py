# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio

import pytest

from playback.device import DeviceEvent
from playback.enums.media_error import MediaErrorKind
from playback.errors import MediaError, PlaybackAborted
from playback.segment import SUCCESS_OUTCOMES, Segment, SegmentOutcome

from playback_fakes import FakeDevice


class ReleaseRecorder:
    def __init__(self) -> None:
        self.released: list[str] = []

    def __call__(self, url: str) -> None:
        self.released.append(url)


async def _run_segment(device: FakeDevice, release: ReleaseRecorder, **kwargs) -> Segment:
    segment = Segment(
        device=device,
        label="test",
        object_url="/blob/abc",
        release_url=release,
        stall_check_interval_s=kwargs.pop("stall_s", 0.02),
        safety_timeout_s=kwargs.pop("safety_s", 0.2),
    )
    segment.arm()
    device.load("/blob/abc")
    try:
        await device.play()
    except Exception as exc:  # pylint: disable=broad-exception-caught
        segment.fail_to_start(exc)
    return segment


def _assert_cleaned(device: FakeDevice, release: ReleaseRecorder) -> None:
    assert device.listener_count(DeviceEvent.ENDED) == 0
    assert device.listener_count(DeviceEvent.ERROR) == 0
    assert release.released == ["/blob/abc"]


def test_success_outcomes():
    assert SUCCESS_OUTCOMES == {
        SegmentOutcome.ENDED,
        SegmentOutcome.STALLED,
        SegmentOutcome.SAFETY_TIMEOUT,
    }


def test_ended_settles_and_cleans_up_once():
    device = FakeDevice(mode="end")
    release = ReleaseRecorder()

    async def scenario() -> SegmentOutcome:
        segment = await _run_segment(device, release)
        outcome = await segment.wait()
        # Late signals are ignored
        segment.abort()
        device._report_ended()  # pylint: disable=protected-access
        return outcome

    assert asyncio.run(scenario()) is SegmentOutcome.ENDED
    _assert_cleaned(device, release)


def test_stall_converges_to_success():
    device = FakeDevice(mode="stall")
    release = ReleaseRecorder()

    async def scenario() -> SegmentOutcome:
        segment = await _run_segment(device, release)
        return await segment.wait()

    assert asyncio.run(scenario()) is SegmentOutcome.STALLED
    _assert_cleaned(device, release)


def test_paused_device_is_not_considered_stalled():
    device = FakeDevice(mode="stall")
    release = ReleaseRecorder()

    async def scenario() -> SegmentOutcome:
        segment = await _run_segment(device, release, safety_s=0.15)
        device._paused = True  # pylint: disable=protected-access
        return await segment.wait()

    assert asyncio.run(scenario()) is SegmentOutcome.SAFETY_TIMEOUT


def test_position_zero_waits_for_safety_ceiling():
    device = FakeDevice(mode="silent")
    release = ReleaseRecorder()

    async def scenario() -> SegmentOutcome:
        segment = await _run_segment(device, release, safety_s=0.1)
        return await segment.wait()

    assert asyncio.run(scenario()) is SegmentOutcome.SAFETY_TIMEOUT
    _assert_cleaned(device, release)


def test_device_error_rejects_with_classified_media_error():
    device = FakeDevice(mode="error", error_code=2)
    release = ReleaseRecorder()

    async def scenario() -> None:
        segment = await _run_segment(device, release)
        await segment.wait()

    with pytest.raises(MediaError) as excinfo:
        asyncio.run(scenario())

    assert excinfo.value.kind is MediaErrorKind.NETWORK
    _assert_cleaned(device, release)


def test_play_failure_rejects():
    device = FakeDevice(mode="play_raises")
    release = ReleaseRecorder()
    outcomes: list[SegmentOutcome | None] = []

    async def scenario() -> None:
        segment = await _run_segment(device, release)
        outcomes.append(segment.outcome)
        await segment.wait()

    with pytest.raises(MediaError):
        asyncio.run(scenario())

    assert outcomes == [SegmentOutcome.PLAY_FAILED]
    _assert_cleaned(device, release)


def test_abort_rejects_and_wins_over_late_end():
    device = FakeDevice(mode="end", delay_s=0.05)
    release = ReleaseRecorder()

    async def scenario() -> None:
        segment = await _run_segment(device, release)
        segment.abort("stopped")
        await asyncio.sleep(0.08)
        assert segment.outcome is SegmentOutcome.ABORTED
        await segment.wait()

    with pytest.raises(PlaybackAborted):
        asyncio.run(scenario())

    _assert_cleaned(device, release)
