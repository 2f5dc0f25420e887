# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest

from playback.sources import BlobSource, UrlSource
from session.audio_library import LocalAudioLibrary
from session.catalog import load_catalog, parse_catalog

from playback_fakes import event_types, make_cycle


# ---------------------------------------------------------------------
# LocalAudioLibrary
# ---------------------------------------------------------------------

def _library(tmp_path: Path, online: list[bool]) -> LocalAudioLibrary:
    return LocalAudioLibrary(
        cache_dir=tmp_path,
        base_url="https://cdn.test/audio/",
        is_online=lambda: online[0],
    )


def test_cached_file_resolves_to_blob(tmp_path: Path):
    (tmp_path / "a1.ogg").write_bytes(b"OggS")
    library = _library(tmp_path, [True])

    source = asyncio.run(library.resolve_audio("a1"))

    assert source == BlobSource(data=b"OggS", mime_type="audio/ogg")


def test_uncached_resolves_to_url_while_online(tmp_path: Path):
    library = _library(tmp_path, [True])

    source = asyncio.run(library.resolve_audio("a2"))

    assert source == UrlSource(url="https://cdn.test/audio/a2")


def test_uncached_offline_resolves_to_none(tmp_path: Path, events: list[dict[str, Any]]):
    library = _library(tmp_path, [False])

    assert asyncio.run(library.resolve_audio("a2")) is None
    assert "AUDIO_UNAVAILABLE_OFFLINE" in event_types(events)


@pytest.mark.parametrize("audio_id", ["../secret", "a/b", "..", ""])
def test_unsafe_ids_never_resolve(tmp_path: Path, audio_id: str):
    library = _library(tmp_path, [True])

    assert asyncio.run(library.resolve_audio(audio_id)) is None
    assert library.is_cached(audio_id) is False


def test_is_cycle_cached_requires_all_three_files(tmp_path: Path):
    cycle = make_cycle("c1")
    for audio_id in ("c1-k", "c1-v1"):
        (tmp_path / f"{audio_id}.mp3").write_bytes(b"ID3")
    library = _library(tmp_path, [True])

    assert library.is_cycle_cached(cycle) is False
    (tmp_path / "c1-v2.wav").write_bytes(b"RIFF")
    assert library.is_cycle_cached(cycle) is True
    assert library.cached_audio_ids() == {"c1-k", "c1-v1", "c1-v2"}


def test_no_cache_dir_means_nothing_cached():
    library = LocalAudioLibrary(cache_dir=None, base_url="/api/audio")

    assert library.is_cycle_cached(make_cycle("c1")) is False
    assert library.cached_audio_ids() == set()


# ---------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------

def _entry(cycle_id: str) -> dict[str, Any]:
    return {
        "id": cycle_id,
        "known": {"text": "k", "audioId": f"{cycle_id}-k"},
        "target": {"text": "t", "voice1AudioId": f"{cycle_id}-v1", "voice2AudioId": f"{cycle_id}-v2"},
        "pauseDurationMs": 1000,
    }


def test_load_catalog_list_and_wrapped_forms(tmp_path: Path):
    listed = tmp_path / "list.json"
    listed.write_text(json.dumps([_entry("a"), _entry("b")]), encoding="utf-8")
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"cycles": [_entry("c")]}), encoding="utf-8")

    assert [c.id for c in load_catalog(listed)] == ["a", "b"]
    assert [c.id for c in load_catalog(wrapped)] == ["c"]


def test_invalid_entries_are_skipped(events: list[dict[str, Any]]):
    bad = _entry("bad")
    bad["pauseDurationMs"] = -5

    cycles = parse_catalog([_entry("ok"), bad, {"id": "no-sides"}])

    assert [c.id for c in cycles] == ["ok"]
    assert event_types(events).count("CATALOG_ENTRY_INVALID") == 2


def test_wrong_shape_raises():
    with pytest.raises(ValueError):
        parse_catalog({"items": []})
