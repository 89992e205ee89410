from __future__ import annotations

import asyncio
import random
from pathlib import Path

import pytest

from midi_van import radio
from midi_van.errors import CatalogError, DownloadError, PlaybackAborted
from midi_van.messages import all_notes_off
from midi_van.player import Player
from midi_van.radio import play_path, start_random_playback


def test_play_path_decodes_and_plays(sink, sleeper, short_midi):
    summary = asyncio.run(play_path(Player(sink, sleep=sleeper), short_midi))
    assert summary.events_sent == 2
    assert sink.sent[:2] == [b"\x90\x3c\x50", b"\x80\x3c\x00"]
    assert sink.sent[2:] == all_notes_off()


def test_random_playback_plays_requested_number_of_files(monkeypatch, sink, sleeper, short_midi):
    fetched = []

    def fake_download(url, cache_dir):
        fetched.append(url)
        return short_midi

    monkeypatch.setattr(radio, "download_midi_file", fake_download)
    player = Player(sink, sleep=sleeper)
    played = asyncio.run(
        start_random_playback(
            player,
            ["http://h/a.mid", "http://h/b.mid"],
            "unused",
            rng=random.Random(3),
            pause_s=0,
            max_files=3,
        )
    )
    assert played == 3
    assert len(fetched) == 3
    assert set(fetched) <= {"http://h/a.mid", "http://h/b.mid"}
    assert len(sink.sent) == 3 * (2 + 16)


def test_failed_files_are_skipped(monkeypatch, sink, sleeper, tmp_path: Path, short_midi):
    junk = tmp_path / "junk.mid"
    junk.write_bytes(b"garbage")

    def fake_download(url, cache_dir):
        if "missing" in url:
            raise DownloadError("404")
        if "junk" in url:
            return junk
        return short_midi

    monkeypatch.setattr(radio, "download_midi_file", fake_download)
    urls = ["http://h/missing.mid", "http://h/junk.mid", "http://h/ok.mid"]
    rng = random.Random(11)

    played = asyncio.run(
        start_random_playback(Player(sink, sleep=sleeper), urls, tmp_path, rng=rng, pause_s=0, max_files=6)
    )

    replay = random.Random(11)
    picks = [replay.choice(urls) for _ in range(6)]
    assert played == picks.count("http://h/ok.mid")


def test_empty_catalog_is_an_error(sink):
    with pytest.raises(CatalogError):
        asyncio.run(start_random_playback(Player(sink), [], "cache"))


def test_failed_attempts_pause_before_retrying(monkeypatch, sink, sleeper):
    def always_down(url, cache_dir):
        raise DownloadError("network unreachable")

    monkeypatch.setattr(radio, "download_midi_file", always_down)
    played = asyncio.run(
        start_random_playback(
            Player(sink),
            ["http://h/a.mid"],
            "cache",
            pause_s=1.5,
            max_files=3,
            sleep=sleeper,
        )
    )
    assert played == 0
    # no pause after the final attempt
    assert sleeper.calls == [1.5, 1.5]
    assert sink.sent == []


def test_unbounded_loop_runs_until_aborted(monkeypatch, sink, sleeper, short_midi):
    fetched = []

    def fake_download(url, cache_dir):
        fetched.append(url)
        if len(fetched) > 4:
            raise PlaybackAborted("stop")
        return short_midi

    monkeypatch.setattr(radio, "download_midi_file", fake_download)
    pauses = []

    async def record_pause(seconds):
        pauses.append(seconds)

    with pytest.raises(PlaybackAborted):
        asyncio.run(
            start_random_playback(
                Player(sink, sleep=sleeper),
                ["http://h/a.mid"],
                "cache",
                pause_s=2.0,
                sleep=record_pause,
            )
        )
    assert len(fetched) == 5
    assert pauses == [2.0] * 4
    assert len(sink.sent) == 4 * (2 + 16)
