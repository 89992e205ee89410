from __future__ import annotations

import asyncio
from typing import List, Set

import pytest

from midi_van.events import DecodedFile, MetaEvent, RawEvent
from midi_van.messages import NoteOff, NoteOn


class RecordingSink:
    """Collects every command written; can be told to fail on given calls."""

    def __init__(self, fail_on: Set[int] | None = None) -> None:
        self.sent: List[bytes] = []
        self.calls = 0
        self.fail_on = fail_on or set()
        self.on_send = None

    def send(self, data: bytes) -> None:
        idx = self.calls
        self.calls += 1
        if idx in self.fail_on:
            raise OSError("port went away")
        self.sent.append(bytes(data))
        if self.on_send is not None:
            self.on_send(data)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def two_track_file() -> DecodedFile:
    """Track A: NoteOn@0, NoteOff@480. Track B: NoteOn@240. 120 BPM, ppq 480."""
    track_a = [
        MetaEvent(0, "set_tempo", tempo=500_000),
        RawEvent(0, 0, NoteOn(60, 100)),
        RawEvent(480, 0, NoteOff(60, 0)),
    ]
    track_b = [
        RawEvent(240, 1, NoteOn(64, 90)),
    ]
    return DecodedFile(ticks_per_quarter_note=480, tracks=[track_a, track_b])


@pytest.fixture
def make_sink():
    return RecordingSink


def write_short_midi(path, ticks_per_beat: int = 480) -> None:
    """Two notes a few ticks apart so real-time playback stays fast."""
    import mido

    mid = mido.MidiFile(type=1, ticks_per_beat=ticks_per_beat)
    track = mido.MidiTrack()
    track.append(mido.MetaMessage("set_tempo", tempo=500_000, time=0))
    track.append(mido.Message("note_on", note=60, velocity=80, time=0))
    track.append(mido.Message("note_off", note=60, velocity=0, time=4))
    mid.tracks.append(track)
    mid.save(str(path))


@pytest.fixture
def short_midi(tmp_path):
    path = tmp_path / "short.mid"
    write_short_midi(path)
    return path
