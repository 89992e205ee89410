from __future__ import annotations

"""
Standard MIDI File reading on top of mido.

mido gives us delta-timed messages per track; this module turns them into
RawEvent/MetaEvent lists and validates channel data at decode time.
"""

from pathlib import Path
from typing import List, Union

import mido

from .errors import DecodeError
from .events import TIMING_METRICAL, TIMING_TIMECODE, DecodedFile, MetaEvent, RawEvent, TrackEvent
from .messages import (
    Aftertouch,
    ChannelAftertouch,
    Controller,
    MessageVariant,
    NoteOff,
    NoteOn,
    PitchBend,
    ProgramChange,
)

PITCH_CENTRE = 8192


def _variant_from_mido(msg: mido.Message) -> MessageVariant:
    kind = msg.type
    if kind == "note_off":
        return NoteOff(key=msg.note, velocity=msg.velocity)
    if kind == "note_on":
        return NoteOn(key=msg.note, velocity=msg.velocity)
    if kind == "polytouch":
        return Aftertouch(key=msg.note, pressure=msg.value)
    if kind == "control_change":
        return Controller(controller=msg.control, value=msg.value)
    if kind == "program_change":
        return ProgramChange(program=msg.program)
    if kind == "aftertouch":
        return ChannelAftertouch(pressure=msg.value)
    if kind == "pitchwheel":
        # mido reports -8192..8191; the wire value is unsigned 14-bit
        return PitchBend(bend=msg.pitch + PITCH_CENTRE)
    raise DecodeError(f"unexpected channel message type: {kind}")


def _track_events(track: mido.MidiTrack) -> List[TrackEvent]:
    events: List[TrackEvent] = []
    for msg in track:
        delta = int(getattr(msg, "time", 0))
        if msg.is_meta:
            tempo = msg.tempo if msg.type == "set_tempo" else None
            events.append(MetaEvent(delta_ticks=delta, kind=msg.type, tempo=tempo))
        elif hasattr(msg, "channel"):
            events.append(RawEvent(delta_ticks=delta, channel=msg.channel, message=_variant_from_mido(msg)))
        else:
            # sysex and other system messages only advance time
            events.append(MetaEvent(delta_ticks=delta, kind=msg.type))
    return events


def decode_midi(mid: mido.MidiFile, name: str | None = None) -> DecodedFile:
    """Convert a parsed mido file into a DecodedFile.

    A negative header division means SMPTE time-code timing; it is carried
    through as `timing="timecode"` and rejected when the tempo map is built.
    """
    division = int(mid.ticks_per_beat)
    # mido reads the division as a signed short; bit 15 marks SMPTE
    timecode = division < 0 or bool(division & 0x8000)
    timing = TIMING_TIMECODE if timecode else TIMING_METRICAL
    tracks = [_track_events(track) for track in mid.tracks]
    return DecodedFile(ticks_per_quarter_note=division, tracks=tracks, timing=timing, name=name)


def load_midi_file(path: Union[str, Path]) -> DecodedFile:
    path = Path(path)
    try:
        mid = mido.MidiFile(str(path))
    except (OSError, EOFError, ValueError, KeyError, IndexError) as e:
        raise DecodeError(f"cannot read MIDI file {path}: {e}") from e
    return decode_midi(mid, name=path.name)
