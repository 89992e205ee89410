"""Channel message variants and their raw wire encoding.

The variants form a closed set. `encode` handles each of them explicitly
and rejects anything else, so a new variant cannot be dropped silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union

ALL_NOTES_OFF_CONTROLLER = 123
NUM_CHANNELS = 16


@dataclass(frozen=True)
class NoteOff:
    key: int
    velocity: int


@dataclass(frozen=True)
class NoteOn:
    key: int
    velocity: int


@dataclass(frozen=True)
class Aftertouch:
    """Polyphonic key pressure."""

    key: int
    pressure: int


@dataclass(frozen=True)
class Controller:
    controller: int
    value: int


@dataclass(frozen=True)
class ProgramChange:
    program: int


@dataclass(frozen=True)
class ChannelAftertouch:
    pressure: int


@dataclass(frozen=True)
class PitchBend:
    """14-bit unsigned bend value, 8192 is centre."""

    bend: int


MessageVariant = Union[
    NoteOff,
    NoteOn,
    Aftertouch,
    Controller,
    ProgramChange,
    ChannelAftertouch,
    PitchBend,
]


def encode(message: MessageVariant, channel: int) -> bytes:
    """Encode a channel message into its 2 or 3 byte command form.

    Field ranges are trusted: the decoder validates byte-sized values.
    """
    ch = channel & 0x0F
    if isinstance(message, NoteOff):
        return bytes((0x80 | ch, message.key, message.velocity))
    if isinstance(message, NoteOn):
        return bytes((0x90 | ch, message.key, message.velocity))
    if isinstance(message, Aftertouch):
        return bytes((0xA0 | ch, message.key, message.pressure))
    if isinstance(message, Controller):
        return bytes((0xB0 | ch, message.controller, message.value))
    if isinstance(message, ProgramChange):
        return bytes((0xC0 | ch, message.program))
    if isinstance(message, ChannelAftertouch):
        return bytes((0xD0 | ch, message.pressure))
    if isinstance(message, PitchBend):
        # LSB first, 7 bits per data byte
        return bytes((0xE0 | ch, message.bend & 0x7F, (message.bend >> 7) & 0x7F))
    raise TypeError(f"unsupported message variant: {type(message).__name__}")


def all_notes_off() -> List[bytes]:
    """One `Controller 123 = 0` command per channel, channels 0..15 in order."""
    return [encode(Controller(ALL_NOTES_OFF_CONTROLLER, 0), ch) for ch in range(NUM_CHANNELS)]
