from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from .errors import DecodeError
from .messages import MessageVariant

TIMING_METRICAL = "metrical"
TIMING_TIMECODE = "timecode"


@dataclass(frozen=True)
class RawEvent:
    """A channel message as read from one track.

    `delta_ticks` is relative to the previous event on the same track.
    """

    delta_ticks: int
    channel: int
    message: MessageVariant

    def __post_init__(self) -> None:
        if self.delta_ticks < 0:
            raise DecodeError(f"negative delta time: {self.delta_ticks}")
        if not 0 <= self.channel <= 15:
            raise DecodeError(f"channel out of range 0..15: {self.channel}")


@dataclass(frozen=True)
class MetaEvent:
    """A non-sounding track event (meta or sysex).

    Only `set_tempo` carries a payload we care about; the rest just keep the
    track's running time correct.
    """

    delta_ticks: int
    kind: str
    tempo: Optional[int] = None

    def __post_init__(self) -> None:
        if self.delta_ticks < 0:
            raise DecodeError(f"negative delta time: {self.delta_ticks}")


TrackEvent = Union[RawEvent, MetaEvent]


@dataclass
class DecodedFile:
    ticks_per_quarter_note: int
    tracks: Sequence[Sequence[TrackEvent]] = field(default_factory=list)
    timing: str = TIMING_METRICAL
    name: Optional[str] = None


@dataclass(frozen=True)
class ScheduledEvent:
    """A channel message at an absolute tick, ready for playback.

    `sequence` is assigned when the merger emits the event and breaks ties
    between events sharing a tick.
    """

    at_tick: int
    channel: int
    message: MessageVariant
    track: int = 0
    sequence: int = 0


def iter_absolute(track: Sequence[TrackEvent]):
    """Yield (absolute_tick, event) for one track, summing its own deltas."""
    tick = 0
    for ev in track:
        tick += ev.delta_ticks
        yield tick, ev

