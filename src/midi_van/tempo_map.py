"""Tempo map: which tempo is in force at every tick of a file.

Tempo changes are collected from every track, not only the first one, at the
absolute tick where they occur. When several changes share a tick the one
declared last (track order, then position in track) wins. If nothing is
declared at tick 0 the MIDI default of 500000 us/quarter (120 BPM) applies
until the first change.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import List, Sequence

from .errors import MalformedTempo, UnsupportedTimingFormat
from .events import TIMING_METRICAL, DecodedFile, MetaEvent, iter_absolute
from .timebase import DEFAULT_TEMPO, ticks_to_ms


@dataclass(frozen=True)
class TempoChange:
    at_tick: int
    micros_per_quarter: int


class TempoMap:
    """Immutable, tick-ordered sequence of tempo changes (never empty)."""

    def __init__(self, changes: Sequence[TempoChange]) -> None:
        if not changes:
            raise ValueError("tempo map needs at least one entry")
        ticks = [c.at_tick for c in changes]
        if any(b < a for a, b in zip(ticks, ticks[1:])):
            raise ValueError("tempo changes must be ordered by tick")
        self._changes = tuple(changes)
        self._ticks = ticks

    def __len__(self) -> int:
        return len(self._changes)

    def __getitem__(self, index: int) -> TempoChange:
        return self._changes[index]

    def __iter__(self):
        return iter(self._changes)

    def index_at(self, tick: int) -> int:
        """Index of the change in force at `tick` (last one at or before it)."""
        return max(0, bisect_right(self._ticks, tick) - 1)

    def tempo_at(self, tick: int) -> int:
        return self._changes[self.index_at(tick)].micros_per_quarter

    def span_ms(self, start_tick: int, end_tick: int, ppq: int) -> float:
        """Wall-clock length of [start_tick, end_tick] in milliseconds.

        The interval is split at each tempo change inside it and every piece
        is timed at its own tempo.
        """
        if end_tick <= start_tick:
            return 0.0
        total = 0.0
        pos = start_tick
        idx = self.index_at(start_tick)
        while pos < end_tick:
            nxt = idx + 1
            boundary = end_tick
            if nxt < len(self._changes) and self._ticks[nxt] < end_tick:
                boundary = self._ticks[nxt]
            total += ticks_to_ms(boundary - pos, ppq, self._changes[idx].micros_per_quarter)
            pos = boundary
            idx = nxt
        return total


def collect_tempo_changes(tracks: Sequence[Sequence]) -> List[TempoChange]:
    found = []
    order = 0
    for track in tracks:
        for tick, ev in iter_absolute(track):
            if not isinstance(ev, MetaEvent) or ev.kind != "set_tempo":
                continue
            if ev.tempo is None or ev.tempo <= 0:
                raise MalformedTempo(f"invalid tempo {ev.tempo!r} at tick {tick}")
            found.append((tick, order, TempoChange(tick, int(ev.tempo))))
            order += 1
    found.sort(key=lambda t: (t[0], t[1]))
    return [c for _tick, _order, c in found]


def build_tempo_map(decoded: DecodedFile) -> TempoMap:
    """Build the tempo map for a decoded file.

    Raises UnsupportedTimingFormat for time-code files and MalformedTempo for
    zero or missing tempo values.
    """
    if decoded.timing != TIMING_METRICAL:
        raise UnsupportedTimingFormat(f"{decoded.timing} timing is not supported")
    if decoded.ticks_per_quarter_note <= 0:
        raise UnsupportedTimingFormat(
            f"invalid ticks per quarter note: {decoded.ticks_per_quarter_note}"
        )

    changes = collect_tempo_changes(decoded.tracks)
    if not changes or changes[0].at_tick > 0:
        changes.insert(0, TempoChange(0, DEFAULT_TEMPO))
    return TempoMap(changes)
