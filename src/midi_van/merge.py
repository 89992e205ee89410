from __future__ import annotations

from typing import List

from .errors import EmptyScore
from .events import DecodedFile, RawEvent, ScheduledEvent, iter_absolute


def merge_tracks(decoded: DecodedFile) -> List[ScheduledEvent]:
    """Flatten all tracks into one list of absolute-tick channel events.

    Each track keeps its own running tick. Events are numbered as they are
    emitted (track order, then position in track) and sorted by
    (at_tick, sequence), so simultaneous events keep their original order.
    Meta and sysex events only advance time and are not emitted.
    """
    merged: List[ScheduledEvent] = []
    seq = 0
    for track_idx, track in enumerate(decoded.tracks):
        for tick, ev in iter_absolute(track):
            if not isinstance(ev, RawEvent):
                continue
            merged.append(
                ScheduledEvent(
                    at_tick=tick,
                    channel=ev.channel,
                    message=ev.message,
                    track=track_idx,
                    sequence=seq,
                )
            )
            seq += 1

    if not merged:
        raise EmptyScore("no playable events in file")

    merged.sort(key=lambda e: (e.at_tick, e.sequence))
    return merged
