"""Playback driver: paces merged events to an output sink in real time.

One file is played as a single cooperative sequence of sleep-then-send
steps. Sleeping is the only suspension point, so cancellation is observed
there. Whatever way playback ends, all-notes-off is sent on every channel
before `play()` returns or raises.

Gaps that span a tempo change are split at the change and each piece is
timed at its own tempo.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from .errors import PlaybackAborted, PlaybackError, SinkWriteFailed
from .events import DecodedFile
from .merge import merge_tracks
from .messages import all_notes_off, encode
from .tempo_map import TempoMap, build_tempo_map
from .timebase import tempo_to_bpm

logger = logging.getLogger(__name__)


class Sink(Protocol):
    def send(self, data: bytes) -> None:
        """Write one 2 or 3 byte command; raise on failure."""


class PlaybackState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass
class PlaybackSummary:
    elapsed_s: float
    events_sent: int
    send_failures: int
    ticks_per_quarter_note: int
    final_tick: int


@dataclass
class PlaybackSession:
    """Transient per-file state; never reused for another file."""

    ticks_per_quarter_note: int
    tempo_map: Optional[TempoMap] = None
    tempo_index: int = 0
    current_tick: int = 0
    elapsed_ms: float = 0.0
    events_sent: int = 0
    send_failures: int = 0
    state: PlaybackState = PlaybackState.IDLE

    def start(self, tempo_map: TempoMap) -> None:
        self.tempo_map = tempo_map
        self.tempo_index = 0
        self.current_tick = 0
        self.elapsed_ms = 0.0
        self.state = PlaybackState.RUNNING

    def _require_map(self) -> TempoMap:
        if self.tempo_map is None:
            raise RuntimeError("session not started")
        return self.tempo_map

    @property
    def tempo(self) -> int:
        return self._require_map()[self.tempo_index].micros_per_quarter

    def advance(self, to_tick: int) -> float:
        """Move to `to_tick` and return the wait in milliseconds."""
        tempo_map = self._require_map()
        if to_tick <= self.current_tick:
            return 0.0
        duration_ms = tempo_map.span_ms(self.current_tick, to_tick, self.ticks_per_quarter_note)
        new_index = tempo_map.index_at(to_tick)
        for idx in range(self.tempo_index + 1, new_index + 1):
            change = tempo_map[idx]
            logger.debug(
                "Tempo change at tick %d: %d us per quarter note (%.1f BPM)",
                change.at_tick,
                change.micros_per_quarter,
                tempo_to_bpm(change.micros_per_quarter),
            )
        self.tempo_index = new_index
        self.current_tick = to_tick
        self.elapsed_ms += duration_ms
        return duration_ms


class Player:
    """Plays decoded files to a sink it owns exclusively.

    `sleep` and `clock` are injectable so pacing can be observed in tests.
    """

    def __init__(
        self,
        sink: Sink,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.sink = sink
        self._sleep = sleep
        self._clock = clock
        self._playing = False
        self._abort = asyncio.Event()
        self.session: Optional[PlaybackSession] = None

    @property
    def playing(self) -> bool:
        return self._playing

    def abort(self) -> None:
        """Stop the current file at its next suspension point.

        Only this player's playback is affected; the calling task is never
        cancelled.
        """
        if self._playing:
            self._abort.set()

    async def _suspend(self, seconds: float) -> None:
        """Sleep for `seconds`, returning early when an abort is requested."""
        if self._abort.is_set():
            return
        sleeper = asyncio.ensure_future(self._sleep(seconds))
        waiter = asyncio.ensure_future(self._abort.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waiter.cancel()

    def _check_abort(self) -> None:
        if self._abort.is_set():
            raise PlaybackAborted("playback aborted")

    async def play(self, decoded: DecodedFile) -> PlaybackSummary:
        if self._playing:
            raise RuntimeError("player is already playing; the output sink is exclusive")
        self._playing = True
        self._abort = asyncio.Event()
        session = PlaybackSession(ticks_per_quarter_note=decoded.ticks_per_quarter_note)
        self.session = session
        started = self._clock()

        try:
            tempo_map = build_tempo_map(decoded)
            events = merge_tracks(decoded)
            session.start(tempo_map)
            logger.info(
                "Playing %s: %d events, ppq=%d, initial tempo %d us/quarter",
                decoded.name or "<unnamed>",
                len(events),
                session.ticks_per_quarter_note,
                session.tempo,
            )
            for ev in events:
                delay_ms = session.advance(ev.at_tick)
                if delay_ms > 0:
                    await self._suspend(delay_ms / 1000.0)
                self._check_abort()
                self._send(encode(ev.message, ev.channel), session)
            self._check_abort()
            session.state = PlaybackState.COMPLETED
        except (asyncio.CancelledError, PlaybackAborted):
            session.state = PlaybackState.ABORTED
            raise
        except PlaybackError:
            session.state = PlaybackState.FAILED
            raise
        finally:
            self._playing = False
            self._silence()

        elapsed = self._clock() - started
        logger.info("Playback completed in %.2f seconds", elapsed)
        return PlaybackSummary(
            elapsed_s=elapsed,
            events_sent=session.events_sent,
            send_failures=session.send_failures,
            ticks_per_quarter_note=session.ticks_per_quarter_note,
            final_tick=session.current_tick,
        )

    def _send(self, data: bytes, session: PlaybackSession) -> None:
        try:
            self.sink.send(data)
        except Exception as e:
            session.send_failures += 1
            logger.warning("%s", SinkWriteFailed(data, e))
            return
        session.events_sent += 1

    def _silence(self) -> None:
        for data in all_notes_off():
            try:
                self.sink.send(data)
            except Exception:
                logger.exception("Failed to send all-notes-off %s", data.hex(" "))


async def play(decoded: DecodedFile, sink: Sink) -> PlaybackSummary:
    """Play one decoded file to `sink` with real-time pacing."""
    return await Player(sink).play(decoded)
