from __future__ import annotations

"""
Timebase utilities for converting between MIDI ticks and wall-clock time.

Tempo is expressed the way MIDI files store it: microseconds per quarter
note. Ticks per quarter note (PPQ) comes from the file header.
"""

DEFAULT_TEMPO = 500_000  # 120 BPM


def tempo_to_bpm(micros_per_quarter: int) -> float:
    """Beats per minute for a tempo in microseconds per quarter note."""
    return 60_000_000 / float(micros_per_quarter)


def ticks_to_ms(ticks: int, ppq: int, micros_per_quarter: int) -> float:
    """Convert ticks to milliseconds at a fixed tempo.

    duration_ms = ticks * micros_per_quarter / (ppq * 1000)
    """
    return (float(ticks) * micros_per_quarter) / (ppq * 1000.0)

