"""
MIDI file player: turns decoded multi-track MIDI data into a single,
tempo-correct stream of instrument commands and paces it to an output port.

Contains the tempo map builder, event merger, message encoder and the
playback driver, plus the catalog/cache/device glue used by the CLI.
"""

__all__ = [
    "messages",
    "events",
    "tempo_map",
    "merge",
    "player",
]
