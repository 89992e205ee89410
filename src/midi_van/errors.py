from __future__ import annotations


class MidiVanError(Exception):
    """Base class for every error raised by this package."""


class PlaybackError(MidiVanError):
    """A file cannot be played; the caller should move on to another file."""


class UnsupportedTimingFormat(PlaybackError):
    pass


class MalformedTempo(PlaybackError):
    pass


class EmptyScore(PlaybackError):
    pass


class PlaybackAborted(PlaybackError):
    """Playback was stopped through `Player.abort()`."""


class SinkWriteFailed(MidiVanError):
    """A single command could not be written to the output sink.

    Raised internally by the driver and logged; it never escapes `play()`.
    """

    def __init__(self, data: bytes, cause: BaseException) -> None:
        super().__init__(f"failed to send {data.hex(' ')}: {cause}")
        self.data = data
        self.cause = cause


class DecodeError(MidiVanError):
    """The MIDI file could not be read, or carries invalid event data."""


class DeviceError(MidiVanError):
    pass


class CatalogError(MidiVanError):
    pass


class DownloadError(MidiVanError):
    pass
