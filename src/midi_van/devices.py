from __future__ import annotations

import logging
from typing import List, Optional

import mido

from .errors import DeviceError

logger = logging.getLogger(__name__)

NO_DEVICES_HINT = "Make sure your USB MIDI cable is connected."


class MidoPortSink:
    """Output sink writing raw commands to a mido output port."""

    def __init__(self, port, name: str) -> None:
        self.port = port
        self.name = name

    def send(self, data: bytes) -> None:
        self.port.send(mido.Message.from_bytes(list(data)))

    def close(self) -> None:
        if not self.port.closed:
            self.port.close()

    def __enter__(self) -> "MidoPortSink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def list_output_names() -> List[str]:
    return list(mido.get_output_names())


def list_devices() -> List[str]:
    """Print the available output ports and return their names."""
    names = list_output_names()
    if not names:
        print("No MIDI output devices found.")
        print(NO_DEVICES_HINT)
        return names
    print("Available MIDI output devices:")
    for i, name in enumerate(names):
        print(f"  {i}: {name}")
    return names


def select_port_name(names: List[str], device_name: Optional[str] = None) -> str:
    """Pick a port by substring match, or the only port when no name is given."""
    if not names:
        raise DeviceError(f"No MIDI output devices found. {NO_DEVICES_HINT}")
    if device_name:
        for name in names:
            if device_name in name:
                return name
        raise DeviceError(f"MIDI device '{device_name}' not found")
    if len(names) == 1:
        return names[0]
    listing = ", ".join(names)
    raise DeviceError(f"Multiple devices found ({listing}). Use -d/--device to specify one.")


def open_device(device_name: Optional[str] = None) -> MidoPortSink:
    name = select_port_name(list_output_names(), device_name)
    logger.info("Connecting to MIDI device: %s", name)
    try:
        port = mido.open_output(name)
    except OSError as e:
        raise DeviceError(f"Failed to connect to MIDI device '{name}': {e}") from e
    return MidoPortSink(port, name)
