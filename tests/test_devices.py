from __future__ import annotations

import mido
import pytest

from midi_van import devices
from midi_van.devices import MidoPortSink, list_devices, open_device, select_port_name
from midi_van.errors import DeviceError


class FakePort:
    def __init__(self) -> None:
        self.messages = []
        self.closed = False

    def send(self, msg) -> None:
        self.messages.append(msg)

    def close(self) -> None:
        self.closed = True


def test_select_by_substring():
    names = ["Midi Through:0", "USB MIDI Interface:1"]
    assert select_port_name(names, "USB") == "USB MIDI Interface:1"


def test_single_port_is_picked_without_name():
    assert select_port_name(["Only Port"]) == "Only Port"


def test_no_ports_is_an_error():
    with pytest.raises(DeviceError, match="No MIDI output devices"):
        select_port_name([])


def test_unknown_name_is_an_error():
    with pytest.raises(DeviceError, match="not found"):
        select_port_name(["A", "B"], "C")


def test_several_ports_need_a_name():
    with pytest.raises(DeviceError, match="Multiple devices"):
        select_port_name(["A", "B"])


def test_list_devices_prints_ports(monkeypatch, capsys):
    monkeypatch.setattr(mido, "get_output_names", lambda: ["Synth A", "Synth B"])
    assert list_devices() == ["Synth A", "Synth B"]
    out = capsys.readouterr().out
    assert "Available MIDI output devices:" in out
    assert "  1: Synth B" in out


def test_list_devices_without_ports(monkeypatch, capsys):
    monkeypatch.setattr(mido, "get_output_names", lambda: [])
    assert list_devices() == []
    assert "No MIDI output devices found." in capsys.readouterr().out


def test_open_device_wraps_port(monkeypatch):
    port = FakePort()
    opened = []
    monkeypatch.setattr(mido, "get_output_names", lambda: ["Synth A"])

    def fake_open(name):
        opened.append(name)
        return port

    monkeypatch.setattr(mido, "open_output", fake_open)
    sink = open_device()
    assert opened == ["Synth A"]
    assert sink.name == "Synth A"

    with sink:
        sink.send(b"\x90\x3c\x64")
        sink.send(b"\xc1\x05")
        sink.send(b"\xe0\x00\x40")
    assert port.closed
    assert [m.type for m in port.messages] == ["note_on", "program_change", "pitchwheel"]
    assert port.messages[0].bytes() == [0x90, 0x3C, 0x64]
    assert port.messages[1].channel == 1
    assert port.messages[2].pitch == 0


def test_open_failure_becomes_device_error(monkeypatch):
    monkeypatch.setattr(mido, "get_output_names", lambda: ["Synth A"])

    def broken(name):
        raise OSError("busy")

    monkeypatch.setattr(mido, "open_output", broken)
    with pytest.raises(DeviceError, match="Failed to connect"):
        open_device("Synth")


def test_sink_send_propagates_port_errors():
    class Broken(FakePort):
        def send(self, msg):
            raise OSError("unplugged")

    sink = MidoPortSink(Broken(), "x")
    with pytest.raises(OSError):
        sink.send(b"\x80\x3c\x00")


def test_hint_mentions_cable():
    assert "USB MIDI cable" in devices.NO_DEVICES_HINT
