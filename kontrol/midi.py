#!/usr/bin/env python3
"""
Kontrol MIDI Input - Opens the control surface and delivers (element, value) events.

The nanoKONTROL2 sends every control as a MIDI Control Change:
controller number = element ID, value = 0-127. This module finds the
device's input ports by name, opens them with a mido callback, and forwards
each control change to a handler.

mido runs callbacks on its own I/O thread per open port; the handler must
be fast and thread-safe (MappingEngine.handle is).
"""

import sys
from typing import Callable, List, Optional

from kontrol.log import get_logger

logger = get_logger("midi")

try:
    import mido
except ImportError:
    logger.error("mido not installed. Run: pip install mido python-rtmidi")
    sys.exit(1)


DEFAULT_DEVICE = "nanoKONTROL2"

EventHandler = Callable[[int, int], None]


class DeviceNotFoundError(RuntimeError):
    """No MIDI input port matches the configured device name."""

    def __init__(self, device_name: str, available: List[str]):
        self.device_name = device_name
        self.available = list(available)
        super().__init__(f"No input {device_name} device found")


def port_matches(port_name: str, device_name: str) -> bool:
    """Check whether a MIDI port belongs to the named device.

    Port names carry backend-specific suffixes after the device name:
    ALSA "nanoKONTROL2:nanoKONTROL2 MIDI 1 20:0", Windows "nanoKONTROL2 1",
    CoreMIDI "nanoKONTROL2 SLIDER/KNOB". The device name must match up to
    that suffix.

    Examples:
        >>> port_matches("nanoKONTROL2", "nanoKONTROL2")
        True
        >>> port_matches("nanoKONTROL2:nanoKONTROL2 MIDI 1 20:0", "nanoKONTROL2")
        True
        >>> port_matches("nanoKONTROL2 SLIDER/KNOB", "nanoKONTROL2")
        True
        >>> port_matches("nanoKONTROL", "nanoKONTROL2")
        False
        >>> port_matches("nanoKONTROL2Studio", "nanoKONTROL2")
        False
    """
    if port_name == device_name:
        return True
    return port_name.startswith(device_name + ":") or port_name.startswith(device_name + " ")


def find_input_ports(device_name: str) -> List[str]:
    """Find MIDI input ports belonging to device_name."""
    return [name for name in mido.get_input_names() if port_matches(name, device_name)]


class MidiInputSource:
    """MIDI input for one control surface.

    Args:
        device_name: Device name to match (default: nanoKONTROL2)
        debug: Log every raw MIDI message at DEBUG level

    Example:
        >>> source = MidiInputSource("nanoKONTROL2")
        >>> source.on_event(engine.handle)
        >>> source.connect()
    """

    def __init__(self, device_name: str = DEFAULT_DEVICE, debug: bool = False):
        self.device_name = device_name
        self.debug = debug
        self.ports: List[mido.ports.BaseInput] = []
        self._handler: Optional[EventHandler] = None

    def on_event(self, handler: EventHandler) -> None:
        """Register the (element, value) handler. Called from mido's I/O thread."""
        self._handler = handler

    def connect(self) -> List[str]:
        """Open every input port of the device.

        Returns:
            Names of the opened ports

        Raises:
            DeviceNotFoundError: If no port matches the device name
            OSError: If the backend can't open a port (ports already opened are closed)
        """
        port_names = find_input_ports(self.device_name)
        if not port_names:
            raise DeviceNotFoundError(self.device_name, mido.get_input_names())

        try:
            for name in port_names:
                self.ports.append(mido.open_input(name, callback=self._midi_callback))
                logger.info(f"Opened MIDI input: {name}")
        except Exception:
            self.close()
            raise

        return port_names

    def close(self) -> None:
        """Close all opened ports."""
        for port in self.ports:
            port.close()
        self.ports = []

    def _midi_callback(self, msg: mido.Message) -> None:
        """Forward control changes to the handler; ignore other messages."""
        if self.debug:
            logger.debug(f"device: {self.device_name}, message: {msg}, data: {msg.bytes()}")

        if msg.type != 'control_change':
            return

        if self._handler is None:
            return

        try:
            self._handler(msg.control, msg.value)
        except Exception as e:
            logger.error(f"Error handling control {msg.control} value {msg.value}: {e}")
