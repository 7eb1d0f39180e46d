#!/usr/bin/env python3
"""
nanoKONTROL2 Emulator - Testing without hardware

Drives any (element, value) handler, usually MappingEngine.handle, with the
events the physical controller would send.

Features:
- Programmatic API for sliders, knobs, bank buttons and transport
- Press/release pairs like the real buttons
- RecordingSink that captures outbound messages in memory
- Optional interactive CLI mode sending real OSC

Usage:
    python -m kontrol.simulator.controller_emulator --host 127.0.0.1 --port 7700
"""

import argparse
import threading
from typing import Callable, List, Optional, Tuple

from kontrol.elements import BUTTON_PRESSED, ElementID


class RecordingSink:
    """In-memory sink capturing (address, payload) pairs."""

    def __init__(self):
        self.messages: List[Tuple[str, object]] = []
        self.lock = threading.Lock()

    def send(self, address: str, payload) -> bool:
        with self.lock:
            self.messages.append((address, payload))
        return True

    def addresses(self) -> List[str]:
        with self.lock:
            return [address for address, _ in self.messages]

    def last(self) -> Optional[Tuple[str, object]]:
        with self.lock:
            return self.messages[-1] if self.messages else None

    def clear(self) -> None:
        with self.lock:
            self.messages.clear()


class ControllerEmulator:
    """Emulated Korg nanoKONTROL2.

    Args:
        handler: Callable receiving (element, value)
    """

    def __init__(self, handler: Callable[[int, int], None]):
        self.handler = handler
        self.events_sent = 0

    def send(self, element: int, value: int):
        """Send a raw control change."""
        if not (0 <= value <= 127):
            raise ValueError(f"Invalid value: {value} (must be 0-127)")
        self.handler(element, value)
        self.events_sent += 1

    def move_slider(self, index: int, value: int):
        """Move slider 1-8 to value."""
        self.send(self._bank_element(ElementID.SLIDER_1, index), value)

    def turn_knob(self, index: int, value: int):
        """Turn knob 1-8 to value."""
        self.send(self._bank_element(ElementID.KNOB_1, index), value)

    def press(self, element: int, release: bool = True):
        """Press a button, then release it unless release is False."""
        self.send(element, BUTTON_PRESSED)
        if release:
            self.send(element, 0)

    def press_solo(self, index: int, release: bool = True):
        self.press(self._bank_element(ElementID.SOLO_1, index), release)

    def press_mute(self, index: int, release: bool = True):
        self.press(self._bank_element(ElementID.MUTE_1, index), release)

    def press_record(self, index: int, release: bool = True):
        self.press(self._bank_element(ElementID.RECORD_1, index), release)

    def next_page(self):
        self.press(ElementID.TRACK_NEXT)

    def previous_page(self):
        self.press(ElementID.TRACK_PREVIOUS)

    @staticmethod
    def _bank_element(first: int, index: int) -> int:
        if not (1 <= index <= 8):
            raise ValueError(f"Invalid bank position: {index} (must be 1-8)")
        return first + index - 1


TRANSPORT_COMMANDS = {
    "play": ElementID.PLAY,
    "stop": ElementID.STOP,
    "rec": ElementID.RECORD,
    "rew": ElementID.REWIND,
    "ff": ElementID.FORWARD,
    "cycle": ElementID.CYCLE,
    "set": ElementID.MARKER_SET,
    "mprev": ElementID.MARKER_PREVIOUS,
    "mnext": ElementID.MARKER_NEXT,
}


def interactive_mode(emulator: ControllerEmulator):
    """Interactive CLI mode for manual testing."""
    print("\nInteractive Mode")
    print("Commands:")
    print("  slider N V    - Move slider N (1-8) to V (0-127)")
    print("  knob N V      - Turn knob N (1-8) to V (0-127)")
    print("  s N / m N / r N - Press solo/mute/record N (1-8)")
    print("  next / prev   - Track > / Track <")
    print(f"  {' / '.join(TRANSPORT_COMMANDS)} - Transport buttons")
    print("  quit          - Exit")
    print()

    bank_presses = {"s": emulator.press_solo, "m": emulator.press_mute, "r": emulator.press_record}

    while True:
        try:
            parts = input("> ").strip().split()
        except (EOFError, KeyboardInterrupt):
            break

        if not parts:
            continue

        cmd = parts[0].lower()
        try:
            if cmd == "quit":
                break
            elif cmd == "slider" and len(parts) == 3:
                emulator.move_slider(int(parts[1]), int(parts[2]))
            elif cmd == "knob" and len(parts) == 3:
                emulator.turn_knob(int(parts[1]), int(parts[2]))
            elif cmd in bank_presses and len(parts) == 2:
                bank_presses[cmd](int(parts[1]))
            elif cmd == "next":
                emulator.next_page()
            elif cmd == "prev":
                emulator.previous_page()
            elif cmd in TRANSPORT_COMMANDS:
                emulator.press(TRANSPORT_COMMANDS[cmd], release=False)
            else:
                print("Unknown command")
        except ValueError as e:
            print(f"Error: {e}")


def main():
    """Run the emulator against a real OSC destination."""
    from kontrol.engine import MODES, MappingEngine
    from kontrol.osc import DEFAULT_OSC_HOST, DEFAULT_OSC_PORT, OscSink

    parser = argparse.ArgumentParser(description="nanoKONTROL2 Emulator")
    parser.add_argument("--host", type=str, default=DEFAULT_OSC_HOST, help="OSC destination host")
    parser.add_argument("--port", type=int, default=DEFAULT_OSC_PORT, help="OSC destination port")
    parser.add_argument("--mode", choices=sorted(MODES), default="group", help="Addressing mode")
    args = parser.parse_args()

    with OscSink(args.host, args.port) as sink:
        engine = MappingEngine(sink, mode=args.mode, stats=sink.stats)
        emulator = ControllerEmulator(engine.handle)
        interactive_mode(emulator)
        engine.stats.print_stats("EMULATOR STATISTICS")
        print(f"  Events sent: {emulator.events_sent}")


if __name__ == "__main__":
    main()
