#!/usr/bin/env python3
"""
Kontrol Bridge - nanoKONTROL2 MIDI → OSC translator for DAW control.

Architecture:
    MIDI Input (mido callback thread) → MappingEngine → OSC (UDP, fire-and-forget)

Usage:
    python -m kontrol
    python -m kontrol config/groups.txt
    python -m kontrol --config config/bridge.yaml --mode direct --payload float

Startup:
    1. Load config (YAML, optional) and apply command-line overrides
    2. Load group aliases (optional)
    3. Open the OSC sink and build the mapping engine
    4. Connect to the MIDI device (exit 1 if not found)
    5. Run until SIGINT/SIGTERM, then print statistics
"""

import argparse
import os
import signal
import sys
import threading
from typing import List, Optional

import yaml

from kontrol.aliases import load_aliases
from kontrol.config import BridgeConfig, apply_overrides, load_config
from kontrol.engine import MODES, PAYLOAD_FORMATS, TRANSPORT_TRIGGERS, MappingEngine
from kontrol.midi import DeviceNotFoundError, MidiInputSource
from kontrol.osc import MessageStatistics, OscSink
from kontrol.log import get_logger, set_level

logger = get_logger("bridge")


class KontrolBridge:
    """Wires the MIDI input, mapping engine and OSC sink together.

    Args:
        config: Validated bridge settings
        aliases: Group token → display name
        debug: Log raw MIDI messages
    """

    def __init__(self, config: BridgeConfig, aliases: Optional[dict] = None, debug: bool = False):
        self.config = config
        self.stats = MessageStatistics()
        self.sink = OscSink(config.host, config.port, stats=self.stats)
        self.engine = MappingEngine(
            self.sink,
            mode=config.mode,
            payload_format=config.payload,
            transport_trigger=config.transport_trigger,
            default_group=config.default_group,
            aliases=aliases,
            stats=self.stats,
        )
        self.source = MidiInputSource(config.device, debug=debug)
        self.source.on_event(self.engine.handle)
        self.stopped = threading.Event()

    def start(self) -> None:
        """Connect to the MIDI device.

        Raises:
            DeviceNotFoundError: If the device isn't connected
        """
        logger.info(f"Sending OSC to {self.config.host}:{self.config.port} "
                    f"(mode={self.config.mode}, payload={self.config.payload}, "
                    f"transport={self.config.transport_trigger})")
        self.source.connect()
        print("MIDI input connected.")

    def run_forever(self) -> None:
        """Block until shutdown() is called."""
        self.stopped.wait()

    def shutdown(self) -> None:
        """Close ports and print statistics."""
        if self.stopped.is_set():
            return
        logger.info("Shutting down Kontrol Bridge...")
        self.stopped.set()
        self.source.close()
        self.sink.close()
        self.stats.print_stats("KONTROL BRIDGE STATISTICS")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Kontrol Bridge - nanoKONTROL2 MIDI to OSC translator"
    )
    parser.add_argument(
        "aliases",
        nargs="?",
        default=None,
        help="Group alias file (token = name per line)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to bridge.yaml config (default: built-in defaults)",
    )
    parser.add_argument("--device", type=str, default=None, help="MIDI input device name")
    parser.add_argument("--host", type=str, default=None, help="OSC destination host")
    parser.add_argument("--port", type=int, default=None, help="OSC destination port")
    parser.add_argument("--mode", choices=sorted(MODES), default=None, help="Addressing mode")
    parser.add_argument("--payload", choices=PAYLOAD_FORMATS, default=None, help="OSC payload type")
    parser.add_argument(
        "--transport-trigger",
        choices=TRANSPORT_TRIGGERS,
        default=None,
        help="Fire transport commands on any value or on press only",
    )
    parser.add_argument(
        "--strict-aliases",
        action="store_true",
        default=None,
        help="Abort on malformed alias lines instead of skipping them",
    )
    parser.add_argument("--debug", action="store_true", help="Log raw MIDI messages")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=os.getenv("KONTROL_LOG_LEVEL", "INFO"),
        help="Logging verbosity (default: INFO)",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> BridgeConfig:
    """Load the config file and apply command-line overrides.

    Raises:
        FileNotFoundError, ValueError, yaml.YAMLError: On invalid configuration
    """
    config = load_config(args.config)
    return apply_overrides(
        config,
        device=args.device,
        host=args.host,
        port=args.port,
        mode=args.mode,
        payload=args.payload,
        transport_trigger=args.transport_trigger,
        aliases_path=args.aliases,
        strict_aliases=args.strict_aliases,
    )


def main(argv: Optional[List[str]] = None):
    """Main entry point for the bridge."""
    args = build_parser().parse_args(argv)

    set_level("DEBUG" if args.debug else args.log_level)

    try:
        config = resolve_config(args)
        aliases = load_aliases(config.aliases_path, strict=config.strict_aliases)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"{e}")
        sys.exit(1)

    try:
        bridge = KontrolBridge(config, aliases=aliases, debug=args.debug)
    except OSError as e:
        logger.error(f"Cannot open OSC destination {config.host}:{config.port}: {e}")
        sys.exit(1)

    try:
        bridge.start()
    except DeviceNotFoundError as e:
        logger.error(f"{e}")
        logger.info("Available MIDI input ports:")
        for port in e.available:
            logger.info(f"  - {port}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"Cannot open MIDI input {config.device}: {e}")
        sys.exit(1)

    def signal_handler(sig, frame):
        bridge.shutdown()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.info("Kontrol bridge running. Press Ctrl+C to exit.")
    bridge.run_forever()


if __name__ == "__main__":
    main()
