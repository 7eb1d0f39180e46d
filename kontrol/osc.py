#!/usr/bin/env python3
"""
Kontrol OSC Output - Fire-and-forget OSC sink and message statistics.

Classes:
    - OscSink: UDP OSC client that logs and counts send failures instead of raising
    - MessageStatistics: Thread-safe message counter with formatted output

Functions:
    - validate_port(port): Validate port in range 1-65535
    - validate_address(address): Validate /-delimited OSC address

Constants:
    - DEFAULT_OSC_HOST: DAW control host (127.0.0.1)
    - DEFAULT_OSC_PORT: DAW control port (7700)
"""

import re
import threading
from typing import Union
from pythonosc import udp_client

from kontrol.log import get_logger

logger = get_logger("osc")


# ============================================================================
# CONSTANTS
# ============================================================================

DEFAULT_OSC_HOST = "127.0.0.1"
DEFAULT_OSC_PORT = 7700

# Port validation range
PORT_MIN = 1
PORT_MAX = 65535

# /segment[/segment...], segments without whitespace, '#' or wildcard chars
ADDRESS_PATTERN = re.compile(r'^(/[^\s/#*?,\[\]{}]+)+$')

Payload = Union[int, float]


# ============================================================================
# VALIDATION FUNCTIONS
# ============================================================================

def validate_port(port: int) -> None:
    """Validate UDP port number is in valid range.

    Args:
        port: Port number to validate

    Raises:
        ValueError: If port is outside range 1-65535

    Examples:
        >>> validate_port(7700)  # OK
        >>> validate_port(0)  # Raises ValueError
    """
    if isinstance(port, bool) or not isinstance(port, int) or port < PORT_MIN or port > PORT_MAX:
        raise ValueError(f"Port must be in range {PORT_MIN}-{PORT_MAX}, got {port}")


def validate_address(address: str) -> None:
    """Validate an outbound OSC address.

    Raises:
        ValueError: If address is not a /-delimited path

    Examples:
        >>> validate_address("/s1/slider/1")  # OK
        >>> validate_address("play")  # Raises ValueError
    """
    if not isinstance(address, str) or not ADDRESS_PATTERN.match(address):
        raise ValueError(f"Invalid OSC address: {address!r}")


# ============================================================================
# MESSAGE STATISTICS
# ============================================================================

class MessageStatistics:
    """Thread-safe message statistics tracker with formatted output.

    Typical counters:
        - midi_events: All control change events handled
        - sent_messages: OSC messages handed to the socket
        - send_failures: OSC messages the socket rejected
        - unmapped_events: Events from unknown elements
        - page_changes / group_changes: Session state changes

    Examples:
        >>> stats = MessageStatistics()
        >>> stats.increment('midi_events')
        >>> stats.print_stats("Bridge")
    """

    def __init__(self):
        self.counters = {}
        self.lock = threading.Lock()

    def increment(self, counter_name: str, amount: int = 1) -> None:
        """Increment a counter by specified amount (thread-safe).

        Creates the counter if it doesn't exist.
        """
        with self.lock:
            self.counters[counter_name] = self.counters.get(counter_name, 0) + amount

    def get(self, counter_name: str) -> int:
        """Get current value of a counter, 0 if it doesn't exist."""
        with self.lock:
            return self.counters.get(counter_name, 0)

    def print_stats(self, title: str = "STATISTICS") -> None:
        """Print formatted statistics to console.

        Output format:
            ============================================================
            TITLE
            ============================================================
            Counter Name: value
            ...
            ============================================================
        """
        print("\n" + "=" * 60)
        print(title)
        print("=" * 60)

        # Snapshot counters under lock, print without holding it
        with self.lock:
            snapshot = dict(self.counters)

        for name in sorted(snapshot.keys()):
            display_name = name.replace('_', ' ').title()
            print(f"{display_name}: {snapshot[name]}")

        print("=" * 60)


# ============================================================================
# OSC SINK
# ============================================================================

class OscSink:
    """Fire-and-forget OSC sender.

    Wraps pythonosc's SimpleUDPClient. A failed send (network unreachable,
    socket closed, ...) is logged and counted but never raised: losing one
    control message must not stop the bridge.

    Args:
        host: Destination IP address or hostname
        port: Destination UDP port
        stats: Optional shared statistics tracker

    Example:
        >>> with OscSink("127.0.0.1", 7700) as sink:
        ...     sink.send("/play", 255)
    """

    def __init__(self, host: str = DEFAULT_OSC_HOST, port: int = DEFAULT_OSC_PORT,
                 stats: MessageStatistics = None):
        validate_port(port)
        self.host = host
        self.port = port
        self.stats = stats if stats is not None else MessageStatistics()
        self.client = udp_client.SimpleUDPClient(host, port)

    def send(self, address: str, payload: Payload) -> bool:
        """Send one OSC message with a single numeric argument.

        Args:
            address: OSC address (e.g. "/s1/slider/1")
            payload: int or float argument

        Returns:
            True if the datagram was handed to the socket, False otherwise
        """
        try:
            validate_address(address)
        except ValueError as e:
            logger.warning(f"{e}, not sending")
            self.stats.increment('invalid_messages')
            return False

        try:
            self.client.send_message(address, payload)
        except OSError as e:
            logger.warning(f"OSC send to {self.host}:{self.port} failed for {address}: {e}")
            self.stats.increment('send_failures')
            return False

        self.stats.increment('sent_messages')
        logger.debug(f"→ {address} {payload}")
        return True

    def close(self):
        """Close the UDP socket."""
        sock = getattr(self.client, '_sock', None)
        if sock:
            sock.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
