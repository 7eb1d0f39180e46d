"""Integration test utilities for the kontrol bridge.

Provides:
- OSCMessageCapture: Thread-safe OSC message capture on a local UDP port
"""

import time
import threading
from collections import deque
from pythonosc import dispatcher, osc_server


class OSCMessageCapture:
    """Captures OSC messages for validation in integration tests.

    Binds a BlockingOSCUDPServer to an ephemeral localhost port (read it
    back from .port) and records every message it receives.

    Example:
        capture = OSCMessageCapture()
        capture.start()
        sink = OscSink("127.0.0.1", capture.port)
        ...
        ts, addr, args = capture.wait_for_message("/play", timeout=2.0)
        capture.stop()
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 0):
        self.host = host
        self.port = port
        self.messages = deque(maxlen=1000)  # Prevent unbounded growth
        self.lock = threading.Lock()
        self.server = None
        self.server_thread = None

    def start(self):
        """Start capture server in background thread."""
        disp = dispatcher.Dispatcher()
        disp.set_default_handler(self._capture_handler)

        self.server = osc_server.BlockingOSCUDPServer((self.host, self.port), disp)
        self.port = self.server.server_address[1]

        self.server_thread = threading.Thread(target=self.server.serve_forever)
        self.server_thread.daemon = True
        self.server_thread.start()

    def _capture_handler(self, address, *args):
        with self.lock:
            self.messages.append((time.time(), address, args))

    def wait_for_message(self, address: str, timeout: float = 2.0):
        """Wait for a message with exactly this address.

        Returns:
            Tuple of (timestamp, address, args) for the first match

        Raises:
            TimeoutError: If no matching message arrives within timeout
        """
        start = time.time()
        while time.time() - start < timeout:
            with self.lock:
                for ts, addr, args in self.messages:
                    if addr == address:
                        return (ts, addr, args)
            time.sleep(0.01)
        raise TimeoutError(f"No message {address} within {timeout}s")

    def wait_for_count(self, count: int, timeout: float = 2.0):
        """Wait until at least count messages were captured and return them in arrival order."""
        start = time.time()
        while time.time() - start < timeout:
            with self.lock:
                if len(self.messages) >= count:
                    return list(self.messages)
            time.sleep(0.01)
        raise TimeoutError(f"Expected {count} messages within {timeout}s, got {len(self.messages)}")

    def clear(self):
        with self.lock:
            self.messages.clear()

    def stop(self):
        """Stop capture server and close its socket."""
        if self.server:
            self.server.shutdown()
            self.server.server_close()
