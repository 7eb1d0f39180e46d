"""Pytest fixtures for integration tests.

- osc_capture: OSC message capture on an ephemeral localhost port
- osc_sink: OscSink pointed at osc_capture
"""

import pytest
from tests.integration.utils import OSCMessageCapture
from kontrol.osc import OscSink


@pytest.fixture
def osc_capture():
    """Fixture providing OSC message capture, stopped on teardown.

    Example:
        def test_play(osc_capture):
            ts, addr, args = osc_capture.wait_for_message("/play")
    """
    capture = OSCMessageCapture()
    capture.start()
    yield capture
    capture.stop()


@pytest.fixture
def osc_sink(osc_capture):
    """OscSink sending to the capture server, closed on teardown."""
    with OscSink("127.0.0.1", osc_capture.port) as sink:
        yield sink
