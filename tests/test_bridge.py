"""
Tests for the bridge entry point.

Tests cover:
1. Argument parsing and config resolution
2. Startup errors (bad config, strict aliases, missing device) exit 1
3. KontrolBridge wiring: MIDI callback → engine → OSC sink
4. Shutdown closes ports and prints statistics
"""

from unittest.mock import Mock, patch

import mido
import pytest

from kontrol.bridge import KontrolBridge, build_parser, main, resolve_config
from kontrol.config import BridgeConfig
from kontrol.midi import DeviceNotFoundError


class TestArguments:
    """Test command-line parsing."""

    def test_positional_alias_file(self):
        args = build_parser().parse_args(["groups.txt"])
        config = resolve_config(args)
        assert config.aliases_path == "groups.txt"

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert resolve_config(args) == BridgeConfig()

    def test_overrides(self):
        args = build_parser().parse_args([
            "--device", "nanoKONTROL Studio",
            "--host", "10.0.0.2",
            "--port", "9000",
            "--mode", "direct",
            "--payload", "float",
            "--transport-trigger", "press",
            "--strict-aliases",
        ])
        config = resolve_config(args)
        assert config.device == "nanoKONTROL Studio"
        assert config.host == "10.0.0.2"
        assert config.port == 9000
        assert config.mode == "direct"
        assert config.payload == "float"
        assert config.transport_trigger == "press"
        assert config.strict_aliases is True

    def test_invalid_mode_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--mode", "bogus"])


class TestStartupErrors:
    """Test fatal startup conditions."""

    def test_missing_config_file_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", "/nonexistent/bridge.yaml"])
        assert exc_info.value.code == 1

    def test_strict_alias_error_exits(self, tmp_path):
        aliases = tmp_path / "groups.txt"
        aliases.write_text("not an alias\n")

        with pytest.raises(SystemExit) as exc_info:
            main([str(aliases), "--strict-aliases"])
        assert exc_info.value.code == 1

    def test_unreadable_alias_file_exits(self, tmp_path):
        # A directory exists but can't be opened as a file
        with patch('kontrol.bridge.logger') as mock_logger:
            with pytest.raises(SystemExit) as exc_info:
                main([str(tmp_path)])

        assert exc_info.value.code == 1
        mock_logger.error.assert_called_once()

    @patch('kontrol.bridge.KontrolBridge.run_forever')
    @patch('kontrol.midi.mido.open_input', side_effect=OSError("port busy"))
    @patch('kontrol.midi.mido.get_input_names', return_value=["nanoKONTROL2 SLIDER/KNOB"])
    @patch('kontrol.osc.udp_client.SimpleUDPClient')
    def test_port_open_failure_exits(self, mock_client_cls, mock_names, mock_open, mock_run):
        with patch('kontrol.bridge.logger') as mock_logger:
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 1
        assert "port busy" in mock_logger.error.call_args[0][0]
        mock_run.assert_not_called()

    @patch('kontrol.midi.mido.open_input')
    @patch('kontrol.midi.mido.get_input_names', return_value=["Midi Through:Midi Through Port-0 14:0"])
    def test_missing_device_exits(self, mock_names, mock_open):
        with patch('kontrol.bridge.logger') as mock_logger:
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 1
        mock_open.assert_not_called()
        errors = [c[0][0] for c in mock_logger.error.call_args_list]
        assert any("nanoKONTROL2" in e for e in errors)
        infos = [c[0][0] for c in mock_logger.info.call_args_list]
        assert any("Midi Through" in i for i in infos)


class TestKontrolBridge:
    """Test component wiring."""

    @patch('kontrol.osc.udp_client.SimpleUDPClient')
    def test_engine_options_from_config(self, mock_client_cls):
        config = BridgeConfig(mode="direct", payload="float", transport_trigger="press",
                              default_group="r2", host="10.0.0.9", port=9100)
        bridge = KontrolBridge(config, aliases={"r2": "Vox"})

        mock_client_cls.assert_called_once_with("10.0.0.9", 9100)
        assert bridge.engine.mode == "direct"
        assert bridge.engine.payload_format == "float"
        assert bridge.engine.transport_trigger == "press"
        assert bridge.engine.state.group == "r2"
        assert bridge.engine.state.aliases == {"r2": "Vox"}
        assert bridge.engine.stats is bridge.stats
        assert bridge.sink.stats is bridge.stats

    @patch('kontrol.midi.mido.open_input')
    @patch('kontrol.midi.mido.get_input_names', return_value=["nanoKONTROL2:nanoKONTROL2 MIDI 1 20:0"])
    @patch('kontrol.osc.udp_client.SimpleUDPClient')
    def test_midi_event_reaches_osc(self, mock_client_cls, mock_names, mock_open, capsys):
        bridge = KontrolBridge(BridgeConfig())
        bridge.start()

        assert "MIDI input connected." in capsys.readouterr().out

        # mido delivers messages to the callback passed to open_input
        callback = mock_open.call_args.kwargs['callback']
        callback(mido.Message('control_change', control=0, value=127))
        callback(mido.Message('control_change', control=41, value=0))

        send = mock_client_cls.return_value.send_message
        assert [c.args for c in send.call_args_list] == [("/s1/slider/1", 255), ("/play", 255)]

    @patch('kontrol.midi.mido.open_input')
    @patch('kontrol.midi.mido.get_input_names', return_value=["nanoKONTROL2"])
    @patch('kontrol.osc.udp_client.SimpleUDPClient')
    def test_shutdown(self, mock_client_cls, mock_names, mock_open, capsys):
        bridge = KontrolBridge(BridgeConfig())
        bridge.start()
        bridge.engine.handle(0, 64)

        bridge.shutdown()
        bridge.shutdown()  # second call is a no-op

        mock_open.return_value.close.assert_called_once()
        assert bridge.stopped.is_set()
        out = capsys.readouterr().out
        assert out.count("KONTROL BRIDGE STATISTICS") == 1
        assert "Sent Messages: 1" in out

    @patch('kontrol.osc.udp_client.SimpleUDPClient')
    def test_run_forever_returns_after_shutdown(self, mock_client_cls):
        bridge = KontrolBridge(BridgeConfig())
        bridge.source = Mock()
        bridge.shutdown()
        bridge.run_forever()


class TestMain:
    """Test the full main() flow with mocked devices."""

    @patch('kontrol.bridge.signal.signal')
    @patch('kontrol.bridge.KontrolBridge.run_forever')
    @patch('kontrol.midi.mido.open_input')
    @patch('kontrol.midi.mido.get_input_names', return_value=["nanoKONTROL2 1"])
    @patch('kontrol.osc.udp_client.SimpleUDPClient')
    def test_main_starts_and_installs_signal_handlers(self, mock_client_cls, mock_names,
                                                       mock_open, mock_run, mock_signal, tmp_path):
        aliases = tmp_path / "groups.txt"
        aliases.write_text("s1 = Drums\n")

        main([str(aliases), "--mode", "direct"])

        mock_open.assert_called_once()
        mock_run.assert_called_once()
        assert mock_signal.call_count == 2

    def test_device_not_found_error_lists_ports(self):
        error = DeviceNotFoundError("nanoKONTROL2", ["a", "b"])
        assert error.available == ["a", "b"]
        assert str(error) == "No input nanoKONTROL2 device found"
