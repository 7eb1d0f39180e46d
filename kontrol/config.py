"""
Bridge configuration - YAML loading and validation.

Config file layout (all sections and keys optional):

    midi:
      device: nanoKONTROL2
    osc:
      host: 127.0.0.1
      port: 7700
    mapping:
      mode: group             # group | direct
      payload: int            # int | float
      transport_trigger: any  # any | press
      default_group: s1
    aliases:
      path: config/groups.txt
      strict: false
"""

import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from kontrol import osc
from kontrol.engine import (
    DEFAULT_GROUP,
    MODES,
    PAYLOAD_FORMATS,
    PAYLOAD_INT,
    TRANSPORT_TRIGGERS,
    TRIGGER_ANY,
)
from kontrol.midi import DEFAULT_DEVICE


# Group token: class letter + bank position 1-8
GROUP_TOKEN_PATTERN = re.compile(r'^[smr][1-8]$')


@dataclass
class BridgeConfig:
    """Validated bridge settings."""
    device: str = DEFAULT_DEVICE
    host: str = osc.DEFAULT_OSC_HOST
    port: int = osc.DEFAULT_OSC_PORT
    mode: str = "group"
    payload: str = PAYLOAD_INT
    transport_trigger: str = TRIGGER_ANY
    default_group: str = DEFAULT_GROUP
    aliases_path: Optional[str] = None
    strict_aliases: bool = False


def validate_config(config: BridgeConfig) -> None:
    """
    Validate bridge settings.

    Args:
        config: Settings to validate

    Raises:
        ValueError: If any setting is invalid
    """
    if not isinstance(config.device, str) or not config.device:
        raise ValueError("midi.device must be a non-empty string")

    if not isinstance(config.host, str) or not config.host:
        raise ValueError("osc.host must be a non-empty string")

    osc.validate_port(config.port)

    if config.mode not in MODES:
        raise ValueError(
            f"Invalid mapping.mode: '{config.mode}'\n"
            f"Must be one of: {', '.join(sorted(MODES))}"
        )

    if config.payload not in PAYLOAD_FORMATS:
        raise ValueError(
            f"Invalid mapping.payload: '{config.payload}'\n"
            f"Must be one of: {', '.join(PAYLOAD_FORMATS)}"
        )

    if config.transport_trigger not in TRANSPORT_TRIGGERS:
        raise ValueError(
            f"Invalid mapping.transport_trigger: '{config.transport_trigger}'\n"
            f"Must be one of: {', '.join(TRANSPORT_TRIGGERS)}"
        )

    if not isinstance(config.default_group, str) or not GROUP_TOKEN_PATTERN.match(config.default_group):
        raise ValueError(
            f"Invalid mapping.default_group: '{config.default_group}'\n"
            f"Must be s1-s8, m1-m8 or r1-r8"
        )

    if not isinstance(config.strict_aliases, bool):
        raise ValueError("aliases.strict must be true or false")


def _section(raw: dict, name: str) -> dict:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping, got {type(section).__name__}")
    return section


def config_from_dict(raw: Optional[dict]) -> BridgeConfig:
    """Build settings from a parsed YAML document.

    Raises:
        ValueError: If the document or any value is invalid
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config must be a mapping, got {type(raw).__name__}")

    midi_section = _section(raw, 'midi')
    osc_section = _section(raw, 'osc')
    mapping = _section(raw, 'mapping')
    aliases = _section(raw, 'aliases')

    defaults = BridgeConfig()
    config = BridgeConfig(
        device=midi_section.get('device', defaults.device),
        host=osc_section.get('host', defaults.host),
        port=osc_section.get('port', defaults.port),
        mode=mapping.get('mode', defaults.mode),
        payload=mapping.get('payload', defaults.payload),
        transport_trigger=mapping.get('transport_trigger', defaults.transport_trigger),
        default_group=mapping.get('default_group', defaults.default_group),
        aliases_path=aliases.get('path', defaults.aliases_path),
        strict_aliases=aliases.get('strict', defaults.strict_aliases),
    )

    validate_config(config)
    return config


def load_config(path: Optional[str]) -> BridgeConfig:
    """Load and validate configuration from a YAML file.

    Args:
        path: Path to the YAML file, or None for built-in defaults

    Returns:
        Validated BridgeConfig

    Raises:
        FileNotFoundError: If path is given and doesn't exist
        yaml.YAMLError: If YAML syntax is invalid
        ValueError: If configuration is invalid
    """
    if path is None:
        return BridgeConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r') as f:
        raw = yaml.safe_load(f)

    return config_from_dict(raw)


def apply_overrides(config: BridgeConfig, **overrides) -> BridgeConfig:
    """Return a copy of config with non-None overrides applied and validated.

    Raises:
        TypeError: On an unknown setting name
        ValueError: If the result is invalid
    """
    known = {f.name for f in fields(BridgeConfig)}
    values = {f.name: getattr(config, f.name) for f in fields(BridgeConfig)}

    for name, value in overrides.items():
        if name not in known:
            raise TypeError(f"Unknown setting: {name}")
        if value is not None:
            values[name] = value

    updated = BridgeConfig(**values)
    validate_config(updated)
    return updated
