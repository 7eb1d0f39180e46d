"""Logging utilities for the kontrol bridge."""
import logging
import sys
import os
import threading
from typing import Optional


# Thread-safe lock for logger initialization
_logger_init_lock = threading.Lock()

# Names of loggers handed out by get_logger()
_logger_names = set()


class KontrolFormatter(logging.Formatter):
    """Compact single-line formatter.

    Format: [{level[0]} {time} {module_basename[:9]}] {message}
    Example: [I 14:23:45.123 midi     ] Opened MIDI input: nanoKONTROL2 1
    """

    def format(self, record):
        level_char = record.levelname[0]
        module_padded = record.name.split('.')[-1][:9].ljust(9)
        timestamp = self.formatTime(record, "%H:%M:%S")
        return f"[{level_char} {timestamp}.{record.msecs:03.0f} {module_padded}] {record.getMessage()}"


def _resolve_level(level: Optional[str]) -> int:
    if level is None:
        level = os.getenv("KONTROL_LOG_LEVEL", "INFO")
    return getattr(logging, level.upper(), logging.INFO)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get logger for a bridge component.

    Args:
        name: Component name ("engine", "midi", ...)
        level: Optional level (DEBUG/INFO/WARNING/ERROR)
               Falls back to KONTROL_LOG_LEVEL env var, then INFO

    Returns:
        Configured logger instance, writing to stdout

    Example:
        >>> from kontrol.log import get_logger
        >>> logger = get_logger("midi")
        >>> logger.info("Opened MIDI input: nanoKONTROL2 1")
        [I 14:23:45.123 midi     ] Opened MIDI input: nanoKONTROL2 1
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    with _logger_init_lock:
        _logger_names.add(name)
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(KontrolFormatter())
            logger.addHandler(handler)

    return logger


def set_level(level: str) -> None:
    """Apply level to every component logger, including ones created later.

    Module-level loggers are created at import time, before command-line
    arguments are parsed; this re-levels them.
    """
    os.environ["KONTROL_LOG_LEVEL"] = level
    resolved = _resolve_level(level)
    with _logger_init_lock:
        names = list(_logger_names)
    for name in names:
        logging.getLogger(name).setLevel(resolved)
