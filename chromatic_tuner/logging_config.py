"""Logging setup for the chromatic tuner.

Levels are set on logger prefixes and inherited down the dotted hierarchy,
so ``chromatic_tuner.audio`` covers every capture and detection module.
Records go to stderr; stdout is reserved for the tuner's meter line.
"""

import logging
import sys
from typing import Dict, IO, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

APP_LOGGER = "chromatic_tuner"

# Log levels per logger prefix
MODULE_LOG_LEVELS: Dict[str, int] = {
    APP_LOGGER: logging.INFO,
    "chromatic_tuner.sampling_loop": logging.INFO,
    "chromatic_tuner.core": logging.INFO,
    # One line per buffer at DEBUG
    "chromatic_tuner.audio": logging.INFO,
    "chromatic_tuner.cli": logging.WARNING,
    # Third-party
    "aubio": logging.ERROR,
    "sounddevice": logging.ERROR,
    "": logging.ERROR,
}

_handler: Optional[logging.Handler] = None
_logger_cache: Dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, creating it on first use."""
    if name not in _logger_cache:
        _logger_cache[name] = logging.getLogger(name)
    return _logger_cache[name]


def setup_logging(level: Optional[str] = None, stream: Optional[IO[str]] = None) -> None:
    """Configure levels and the shared handler. Safe to call more than once.

    Args:
        level: If provided, override every chromatic_tuner level (e.g. "DEBUG")
        stream: Where records are written, or None for stderr

    Raises:
        ValueError: If ``level`` is not a logging level name
    """
    global _handler

    levels = dict(MODULE_LOG_LEVELS)
    if level:
        numeric_level = logging.getLevelName(level.upper())
        if not isinstance(numeric_level, int):
            raise ValueError(f"Invalid log level: {level}")
        for name in levels:
            if name.startswith(APP_LOGGER):
                levels[name] = numeric_level

    app_logger = logging.getLogger(APP_LOGGER)
    root_logger = logging.getLogger()
    if _handler is not None:
        app_logger.removeHandler(_handler)
        root_logger.removeHandler(_handler)

    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))

    for name, module_level in levels.items():
        logging.getLogger(name).setLevel(module_level)

    app_logger.addHandler(_handler)
    app_logger.propagate = False
    root_logger.addHandler(_handler)

    app_logger.debug("Logging configured")
