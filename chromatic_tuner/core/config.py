"""Configuration management for the chromatic tuner components.

Each section lives in its own JSON file under the config directory. Values
that are missing or fail validation fall back to the section defaults.
"""

from typing import Any, Callable, Dict, Optional
import json
import os
from pathlib import Path

from ..logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIGS: Dict[str, Dict[str, Any]] = {
    "tuner": {
        "confidence_threshold": 0.92,
        "require_positive_frequency": True,
        "frame_rate": 60.0,
        "reference_a4": 440.0,
        "in_tune_cents": 5.0,
        "use_flats": False,
    },
    "audio_input": {
        "device_id": None,
        "sample_rate": None,
        "buffer_size": 2048,
        "channels": 1,
    },
    "pitch_detector": {
        "method": "yin",
        "tolerance": 0.8,
        "cutoff": 0.93,
    },
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _unit_interval(value: Any) -> bool:
    return _is_number(value) and 0.0 <= value <= 1.0


def _positive(value: Any) -> bool:
    return _is_number(value) and value > 0


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _optional(check: Callable[[Any], bool]) -> Callable[[Any], bool]:
    return lambda value: value is None or check(value)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


VALIDATORS: Dict[str, Dict[str, Callable[[Any], bool]]] = {
    "tuner": {
        "confidence_threshold": _unit_interval,
        "require_positive_frequency": _is_bool,
        "frame_rate": _positive,
        "reference_a4": _positive,
        "in_tune_cents": _positive,
        "use_flats": _is_bool,
    },
    "audio_input": {
        "device_id": _optional(lambda v: isinstance(v, (int, str)) and not isinstance(v, bool)),
        "sample_rate": _optional(_positive),
        "buffer_size": _positive_int,
        "channels": _positive_int,
    },
    "pitch_detector": {
        "method": lambda v: isinstance(v, str),
        "tolerance": _unit_interval,
        "cutoff": lambda v: _is_number(v) and 0.0 < v <= 1.0,
    },
}


class ConfigManager:
    """Configuration manager for the chromatic tuner components."""

    def __init__(self, config_dir: Optional[str] = None):
        """Initialize the configuration manager.

        Args:
            config_dir: Directory to store configuration files, or None to use default
        """
        if config_dir is None:
            # Use ~/.config/chromatic_tuner by default
            config_dir = os.path.join(os.path.expanduser("~"), ".config", "chromatic_tuner")

        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.configs: Dict[str, Dict[str, Any]] = {
            name: self.load_config(name, defaults) for name, defaults in DEFAULT_CONFIGS.items()
        }

    def _path(self, name: str) -> Path:
        return self.config_dir / f"{name}.json"

    def _invalid_keys(self, name: str, values: Dict[str, Any]) -> Dict[str, Any]:
        checks = VALIDATORS.get(name, {})
        return {
            key: value
            for key, value in values.items()
            if key in checks and not checks[key](value)
        }

    def load_config(self, name: str, default_config: Dict[str, Any]) -> Dict[str, Any]:
        """Load a section from its file, writing the defaults if there is none.

        Unreadable files and values that fail validation are logged and
        replaced with defaults; the file itself is left alone.

        Args:
            name: Configuration name
            default_config: Values used for missing or invalid keys

        Returns:
            Configuration dictionary
        """
        config_file = self._path(name)
        if not config_file.exists():
            config = dict(default_config)
            self.save_config(name, config)
            return config

        try:
            with open(config_file, "r") as f:
                stored = json.load(f)
            if not isinstance(stored, dict):
                raise ValueError(f"expected a JSON object, got {type(stored).__name__}")
        except (OSError, ValueError) as e:
            logger.error(f"Error loading configuration from {config_file}: {e}")
            return dict(default_config)

        for key, value in self._invalid_keys(name, stored).items():
            logger.warning(f"Ignoring invalid {name}.{key} = {value!r} in {config_file}")
            del stored[key]

        logger.info(f"Loaded configuration from {config_file}")
        return {**default_config, **stored}

    def save_config(self, name: str, config: Dict[str, Any]) -> bool:
        """Save configuration to file.

        Returns:
            True if saved successfully, False otherwise
        """
        config_file = self._path(name)
        try:
            with open(config_file, "w") as f:
                json.dump(config, f, indent=2)
        except (OSError, TypeError) as e:
            logger.error(f"Error saving configuration to {config_file}: {e}")
            return False

        logger.debug(f"Saved configuration to {config_file}")
        return True

    def get_config(self, name: str) -> Dict[str, Any]:
        """Return a copy of a section, or an empty dict if it is unknown."""
        return dict(self.configs.get(name, {}))

    def update_config(self, name: str, updates: Dict[str, Any]) -> bool:
        """Validate and apply updates to a section, then save it.

        Nothing is applied if any value is invalid.

        Args:
            name: Configuration name
            updates: Dictionary of updates to apply

        Returns:
            True if updated and saved successfully, False otherwise
        """
        if name not in self.configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        invalid = self._invalid_keys(name, updates)
        if invalid:
            logger.error(f"Invalid {name} configuration values: {invalid}")
            return False

        self.configs[name].update(updates)
        return self.save_config(name, self.configs[name])

    def reset_config(self, name: str) -> bool:
        """Reset a section to its defaults and save it."""
        if name not in DEFAULT_CONFIGS:
            logger.error(f"Unknown configuration: {name}")
            return False

        self.configs[name] = dict(DEFAULT_CONFIGS[name])
        return self.save_config(name, self.configs[name])
