"""
Configuration management for the SoundPrint engine.

Loads and validates configuration from YAML files with environment
variable interpolation support. Values missing from a file fall back
to the built-in defaults.
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from soundprint.utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

QUALITY_TIERS = ("low", "medium", "high", "lossless", "adaptive")

CONFIG_SCHEMA: Dict[str, Dict[str, Any]] = {
    "decoder.max_bytes": {"type": int, "required": True},
    "decoder.normalize_clipping": {"type": bool, "required": False},
    "analysis.spectrum_window": {"type": int, "required": True},
    "analysis.beat_window_seconds": {"type": (int, float), "required": True},
    "analysis.beat_threshold": {"type": (int, float), "required": True},
    "analysis.segment_window_seconds": {"type": (int, float), "required": True},
    "analysis.segment_hop_seconds": {"type": (int, float), "required": True},
    "analysis.min_lag": {"type": int, "required": True},
    "analysis.waveform_points": {"type": int, "required": True},
    "analysis.tempo_reference": {"type": (int, float), "required": True},
    "mixer.default_quality": {"type": str, "required": True},
    "workers.count": {"type": int, "required": True},
    "workers.queue_size": {"type": int, "required": True},
}


class ConfigManager:
    """
    Manages engine configuration loaded from YAML files.

    Features:
    - YAML configuration loading
    - Environment variable interpolation (${VAR_NAME})
    - Nested key access with dot notation
    - Default value support
    - Configuration validation
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration manager.

        Args:
            config_dict: Optional pre-loaded configuration dictionary
        """
        self._config: Dict[str, Any] = config_dict or {}
        self._env_pattern = re.compile(r'\$\{([^}]+)\}')

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Create ConfigManager from YAML file.

        Args:
            file_path: Path to YAML configuration file

        Returns:
            ConfigManager: Initialized with file contents

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r') as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}",
                config_key=str(file_path)
            ) from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                config_key=str(file_path)
            )

        manager = cls(config_dict)
        manager._interpolate_env_vars()
        return manager

    def _interpolate_env_vars(self) -> None:
        """Replace ${ENV_VAR} patterns with environment variable values."""
        self._config = self._interpolate(self._config)

    def _interpolate(self, value: Any) -> Any:
        """Recursively interpolate environment variables in nested values."""
        if isinstance(value, dict):
            return {key: self._interpolate(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._interpolate(item) for item in value]
        if isinstance(value, str):
            return self._interpolate_string(value)
        return value

    def _interpolate_string(self, s: str) -> Any:
        """Replace ${ENV_VAR} with environment variable value."""
        def replace(match: re.Match) -> str:
            value = os.environ.get(match.group(1))
            if value is None:
                return match.group(0)  # Keep original if not found
            return value

        result = self._env_pattern.sub(replace, s)
        # A whole-value placeholder may stand for a number ("${WORKERS}")
        if result != s and self._env_pattern.fullmatch(s):
            try:
                return yaml.safe_load(result)
            except yaml.YAMLError:
                return result
        return result

    def get(
        self,
        key: str,
        default: Any = None,
        required: bool = False
    ) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (supports dot notation: "analysis.beat_threshold")
            default: Default value if key not found
            required: If True, raise error when key not found

        Returns:
            Configuration value or default

        Raises:
            ConfigurationError: If required key is not found
        """
        value = self._config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key
                    )
                return default

        return value

    def get_section(self, key: str) -> Dict[str, Any]:
        """Get an entire configuration section as a dictionary."""
        value = self.get(key, default={})
        if not isinstance(value, dict):
            return {}
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value using dot notation.

        Example:
            config.set("workers.count", 8)
        """
        keys = key.split('.')
        current = self._config

        for k in keys[:-1]:
            if k not in current or not isinstance(current[k], dict):
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return copy.deepcopy(self._config)

    def validate(self, schema: Dict[str, Any]) -> None:
        """
        Validate configuration against a schema.

        Args:
            schema: Dictionary defining required keys and their types

        Raises:
            ConfigurationError: If validation fails

        Schema format:
            {
                "workers.count": {"type": int, "required": True},
                "logging.file": {"type": str}
            }
        """
        for key, rules in schema.items():
            value = self.get(key)
            required = rules.get("required", False)
            expected_type = rules.get("type")

            if value is None:
                if required:
                    raise ConfigurationError(
                        f"Required configuration missing: {key}",
                        config_key=key
                    )
                continue

            # bool is an int subclass; never accept it for numeric keys
            if expected_type and (
                (isinstance(value, bool) and expected_type is not bool)
                or not isinstance(value, expected_type)
            ):
                names = (
                    "/".join(t.__name__ for t in expected_type)
                    if isinstance(expected_type, tuple) else expected_type.__name__
                )
                raise ConfigurationError(
                    f"Invalid type for {key}: expected {names}, "
                    f"got {type(value).__name__}",
                    config_key=key
                )

        quality = self.get("mixer.default_quality")
        if quality is not None and quality not in QUALITY_TIERS:
            raise ConfigurationError(
                f"Unknown quality tier for mixer.default_quality: {quality}",
                config_key="mixer.default_quality"
            )


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    A ``.env`` file in the working directory is loaded first so that
    ``${VAR}`` placeholders can refer to it.

    Args:
        config_path: Optional path to config file.
                    If None, tries "config/config.yaml"

    Returns:
        Dict[str, Any]: Configuration dictionary (defaults merged with file)

    Raises:
        ConfigurationError: If an explicit path is missing or the result is invalid
    """
    load_dotenv(find_dotenv(usecwd=True))

    if config_path is None:
        default_paths = [
            Path("config/config.yaml"),
            Path("config.yaml"),
            Path(__file__).parent.parent.parent / "config" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break

    config = get_default_config()
    if config_path is not None:
        manager = ConfigManager.from_file(Path(config_path))
        config = merge_config(config, manager.to_dict())
        logger.debug(f"Loaded configuration from {config_path}")

    ConfigManager(config).validate(CONFIG_SCHEMA)
    return config


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "decoder": {
            "max_bytes": 524288000,  # 500 MB
            "target_sample_rate": None,  # keep the container's rate
            "normalize_clipping": True,
        },
        "analysis": {
            "spectrum_window": 2048,
            "beat_window_seconds": 0.1,
            "beat_threshold": 0.1,
            "segment_window_seconds": 0.5,
            "segment_hop_seconds": 0.1,
            "min_lag": 20,
            "waveform_points": 1000,
            "tempo_reference": 120.0,
        },
        "mixer": {
            "default_quality": "adaptive",
            "adaptive_threshold_ratio": 0.1,
            "adaptive_attenuation": 0.5,
        },
        "workers": {
            "count": 2,
            "queue_size": 16,
            "timeout": None,
        },
        "logging": {
            "level": "INFO",
            "format": "json",
            "file": None,
        },
    }
