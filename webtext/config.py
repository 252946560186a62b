"""
load the config from config.yaml and environment variables
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any


DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

# environment variable -> (section, key)
ENV_OVERRIDES = {
    'WEBTEXT_FETCHER_USER_AGENT': ('fetcher', 'user_agent'),
    'WEBTEXT_FETCHER_TIMEOUT': ('fetcher', 'timeout'),
    'WEBTEXT_FETCHER_MAX_REDIRECTS': ('fetcher', 'max_redirects'),
    'WEBTEXT_FETCHER_MAX_CONTENT_SIZE_MB': ('fetcher', 'max_content_size_mb'),
    'WEBTEXT_OUTPUT_MAX_NAME_LENGTH': ('output', 'max_name_length'),
    'WEBTEXT_LOG_LEVEL': ('logging', 'level'),
    'WEBTEXT_LOG_FORMAT': ('logging', 'format'),
}

SETTING_TYPES = {
    ('fetcher', 'user_agent'): str,
    ('fetcher', 'timeout'): float,
    ('fetcher', 'max_redirects'): int,
    ('fetcher', 'max_content_size_mb'): float,
    ('output', 'max_name_length'): int,
    ('logging', 'level'): str,
    ('logging', 'format'): str,
}


class Config:
    """Configuration loader that reads from config.yaml and environment variables."""

    def __init__(self, config_path: str = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to config.yaml file. If None, uses WEBTEXT_CONFIG
                        or the config.yaml shipped next to this module.
        """
        if config_path is None:
            config_path = os.getenv("WEBTEXT_CONFIG") or DEFAULT_CONFIG_PATH

        self.config_path = Path(config_path)
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file and override with environment variables."""
        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not isinstance(config, dict):
            raise ValueError(f"Configuration root must be a mapping: {self.config_path}")

        return self._coerce_settings(self._apply_env_overrides(config))

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration."""
        for env_var, (section, key) in ENV_OVERRIDES.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                if not isinstance(config.get(section), dict):
                    config[section] = {}
                config[section][key] = env_value

        return config

    def _coerce_settings(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Convert every known setting to its type, whether it came from YAML or the environment."""
        for (section, key), kind in SETTING_TYPES.items():
            values = config.get(section)
            if not isinstance(values, dict) or key not in values:
                continue
            try:
                values[key] = kind(values[key])
            except (TypeError, ValueError):
                raise ValueError(
                    f"Invalid value for {section}.{key}: {values[key]!r} (expected {kind.__name__})"
                )

        return config

    def get(self, *keys, default=None):
        """Get configuration value using dot notation.

        Args:
            *keys: Configuration keys (e.g., 'fetcher', 'timeout')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        current = self._config
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    @property
    def fetcher(self) -> Dict[str, Any]:
        """Get HTTP fetcher configuration."""
        return self.get('fetcher', default={})

    @property
    def output(self) -> Dict[str, Any]:
        """Get output file naming configuration."""
        return self.get('output', default={})

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.get('logging', default={})
