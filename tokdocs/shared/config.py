"""Configuration management for tokdocs.

Settings come from built-in defaults, an optional YAML/JSON file, and
environment variables, in increasing order of precedence. Keys use dot
notation (``docs_api.identify_key``).
"""

import copy
import json
import os
from pathlib import Path
from typing import Any

import yaml

from tokdocs.shared.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_CONFIG_FILES = ["tokdocs.yaml", "tokdocs.yml", "tokdocs.json", "config.yaml"]

DEFAULTS: dict[str, Any] = {
    "docs_api": {
        "base_url": "https://business-api.tiktok.com/gateway/api/doc/client",
        "identify_key": "c0138ffadd90a955c1f0670a56fe348d1d40680b3c89461e09f78ed26785164b",
        "language": "ENGLISH",
        "metrics_doc_id": "1751443967255553",
        "timeout": 30,
    },
    "download": {
        "output_dir": "./tiktok-docs",
        "delay": 0.5,
        "include_metadata": True,
    },
    "vector_store": {
        "path": "./docs_vectors",
        "collection": "tiktok_docs",
        "model_name": "all-MiniLM-L6-v2",
    },
    "search": {
        "url_base": "https://platform.tiktok.com/docs/",
        "max_results": 10,
    },
    "log_level": "INFO",
}

# Environment variable -> (dot-notation key, converter)
ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "TOKDOCS_API_BASE_URL": ("docs_api.base_url", str),
    "TOKDOCS_IDENTIFY_KEY": ("docs_api.identify_key", str),
    "TOKDOCS_LANGUAGE": ("docs_api.language", str),
    "TOKDOCS_METRICS_DOC_ID": ("docs_api.metrics_doc_id", str),
    "TOKDOCS_OUTPUT_DIR": ("download.output_dir", str),
    "TOKDOCS_DELAY": ("download.delay", float),
    "TOKDOCS_DB_PATH": ("vector_store.path", str),
    "TOKDOCS_COLLECTION": ("vector_store.collection", str),
    "TOKDOCS_URL_BASE": ("search.url_base", str),
    "LOG_LEVEL": ("log_level", str),
}


class ConfigError(Exception):
    """Raised when an explicitly requested configuration file can't be used."""


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


class AppConfig:
    """Configuration manager for tokdocs."""

    def __init__(self, config_path: str | None = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file (YAML or JSON).
                If not provided, the first existing default file in the
                current directory is used, if any.

        Raises:
            ConfigError: If ``config_path`` is given but can't be read
        """
        self.config_path = config_path
        self._config: dict[str, Any] = copy.deepcopy(DEFAULTS)

        if config_path:
            self.load_from_file(config_path, required=True)
        else:
            for default_path in DEFAULT_CONFIG_FILES:
                if Path(default_path).exists():
                    self.load_from_file(default_path)
                    break

        self.load_from_env()

    def load_from_file(self, path: str, required: bool = False) -> None:
        """Merge configuration from a YAML or JSON file.

        Args:
            path: Path to configuration file
            required: Raise instead of logging when the file is unusable

        Raises:
            ConfigError: If ``required`` and the file is missing or invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            if required:
                msg = f"Configuration file not found: {path}"
                raise ConfigError(msg)
            logger.warning("Configuration file not found: %s", path)
            return

        try:
            with config_path.open(encoding="utf-8") as f:
                if path.endswith((".yaml", ".yml")):
                    loaded = yaml.safe_load(f) or {}
                else:
                    loaded = json.load(f)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            if required:
                msg = f"Failed to load configuration from {path}: {e}"
                raise ConfigError(msg) from e
            logger.exception("Failed to load configuration from %s", path)
            return

        if not isinstance(loaded, dict):
            msg = f"Configuration in {path} must be a mapping"
            raise ConfigError(msg)

        _deep_merge(self._config, loaded)
        logger.info("Loaded configuration from %s", path)

    def load_from_env(self) -> None:
        """Apply environment variable overrides."""
        for env_name, (key, converter) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            try:
                self.set(key, converter(raw))
            except ValueError:
                logger.warning("Ignoring invalid value for %s: %r", env_name, raw)

    def set(self, key: str, value: Any) -> None:
        """Set a value using dot notation, creating nested dicts as needed."""
        keys = key.split(".")
        d = self._config
        for k in keys[:-1]:
            d = d.setdefault(k, {})
        d[keys[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation.

        Args:
            key: Configuration key in dot notation
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value: Any = self._config
        for k in key.split("."):
            if not isinstance(value, dict):
                return default
            value = value.get(k)
            if value is None:
                return default
        return value

    def as_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create the global configuration instance."""
    global _config  # noqa: PLW0603
    if _config is None:
        _config = AppConfig()
    return _config


def reset_config() -> None:
    """Drop the global instance so the next get_config() reloads."""
    global _config  # noqa: PLW0603
    _config = None


def load_config(config_path: str | None = None) -> AppConfig:
    """Replace the global instance with one loaded from ``config_path``.

    Raises:
        ConfigError: If ``config_path`` is given but can't be read
    """
    global _config  # noqa: PLW0603
    _config = AppConfig(config_path)
    return _config
