"""Configuration loading from TOML files and environment variables."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import SecretStr, ValidationError

from lifeguard.config.models import ConfigError, LifeguardConfig
from lifeguard.config.paths import get_config_path

logger = logging.getLogger(__name__)

# Checked in order; API_KEY matches the browser app's deployment env
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("config.toml"),  # Current directory
        get_config_path(),  # ~/.lifeguard/config.toml (or LIFEGUARD_HOME)
        Path("/etc/lifeguard/config.toml"),  # System-wide
    ]


def _resolve_env_secrets(config: dict[str, Any]) -> dict[str, Any]:
    """Resolve the Gemini API key from environment if not set in config."""
    section = config.setdefault("gemini", {})
    if section.get("api_key"):
        return config
    for env_var in API_KEY_ENV_VARS:
        value = os.environ.get(env_var)
        if value:
            section["api_key"] = SecretStr(value)
            break
    return config


def _find_config_path(path: Path | None) -> Path | None:
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return config_path

    for default_path in _get_default_config_paths():
        expanded = default_path.expanduser()
        if expanded.exists():
            return expanded
    return None


def load_config(path: Path | None = None) -> LifeguardConfig:
    """Load configuration from TOML file.

    Args:
        path: Explicit path to config file. If None, searches default
            locations and falls back to defaults when none exists.

    Returns:
        Validated LifeguardConfig instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigError: If the config file is invalid.
    """
    config_path = _find_config_path(path)

    raw_config: dict[str, Any] = {}
    if config_path is None:
        logger.debug("No config file found, using defaults")
    else:
        try:
            with config_path.open("rb") as f:
                raw_config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    # Resolve secrets from environment
    raw_config = _resolve_env_secrets(raw_config)

    try:
        return LifeguardConfig.model_validate(raw_config)
    except ValidationError as e:
        source = config_path or "defaults"
        raise ConfigError(f"Invalid configuration in {source}: {e}") from e


def get_default_config() -> LifeguardConfig:
    """Get a default configuration for development/testing."""
    return LifeguardConfig.model_validate(_resolve_env_secrets({}))
