"""Configuration module."""

from lifeguard.config.loader import get_default_config, load_config
from lifeguard.config.models import (
    AnalysisConfig,
    ConfigError,
    GeminiConfig,
    LifeguardConfig,
    RetrySettings,
    ServerConfig,
)
from lifeguard.config.paths import (
    get_config_path,
    get_lifeguard_home,
    get_logs_path,
)

__all__ = [
    "AnalysisConfig",
    "ConfigError",
    "GeminiConfig",
    "LifeguardConfig",
    "RetrySettings",
    "ServerConfig",
    "get_config_path",
    "get_default_config",
    "get_lifeguard_home",
    "get_logs_path",
    "load_config",
]
