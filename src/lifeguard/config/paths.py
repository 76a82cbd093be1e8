"""Centralized path management for LifeGuard.

All local state (config, logs) is stored under a single base directory.
The base directory can be overridden with the LIFEGUARD_HOME environment
variable.

Default locations:
- Linux/macOS: ~/.lifeguard
- Windows: %USERPROFILE%\\.lifeguard
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "LIFEGUARD_HOME"


@lru_cache(maxsize=1)
def get_lifeguard_home() -> Path:
    """Get the base directory for all LifeGuard data.

    Resolution order:
    1. LIFEGUARD_HOME environment variable (if set)
    2. Platform default (~/.lifeguard)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".lifeguard"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_lifeguard_home() / "config.toml"


def get_logs_path() -> Path:
    """Get the JSONL log directory path."""
    return get_lifeguard_home() / "logs"
