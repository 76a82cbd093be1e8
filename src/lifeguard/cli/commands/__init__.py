"""CLI command modules."""

from lifeguard.cli.commands import analyze, check, config, serve

__all__ = [
    "analyze",
    "check",
    "config",
    "serve",
]
