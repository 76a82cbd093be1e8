"""HTTP server for the analysis API."""

from lifeguard.server.app import LifeguardServer, create_app

__all__ = ["LifeguardServer", "create_app"]
