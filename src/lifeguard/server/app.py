"""FastAPI application for the LifeGuard analysis API."""

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lifeguard.server.routes import analyze, health

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from lifeguard.analysis import EmergencyAnalyzer
    from lifeguard.config import LifeguardConfig

logger = logging.getLogger(__name__)


class LifeguardServer:
    """Main server application.

    Holds the analyzer shared by all requests; the analyzer itself keeps no
    per-request state.
    """

    def __init__(
        self,
        config: "LifeguardConfig",
        analyzer: "EmergencyAnalyzer",
    ):
        self._config = config
        self._analyzer = analyzer
        self._app = self._create_app()

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application."""
        return self._app

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI app."""

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> "AsyncIterator[None]":
            logger.info(
                "Starting LifeGuard server (model=%s, api_key=%s)",
                self._config.gemini.model,
                "set" if self._analyzer.client.configured else "missing",
            )
            yield
            logger.info("Shutting down LifeGuard server")

        app = FastAPI(
            title="LifeGuard",
            description="Emergency scene analysis API",
            version="0.1.0",
            lifespan=lifespan,
        )

        # Credentials only for an explicit origin list
        origins = self._config.server.allowed_origins
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        # Store references in app state
        app.state.server = self
        app.state.config = self._config
        app.state.analyzer = self._analyzer

        # Include routes
        app.include_router(health.router, tags=["health"])
        app.include_router(analyze.router, prefix="/api", tags=["analysis"])

        return app


def create_app(
    config: "LifeguardConfig",
    analyzer: "EmergencyAnalyzer | None" = None,
) -> FastAPI:
    """Create the FastAPI application.

    Builds a Gemini-backed analyzer from the config when none is given.
    """
    if analyzer is None:
        from lifeguard.analysis import EmergencyAnalyzer

        analyzer = EmergencyAnalyzer.from_config(config)

    server = LifeguardServer(config=config, analyzer=analyzer)
    return server.app
