"""Server command for running the analysis API."""

import logging
from pathlib import Path
from typing import Annotated

import typer

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    """Register the serve command."""

    @app.command()
    def serve(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
        host: Annotated[
            str | None,
            typer.Option(
                "--host",
                "-h",
                help="Host to bind to (default: server.host)",
            ),
        ] = None,
        port: Annotated[
            int | None,
            typer.Option(
                "--port",
                "-p",
                help="Port to bind to (default: server.port)",
            ),
        ] = None,
    ) -> None:
        """Start the LifeGuard analysis API server."""
        import uvicorn

        from lifeguard.cli.console import error
        from lifeguard.config import ConfigError, load_config
        from lifeguard.logging import configure_logging
        from lifeguard.server import create_app

        # Configure logging with Rich for colorful server output and file logging
        configure_logging(use_rich=True, log_to_file=True)

        logger.info("Loading configuration")
        try:
            lifeguard_config = load_config(config)
        except (FileNotFoundError, ConfigError) as e:
            error(str(e))
            raise typer.Exit(1) from None

        if lifeguard_config.resolve_api_key() is None:
            logger.warning("No Gemini API key configured; analyses will fail")

        bind_host = host or lifeguard_config.server.host
        bind_port = port or lifeguard_config.server.port

        app_instance = create_app(lifeguard_config)
        logger.info(f"Starting server on {bind_host}:{bind_port}")
        try:
            uvicorn.run(
                app_instance,
                host=bind_host,
                port=bind_port,
                log_config=None,
            )
        except KeyboardInterrupt:
            # Use print here since logging may be torn down
            print("\nServer stopped")
