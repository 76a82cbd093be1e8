"""Model connectivity check."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from lifeguard.cli.console import console, dim, error, success


def register(app: typer.Typer) -> None:
    """Register the check command."""

    @app.command()
    def check(
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Verify the API key and model respond to a trivial prompt."""
        from lifeguard.analysis import categorize_error
        from lifeguard.cli.console import create_analyzer
        from lifeguard.config import ConfigError, load_config

        try:
            lifeguard_config = load_config(config)
        except (FileNotFoundError, ConfigError) as e:
            error(str(e))
            raise typer.Exit(1) from None

        if lifeguard_config.resolve_api_key() is None:
            error("API key not configured")
            dim("Set GEMINI_API_KEY or [gemini].api_key in config.toml")
            raise typer.Exit(1)

        analyzer = create_analyzer(lifeguard_config)
        model = lifeguard_config.gemini.check_model
        try:
            text = asyncio.run(analyzer.check_connection(model))
        except Exception as e:
            error(categorize_error(e).message)
            raise typer.Exit(1) from None

        success(f"{model} responded")
        console.print(text.strip())
