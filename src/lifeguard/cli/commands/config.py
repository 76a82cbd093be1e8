"""Configuration management commands."""

from pathlib import Path
from typing import Annotated

import click
import typer

from lifeguard.cli.console import console, error, success


def register(app: typer.Typer) -> None:
    """Register the config command."""

    @app.command()
    def config(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: $LIFEGUARD_HOME/config.toml)",
            ),
        ] = None,
    ) -> None:
        """Manage configuration."""
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        from rich.syntax import Syntax
        from rich.table import Table

        from lifeguard.config import ConfigError, load_config
        from lifeguard.config.paths import get_config_path

        expanded_path = path.expanduser() if path else get_config_path()

        if action == "show":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)

            # Display raw TOML with syntax highlighting
            content = expanded_path.read_text()
            syntax = Syntax(content, "toml", theme="monokai", line_numbers=True)
            console.print(f"[bold]Config file: {expanded_path}[/bold]\n")
            console.print(syntax)

        elif action == "validate":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)

            try:
                config_obj = load_config(expanded_path)
            except ConfigError as e:
                error("Configuration validation failed:")
                console.print(str(e), markup=False)
                raise typer.Exit(1) from None

            table = Table(title="Configuration Summary")
            table.add_column("Setting", style="cyan")
            table.add_column("Value", style="green")

            has_key = config_obj.resolve_api_key() is not None
            table.add_row("Model", config_obj.gemini.model)
            table.add_row("API key", "set" if has_key else "missing")
            table.add_row("Temperature", str(config_obj.gemini.temperature))
            table.add_row(
                "Retry",
                f"{config_obj.retry.max_attempts} attempts, "
                f"{config_obj.retry.base_delay_ms}ms base",
            )
            table.add_row(
                "Emergency types", ", ".join(config_obj.analysis.emergency_types)
            )
            table.add_row(
                "Server", f"{config_obj.server.host}:{config_obj.server.port}"
            )
            console.print(table)
            success("Configuration is valid")

        else:
            error(f"Unknown action: {action}")
            console.print("Valid actions: show, validate")
            raise typer.Exit(1)
