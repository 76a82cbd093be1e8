"""Main CLI application."""

import typer

from lifeguard.cli.commands import analyze, check, config, serve

app = typer.Typer(
    name="lifeguard",
    help="LifeGuard - emergency scene analysis",
    no_args_is_help=True,
)

analyze.register(app)
check.register(app)
config.register(app)
serve.register(app)


def main() -> None:
    """Console script entry point."""
    app()
