"""Analyze a single image file from the command line."""

import asyncio
import json
import mimetypes
from pathlib import Path
from typing import Annotated

import typer

from lifeguard.cli.console import console, create_table, dim, error, warning


def _guess_mime(path: Path, default: str) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or default


def register(app: typer.Typer) -> None:
    """Register the analyze command."""

    @app.command()
    def analyze(
        image: Annotated[
            Path,
            typer.Argument(help="Image file to analyze (JPEG or PNG)"),
        ],
        audio: Annotated[
            Path | None,
            typer.Option("--audio", "-a", help="Optional short audio clip"),
        ] = None,
        language: Annotated[
            str,
            typer.Option(
                "--language", "-l", help="Response language: English, Arabic, French"
            ),
        ] = "English",
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
        as_json: Annotated[
            bool,
            typer.Option("--json", help="Print the raw outcome as JSON"),
        ] = False,
    ) -> None:
        """Analyze an image for an emergency and print the guidance."""
        from lifeguard.analysis import AnalysisRequest, Language
        from lifeguard.cli.console import create_analyzer
        from lifeguard.config import ConfigError, load_config
        from lifeguard.errors import PreconditionError
        from lifeguard.logging import configure_logging

        configure_logging(level="WARNING")

        try:
            lifeguard_config = load_config(config)
        except (FileNotFoundError, ConfigError) as e:
            error(str(e))
            raise typer.Exit(1) from None

        for path in (image, audio):
            if path is not None and not path.is_file():
                error(f"File not found: {path}")
                raise typer.Exit(1)

        try:
            target_language = Language.parse(language)
        except PreconditionError as e:
            error(str(e))
            raise typer.Exit(1) from None

        settings = lifeguard_config.analysis
        request = AnalysisRequest(
            image=image.read_bytes(),
            audio=audio.read_bytes() if audio else None,
            language=target_language,
            image_mime_type=_guess_mime(image, settings.image_mime_type),
            audio_mime_type=(
                _guess_mime(audio, settings.audio_mime_type)
                if audio
                else settings.audio_mime_type
            ),
        )

        analyzer = create_analyzer(lifeguard_config)
        outcome = asyncio.run(analyzer.analyze(request))

        if as_json:
            console.print_json(json.dumps(outcome.to_dict(), ensure_ascii=False))
            raise typer.Exit(0 if outcome.success else 1)

        if not outcome.success or outcome.data is None:
            assert outcome.error is not None
            if outcome.error.category == "warning":
                warning(outcome.error.message)
            else:
                error(outcome.error.message)
            raise typer.Exit(1)

        instruction = outcome.data
        table = create_table(
            "Emergency Assessment",
            [("Field", "cyan"), ("Value", {"style": "white", "overflow": "fold"})],
        )
        table.add_row("Type", instruction.type)
        table.add_row("Danger level", instruction.danger_level.value)
        for index, action in enumerate(instruction.actions, start=1):
            table.add_row(f"Action {index}", action)
        if instruction.warning:
            table.add_row("Warning", instruction.warning)
        table.add_row("Reasoning", instruction.reasoning)
        console.print(table)
        dim(f"Speech ({target_language.speech_locale}): {instruction.narration_text()}")
