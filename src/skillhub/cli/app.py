"""
Main Typer application for the skillhub CLI.

This module defines the root CLI application and registers all command groups.
"""

from typing import Annotated

import typer
from rich.markup import escape

from skillhub import __version__
from skillhub.cli.commands import cache, onboard, settings, skill, tool
from skillhub.cli.output import print_error, print_info
from skillhub.config import ConfigurationError, get_config
from skillhub.log import setup_logging
from skillhub.storage import get_log_path

# Create the main Typer app
app = typer.Typer(
    name="skillhub",
    help="Manage skill bundles shared by your AI-assistant tools.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        print_info(f"skillhub version [green]{__version__}[/green]")
        raise typer.Exit()


# noinspection PyUnusedLocal
@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log debug details to the console.",
        ),
    ] = False,
) -> None:
    """
    [bold blue]skillhub[/bold blue] - one canonical copy of every skill

    Install skills from local folders or git repositories, then sync them
    into Claude Code, Codex, Cursor and the other tools you use.
    """
    try:
        config = get_config()
    except ConfigurationError as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    setup_logging(
        level="DEBUG" if verbose else config.logging.level,
        log_file=get_log_path() if config.logging.file else None,
    )


# Register command groups
app.add_typer(skill.app, name="skill")
app.add_typer(tool.app, name="tool")
app.add_typer(onboard.app, name="onboard")
app.add_typer(cache.app, name="cache")
app.add_typer(settings.app, name="settings")


if __name__ == "__main__":
    app()
