"""
skillhub settings - Registry settings.

Usage:
    skillhub settings get
    skillhub settings get git_cache_ttl_secs
    skillhub settings set git_cache_ttl_secs 300
    skillhub settings set central_repo_path ~/skills
"""

from typing import Annotated

import typer
from rich.markup import escape

from skillhub.cli.output import print_error, print_success, print_table
from skillhub.skills import get_skill_manager
from skillhub.skills.settings import KNOWN_SETTINGS

app = typer.Typer(
    name="settings",
    help="Read and change registry settings.",
)


@app.command()
def get(
    key: Annotated[
        str | None,
        typer.Argument(
            help="Setting name (default: show all).",
        ),
    ] = None,
) -> None:
    """Show settings stored in the registry."""
    manager = get_skill_manager()

    if key is not None and key not in KNOWN_SETTINGS:
        print_error(f"Unknown setting: {key} (known: {', '.join(KNOWN_SETTINGS)})")
        raise typer.Exit(1)

    keys = [key] if key else list(KNOWN_SETTINGS)
    rows = [[k, manager.get_setting(k) or "(default)"] for k in keys]
    if key is None:
        rows.append(["(effective central repo)", manager.central_root])
    print_table(["Setting", "Value"], rows)


@app.command("set")
def set_value(
    key: Annotated[
        str,
        typer.Argument(
            help="Setting name.",
        ),
    ],
    value: Annotated[
        str,
        typer.Argument(
            help="New value.",
        ),
    ],
) -> None:
    """Change a registry setting."""
    manager = get_skill_manager()

    try:
        manager.set_setting(key, value)
    except ValueError as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    print_success(f"{key} = {manager.get_setting(key)}")
