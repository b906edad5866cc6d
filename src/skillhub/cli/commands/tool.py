"""
skillhub tool - Tool directory commands.

Usage:
    skillhub tool list
    skillhub tool sync pdf claude_code cursor
    skillhub tool unsync pdf cursor
"""

from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from skillhub.cli.output import print_error, print_success, print_warning
from skillhub.skills import SkillHubError, get_skill_manager

app = typer.Typer(
    name="tool",
    help="Supported tools and per-tool sync.",
)

console = Console()


@app.command("list")
def list_tools() -> None:
    """List supported tools and whether they are installed."""
    manager = get_skill_manager()

    table = Table(title="Tools")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Installed")
    table.add_column("Mode", style="dim")
    table.add_column("Skills directory", style="dim")

    for adapter, installed in manager.tool_status():
        table.add_row(
            adapter.key,
            adapter.label,
            "[green]yes[/green]" if installed else "[dim]no[/dim]",
            manager.synchronizer.mode_for(adapter).value,
            str(adapter.skills_dir(manager.home)),
        )

    console.print(table)


@app.command()
def sync(
    skill: Annotated[
        str,
        typer.Argument(
            help="Skill id or name.",
        ),
    ],
    tools: Annotated[
        list[str],
        typer.Argument(
            help="Tool keys (see 'skillhub tool list').",
        ),
    ],
    overwrite: Annotated[
        bool,
        typer.Option(
            "--overwrite",
            "-f",
            help="Replace whatever is already at the target.",
        ),
    ] = False,
) -> None:
    """Sync a skill into one or more tools."""
    manager = get_skill_manager()

    try:
        record = manager.get_skill(skill)
    except SkillHubError as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    failed = False
    for tool in tools:
        try:
            target = manager.sync_skill_to_tool(record.id, tool, overwrite=overwrite)
        except (SkillHubError, OSError) as e:
            print_warning(f"{tool}: {escape(str(e))}")
            failed = True
            continue
        print_success(f"{tool}: {target.target_path} ({target.mode})")

    if failed:
        raise typer.Exit(1)


@app.command()
def unsync(
    skill: Annotated[
        str,
        typer.Argument(
            help="Skill id or name.",
        ),
    ],
    tool: Annotated[
        str,
        typer.Argument(
            help="Tool key.",
        ),
    ],
) -> None:
    """Remove a skill from one tool."""
    manager = get_skill_manager()

    try:
        record = manager.get_skill(skill)
        removed = manager.unsync_skill_from_tool(record.id, tool)
    except (SkillHubError, OSError) as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    if removed:
        print_success(f"Removed [cyan]{record.name}[/cyan] from {tool}")
    else:
        console.print(f"[yellow]{record.name} is not synced to {tool}[/yellow]")
