"""
skillhub onboard - Adopt skills already present in tool directories.

Usage:
    skillhub onboard scan
    skillhub onboard scan --json
    skillhub onboard import ~/.claude/skills/pdf --tool claude_code --tool codex
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from skillhub.cli.output import print_error, print_success, short_hash
from skillhub.skills import SkillHubError, get_skill_manager

app = typer.Typer(
    name="onboard",
    help="Discover and import unmanaged skills.",
)

console = Console()


@app.command()
def scan(
    as_json: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print the plan as JSON.",
        ),
    ] = False,
) -> None:
    """Scan installed tools for skills skillhub does not manage yet."""
    manager = get_skill_manager()
    plan = manager.onboarding_plan()

    if as_json:
        typer.echo(plan.model_dump_json(indent=2))
        return

    console.print(
        f"Scanned {plan.total_tools_scanned} tool(s), "
        f"found {plan.total_skills_found} unmanaged skill copy(ies)"
    )
    if not plan.groups:
        return

    table = Table(title="Unmanaged Skills")
    table.add_column("Name", style="cyan")
    table.add_column("Tool")
    table.add_column("Fingerprint", style="dim")
    table.add_column("Path", style="dim")

    for group in plan.groups:
        name = f"{group.name} [red](conflict)[/red]" if group.has_conflict else group.name
        for i, variant in enumerate(group.variants):
            path = str(variant.path)
            if variant.is_link:
                path += f" -> {variant.link_target}"
            table.add_row(name if i == 0 else "", variant.tool, short_hash(variant.fingerprint), path)

    console.print(table)
    if any(g.has_conflict for g in plan.groups):
        console.print("[dim]Conflicting copies differ in content; import the one you want.[/dim]")


@app.command("import")
def import_skill(
    path: Annotated[
        Path,
        typer.Argument(
            help="Skill directory found by 'onboard scan'.",
        ),
    ],
    name: Annotated[
        str | None,
        typer.Option(
            "--name",
            "-n",
            help="Name in the central repo (default: directory name).",
        ),
    ] = None,
    tools: Annotated[
        list[str] | None,
        typer.Option(
            "--tool",
            "-t",
            help="Replace this tool's copy with the managed one (repeatable).",
        ),
    ] = None,
) -> None:
    """Import an existing skill into the central repo."""
    manager = get_skill_manager()

    try:
        result = manager.import_existing_skill(path.expanduser(), name, tools)
    except (SkillHubError, OSError) as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    location = escape(str(result.central_path))
    print_success(f"Imported [cyan]{result.name}[/cyan] into {location}")
    if tools:
        console.print(f"[dim]Now managed in: {', '.join(tools)}[/dim]")
