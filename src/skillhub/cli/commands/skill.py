"""
skillhub skill - Managed skill commands.

Usage:
    skillhub skill list
    skillhub skill install ./path/to/skill
    skillhub skill install owner/repo/tree/main/skills/pdf
    skillhub skill candidates owner/repo
    skillhub skill install-selection owner/repo skills/pdf
    skillhub skill update pdf
    skillhub skill show pdf
    skillhub skill remove pdf
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from skillhub.cli.output import format_ms, print_error, print_success, print_warning, short_hash
from skillhub.skills import MultipleSkillsError, SkillHubError, get_skill_manager

app = typer.Typer(
    name="skill",
    help="Managed skill commands.",
)

console = Console()


def _is_local(source: str) -> bool:
    return Path(source).expanduser().exists()


@app.command("list")
def list_skills(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show ids, paths and hashes.",
        ),
    ] = False,
) -> None:
    """List managed skills."""
    manager = get_skill_manager()
    skills = manager.list_skills()

    if not skills:
        console.print("[yellow]No skills installed.[/yellow]")
        console.print("[dim]Install one: skillhub skill install ./my-skill[/dim]")
        return

    table = Table(title="Managed Skills")
    table.add_column("Name", style="cyan")
    table.add_column("Source", style="dim")
    table.add_column("Tools")
    table.add_column("Updated", style="dim")

    if verbose:
        table.add_column("ID", style="dim")
        table.add_column("Hash", style="dim")
        table.add_column("Path", style="dim")

    for skill in skills:
        targets = manager.list_targets(skill.id)
        row = [
            skill.name,
            f"{skill.source_type}: {skill.source_ref or '-'}",
            ", ".join(t.tool for t in targets) or "-",
            format_ms(skill.updated_at),
        ]
        if verbose:
            row.extend([skill.id, short_hash(skill.content_hash), skill.central_path])
        table.add_row(*row)

    console.print(table)
    console.print(f"\n[dim]Total: {len(skills)} skill(s)[/dim]")


@app.command()
def show(
    skill: Annotated[
        str,
        typer.Argument(
            help="Skill id or name.",
        ),
    ],
) -> None:
    """Show skill details and where it is synced."""
    manager = get_skill_manager()

    try:
        record = manager.get_skill(skill)
    except SkillHubError as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    lines = [
        f"[bold]ID:[/bold] {record.id}",
        f"[bold]Source:[/bold] {record.source_type} {record.source_ref or ''}",
        f"[bold]Revision:[/bold] {record.source_revision or '-'}",
        f"[bold]Path:[/bold] {record.central_path}",
        f"[bold]Hash:[/bold] {record.content_hash or '-'}",
        f"[bold]Updated:[/bold] {format_ms(record.updated_at)}",
        f"[bold]Status:[/bold] {record.status}",
    ]

    if record.metadata:
        lines.append("")
        lines.append(f"[bold]Version:[/bold] {record.metadata.version or '-'}")
        if record.metadata.description:
            lines.append(f"[bold]Description:[/bold] {record.metadata.description}")
        if record.metadata.author:
            lines.append(f"[bold]Author:[/bold] {record.metadata.author}")
        if record.metadata.tags:
            lines.append(f"[bold]Tags:[/bold] {', '.join(record.metadata.tags)}")

    console.print(Panel("\n".join(lines), title=f"Skill: {record.name}"))

    targets = manager.list_targets(record.id)
    if not targets:
        console.print("[dim]Not synced to any tool.[/dim]")
        return

    table = Table(title="Targets")
    table.add_column("Tool", style="cyan")
    table.add_column("Mode")
    table.add_column("Status")
    table.add_column("Synced", style="dim")
    table.add_column("Path", style="dim")
    for target in targets:
        status = target.status
        if target.last_error:
            status = f"[red]{status}[/red]: {target.last_error}"
        table.add_row(
            target.tool, target.mode, status, format_ms(target.synced_at), target.target_path
        )
    console.print(table)


@app.command()
def install(
    source: Annotated[
        str,
        typer.Argument(
            help="Local folder, git URL, owner/repo or GitHub folder URL.",
        ),
    ],
    name: Annotated[
        str | None,
        typer.Option(
            "--name",
            "-n",
            help="Name in the central repo (default: derived from the source).",
        ),
    ] = None,
) -> None:
    """Install a skill into the central repo."""
    manager = get_skill_manager()

    try:
        if _is_local(source):
            result = manager.install_local(Path(source).expanduser(), name)
        else:
            result = manager.install_git(source, name)
    except MultipleSkillsError as e:
        print_error(escape(str(e)))
        console.print(f"[dim]List them with: skillhub skill candidates {escape(source)}[/dim]")
        raise typer.Exit(1)
    except (SkillHubError, OSError) as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    print_success(f"Installed [cyan]{result.name}[/cyan]")
    console.print(f"[dim]Location: {escape(str(result.central_path))}[/dim]")


@app.command("install-selection")
def install_selection(
    source: Annotated[
        str,
        typer.Argument(
            help="Local folder or repository holding several skills.",
        ),
    ],
    subpath: Annotated[
        str,
        typer.Argument(
            help="Subpath of the skill, as shown by 'skill candidates'.",
        ),
    ],
    name: Annotated[
        str | None,
        typer.Option(
            "--name",
            "-n",
            help="Name in the central repo.",
        ),
    ] = None,
) -> None:
    """Install one skill out of a multi-skill source."""
    manager = get_skill_manager()

    try:
        if _is_local(source):
            result = manager.install_local_selection(Path(source).expanduser(), subpath, name)
        else:
            result = manager.install_git_selection(source, subpath, name)
    except (SkillHubError, OSError) as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    print_success(f"Installed [cyan]{result.name}[/cyan]")
    console.print(f"[dim]Location: {escape(str(result.central_path))}[/dim]")


@app.command()
def candidates(
    source: Annotated[
        str,
        typer.Argument(
            help="Local folder or repository to look into.",
        ),
    ],
) -> None:
    """List the skills a source contains."""
    manager = get_skill_manager()

    try:
        if _is_local(source):
            found = manager.list_local_candidates(Path(source).expanduser())
        else:
            found = manager.list_git_candidates(source)
    except (SkillHubError, OSError) as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    if not found:
        console.print(f"[yellow]No skills found in {escape(source)}[/yellow]")
        return

    table = Table(title=f"Skills in {source}")
    table.add_column("Name", style="cyan")
    table.add_column("Subpath", style="dim")
    table.add_column("Description")
    for candidate in found:
        description = candidate.description or ""
        if getattr(candidate, "valid", True) is False:
            description = f"[red]invalid ({candidate.reason})[/red]"
        table.add_row(candidate.name, candidate.subpath, description)
    console.print(table)


@app.command()
def update(
    skill: Annotated[
        str,
        typer.Argument(
            help="Skill id or name.",
        ),
    ],
) -> None:
    """Refresh a skill from its source and re-sync copied targets."""
    manager = get_skill_manager()

    try:
        record = manager.get_skill(skill)
        result = manager.update_skill(record.id)
    except (SkillHubError, OSError) as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    revision = f" at {short_hash(result.source_revision)}" if result.source_revision else ""
    print_success(f"Updated [cyan]{result.name}[/cyan]{revision}")
    if result.updated_targets:
        console.print(f"[dim]Re-synced: {', '.join(result.updated_targets)}[/dim]")
    for tool, error in result.failed_targets.items():
        print_warning(f"Sync to {tool} failed: {escape(error)}")


@app.command()
def remove(
    skill: Annotated[
        str,
        typer.Argument(
            help="Skill id or name.",
        ),
    ],
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation.",
        ),
    ] = False,
) -> None:
    """Remove a skill from every tool and from the central repo."""
    manager = get_skill_manager()

    try:
        record = manager.get_skill(skill)
    except SkillHubError as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    if not yes:
        console.print(
            f"[yellow]This will delete '{record.name}' from {record.central_path} "
            "and every tool it is synced to[/yellow]"
        )
        if not typer.confirm("Are you sure?"):
            console.print("[dim]Cancelled.[/dim]")
            return

    try:
        removed = manager.delete_managed_skill(record.id)
    except (SkillHubError, OSError) as e:
        print_error(f"Failed to remove skill: {escape(str(e))}")
        raise typer.Exit(1)

    print_success(f"Removed [cyan]{record.name}[/cyan]")
    if removed:
        console.print(f"[dim]Unsynced from: {', '.join(removed)}[/dim]")
