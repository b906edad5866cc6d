"""
skillhub cache - Git clone cache maintenance.

Usage:
    skillhub cache clear
    skillhub cache cleanup
"""

import typer

from skillhub.cli.output import print_success
from skillhub.skills import get_skill_manager

app = typer.Typer(
    name="cache",
    help="Git clone cache maintenance.",
)


@app.command()
def clear() -> None:
    """Delete every cached clone."""
    removed = get_skill_manager().clear_git_cache()
    print_success(f"Removed {removed} cached clone(s)")


@app.command()
def cleanup() -> None:
    """Delete clones not fetched within git_cache_cleanup_days."""
    removed = get_skill_manager().cleanup_git_cache()
    print_success(f"Removed {removed} stale clone(s)")
