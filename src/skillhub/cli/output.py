"""
Output formatting utilities for the CLI.

Provides consistent output formatting across all CLI commands.
"""

from datetime import datetime
from typing import Any

from rich.console import Console
from rich.table import Table

# Global console instance
console = Console()


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]i[/blue] {message}")


def print_table(
    headers: list[str],
    rows: list[list[Any]],
    title: str | None = None,
) -> None:
    """Print a table."""
    table = Table(title=title)

    for header in headers:
        table.add_column(header)

    for row in rows:
        table.add_row(*[str(cell) if cell is not None else "-" for cell in row])

    console.print(table)


def format_ms(timestamp_ms: int | None) -> str:
    """Render a millisecond timestamp as local time."""
    if not timestamp_ms:
        return "-"
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M")


def short_hash(value: str | None, length: int = 12) -> str:
    return value[:length] if value else "-"
