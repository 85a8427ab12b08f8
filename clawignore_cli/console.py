"""Shared Rich console instance and status-line helpers for CLI output."""

from rich.console import Console
from rich.panel import Panel

console = Console()


def success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def info(message: str) -> None:
    console.print(f"[blue]ℹ[/blue] {message}")


def warn(message: str) -> None:
    console.print(f"[yellow]![/yellow] {message}")


def error(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")


def note(body: str, title: str, border_style: str = "cyan") -> None:
    """Print a titled summary box."""
    console.print()
    console.print(Panel(body, title=title, title_align="left", border_style=border_style, expand=False))


__all__ = ["console", "success", "info", "warn", "error", "note"]
