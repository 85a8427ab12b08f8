"""Show the patterns of an existing ``.clawignore``."""

from __future__ import annotations

from pathlib import Path

import click

from ..console import console
from ..console import warn
from ..ignore_file import CATEGORY_COMMENTS
from ..ignore_file import IgnoreList
from ..ignore_file import read_ignore_file
from ..paths import OpenClawLayout
from ..paths import discover_workspace
from ..utils.error_format import escape_markup


def default_ignore_file() -> Path:
    """The generated ignore file, or the workspace one written by quick mode."""
    workspace = discover_workspace()
    layout = OpenClawLayout.for_workspace(workspace) if workspace else OpenClawLayout.default()
    if layout.ignore_file.exists() or workspace is None:
        return layout.ignore_file
    return workspace / layout.ignore_file.name


@click.command("show-ignore")
@click.option("--file", "ignore_file", type=click.Path(dir_okay=False, path_type=Path), help="Ignore file to read")
def show_ignore_cmd(ignore_file: Path | None):
    """Print the hidden patterns grouped by category."""
    path = ignore_file or default_ignore_file()
    if not path.exists():
        warn(f"No ignore file at {escape_markup(path)}")
        console.print("[dim]Run 'clawignore setup' to create one.[/dim]")
        return

    ignore_list = IgnoreList.of(read_ignore_file(path))
    console.print(f"[bold]{escape_markup(path)}[/bold] ({len(ignore_list)} patterns)\n")
    for category, members in ignore_list.grouped().items():
        if not members:
            continue
        console.print(f"[cyan]{escape_markup(CATEGORY_COMMENTS[category])}[/cyan]")
        for pattern in members:
            console.print(f"  {escape_markup(pattern)}")
        console.print()
