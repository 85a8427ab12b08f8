"""Workspace scan command."""

from __future__ import annotations

from pathlib import Path

import click
from rich.table import Table

from ..console import console
from ..console import info
from ..paths import discover_workspace
from ..scanner import category_icon
from ..scanner import scan_for_sensitive_files
from ..settings import ClawignoreSettings
from ..utils.error_format import escape_markup


@click.command("scan")
@click.argument("path", required=False, type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.pass_context
def scan_cmd(ctx, path: Path | None):
    """List sensitive files under PATH (default: the OpenClaw workspace)."""
    settings: ClawignoreSettings = ctx.obj["settings"]
    target = path or discover_workspace() or Path.cwd()

    with console.status(f"Scanning {escape_markup(target)}..."):
        files = scan_for_sensitive_files(target, max_bytes=settings.scan.content_scan_bytes)

    if not files:
        info(f"No sensitive files found in {escape_markup(target)}")
        return

    table = Table(title=f"Sensitive files in {escape_markup(target)}", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Category")
    table.add_column("Path", style="cyan")
    table.add_column("Reason", style="dim")
    table.add_column("Confidence")
    for file in files:
        table.add_row(
            category_icon(file.category),
            file.category,
            escape_markup(file.relative_path),
            escape_markup(file.reason),
            file.confidence,
        )
    console.print(table)
    console.print(f"\n[dim]{len(files)} files. Run 'clawignore setup' to hide them from OpenClaw.[/dim]")
