"""Interactive setup command.

Full mode walks the home directory, lets the user pick what to hide, and
generates a docker-compose project that only mounts the remaining folders.
Quick mode scans the workspace, writes ``.clawignore`` next to it and
annotates an existing compose file.

Example:
    # Interactive (default)
    clawignore setup

    # Skip the mode question and the sensitive review
    clawignore setup --mode full --skip-review
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import click

from ..console import console
from ..console import error
from ..console import info
from ..console import note
from ..console import success
from ..console import warn
from ..docker import RuntimeStatus
from ..docker import annotate_compose
from ..docker import check_docker
from ..docker import compose_up
from ..docker import restart_gateway
from ..docker import stop_native_gateway
from ..errors import ArtifactWriteError
from ..errors import ConfigReadError
from ..ignore_file import IGNORE_FILE_NAME
from ..ignore_file import write_ignore_file
from ..mount_plan import MountPlan
from ..mount_plan import compile_mount_plan
from ..mount_plan import write_mount_plan
from ..paths import OpenClawLayout
from ..paths import discover_workspace
from ..paths import find_compose_file
from ..scanner import scan_for_sensitive_files
from ..settings import ClawignoreSettings
from ..tree import TreeBuilder
from ..ui import Option
from ..ui import Prompter
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message
from ..wizard import WizardCancelled
from ..wizard import run_wizard
from ..wizard import select_hidden_paths
from ..wizard import show_docker_help

logger = logging.getLogger(__name__)

SUMMARY_PREVIEW = 5


class AutoPrompter(Prompter):
    """Answers yes/no questions with their default; used by ``--yes``."""

    def confirm(self, question: str, default: bool = True) -> bool | None:
        self.console.print(f"{question} [dim](auto: {'yes' if default else 'no'})[/dim]")
        return default


def _cancel(ctx: click.Context, message: str = "Setup cancelled") -> None:
    console.print(f"[dim]{message}[/dim]")
    ctx.exit(0)


def _fail(ctx: click.Context, message: str) -> None:
    error(message)
    ctx.exit(1)


def _preview(lines: list[str], paths: list[str] | tuple[str, ...], mark: str) -> None:
    for path in paths[:SUMMARY_PREVIEW]:
        lines.append(f"  {mark} {escape_markup(path)}")
    if len(paths) > SUMMARY_PREVIEW:
        lines.append(f"[dim]  ... and {len(paths) - SUMMARY_PREVIEW} more[/dim]")


# ===== FULL MODE =====


def clear_old_sessions(layout: OpenClawLayout, prompter: Prompter) -> None:
    """Offer to delete session data that still refers to host paths."""
    sessions = layout.sessions_dir
    try:
        has_sessions = sessions.is_dir() and any(sessions.iterdir())
    except OSError:
        return
    if not has_sessions:
        return

    console.print()
    warn("Found existing session data with host paths.")
    console.print("  [dim]Old sessions contain host paths which don't work inside Docker.[/dim]")
    console.print('  [dim]Clearing them prevents "permission denied" errors.[/dim]')
    if not prompter.confirm("Clear old session data? (Recommended for Docker)", default=True):
        return

    try:
        shutil.rmtree(sessions)
    except OSError as e:
        logger.warning(f"Could not clear {sessions}: {e}")
        warn("Could not clear sessions automatically. You may need to run:")
        console.print(f"  [cyan]rm -rf {escape_markup(sessions)}[/cyan]")
        return
    success("Cleared old sessions")


def print_full_summary(plan: MountPlan, artifacts: list[Path]) -> None:
    lines = [f"[green]✓[/green] {escape_markup(path.name)} written to {escape_markup(path)}" for path in artifacts]
    lines += ["", "[bold]Mounted folders (accessible to AI):[/bold]"]
    _preview(lines, plan.paths_to_mount, "[green]✓[/green]")

    denied = sorted(plan.ignore_list.patterns)
    if denied:
        lines += ["", "[bold]Hidden (NOT accessible):[/bold]"]
        _preview(lines, denied, "[red]✗[/red]")

    if plan.skipped:
        lines += ["", "[bold]Not mounted:[/bold]"]
        _preview(lines, [f"{s.path} ({s.reason})" for s in plan.skipped], "[yellow]-[/yellow]")

    note("\n".join(lines), "Setup Complete", border_style="green")


def start_in_docker(layout: OpenClawLayout, prompter: Prompter, settings: ClawignoreSettings) -> None:
    root = escape_markup(layout.root)
    console.print()
    console.print("[bold]Next steps:[/bold]")
    console.print("  [dim]1. Stop your current OpenClaw CLI (if running)[/dim]")
    console.print("  [dim]2. Start OpenClaw in Docker:[/dim]")
    console.print(f"     [cyan]cd {root} && docker compose up -d[/cyan]")
    console.print("  [dim]3. View logs:[/dim]")
    console.print("     [cyan]docker compose logs -f openclaw-gateway[/cyan]")
    console.print("  [dim]4. To stop:[/dim]")
    console.print("     [cyan]docker compose down[/cyan]")
    console.print()

    if not prompter.confirm("Start OpenClaw in Docker now?", default=True):
        return

    with console.status("Stopping any running OpenClaw CLI instances..."):
        unloaded, signalled = stop_native_gateway()
    if unloaded or signalled:
        success(f"Stopped OpenClaw CLI{' (launchd service unloaded)' if unloaded else ''}")
    else:
        info("No running CLI instances found")

    with console.status("Starting OpenClaw in Docker..."):
        started = compose_up(layout.root)
    if started:
        success("OpenClaw is now running with .clawignore enforcement")
        console.print(f"  [dim]Dashboard:[/dim] [cyan]http://localhost:{settings.docker.gateway_port}[/cyan]")
        console.print(f"  [dim]Logs:[/dim] [cyan]cd {root} && docker compose logs -f[/cyan]")
    else:
        error("Could not start Docker automatically")
        console.print(f"  [dim]Run manually:[/dim] [cyan]cd {root} && docker compose up -d[/cyan]")


def run_full_setup(
    ctx: click.Context,
    layout: OpenClawLayout,
    settings: ClawignoreSettings,
    prompter: Prompter,
    *,
    skip_review: bool = False,
    token: str | None = None,
) -> None:
    with console.status(f"Reading {escape_markup(layout.home)}..."):
        tree = TreeBuilder(layout.home, max_depth=settings.browser.max_depth).build()

    info("Opening file browser to select what to hide from OpenClaw...")
    result = select_hidden_paths(tree, str(layout.home), prompter, settings.review, skip_review=skip_review)
    if result.cancelled:
        _cancel(ctx)
    if not result.all_paths:
        _cancel(ctx, "No folders found. Cancelled.")

    try:
        plan = compile_mount_plan(
            result.all_paths, result.denied_paths, layout, gateway_token=token, docker=settings.docker
        )
    except ConfigReadError as e:
        _fail(ctx, format_error_message(e))
        return

    success(f"[green]{len(plan.paths_to_mount)} folders[/green] will be accessible to OpenClaw")
    success(f"[red]{len(plan.ignore_list)} items[/red] will be HIDDEN")
    if plan.config_fallback_reason:
        warn(f"Using a minimal OpenClaw config ({escape_markup(plan.config_fallback_reason)})")

    try:
        artifacts = write_mount_plan(plan, layout, settings.docker)
    except ArtifactWriteError as e:
        _fail(ctx, escape_markup(format_error_message(e)))
        return

    clear_old_sessions(layout, prompter)
    print_full_summary(plan, artifacts.all())
    start_in_docker(layout, prompter, settings)
    console.print("[green]Your secrets are now protected![/green]")


# ===== QUICK AND ADVISORY MODES =====


def _write_workspace_ignore(ctx: click.Context, workspace: Path, patterns: list[str]) -> Path:
    path = workspace / IGNORE_FILE_NAME
    try:
        write_ignore_file(path, patterns)
    except ArtifactWriteError as e:
        _fail(ctx, escape_markup(format_error_message(e)))
    return path


def _collect_patterns(ctx: click.Context, workspace: Path, prompter: Prompter, settings: ClawignoreSettings) -> list[str]:
    with console.status("Scanning for sensitive files..."):
        files = scan_for_sensitive_files(workspace, max_bytes=settings.scan.content_scan_bytes)
    info(f"Found {len(files)} potentially sensitive files")

    try:
        return run_wizard(files, workspace, prompter)
    except WizardCancelled:
        _cancel(ctx)
        return []


def run_quick_setup(
    ctx: click.Context, layout: OpenClawLayout, compose_file: Path, settings: ClawignoreSettings, prompter: Prompter
) -> None:
    workspace = layout.workspace
    patterns = _collect_patterns(ctx, workspace, prompter, settings)
    if not patterns:
        warn("No files selected to ignore.")
        if not prompter.confirm("Create an empty .clawignore file?", default=False):
            _cancel(ctx)

    ignore_path = _write_workspace_ignore(ctx, workspace, patterns)
    success(f"Created [green]{IGNORE_FILE_NAME}[/green] with {len(patterns)} entries")

    try:
        annotated = annotate_compose(compose_file, workspace, patterns)
    except ArtifactWriteError as e:
        warn(escape_markup(format_error_message(e)))
        annotated = False
    if annotated:
        success("Docker configuration updated")
    else:
        info("Docker configuration unchanged (manual update may be needed)")

    restart_cmd = f"cd {compose_file.parent} && docker compose restart"
    should_restart = prompter.confirm("Restart OpenClaw now to apply changes?", default=True)
    if should_restart is None:
        _cancel(ctx)

    restarted = False
    if should_restart:
        with console.status("Restarting OpenClaw..."):
            restarted = restart_gateway(compose_file)
        if restarted:
            success("OpenClaw restarted successfully")
        else:
            info("Could not restart automatically. Run manually from your OpenClaw directory:")
            console.print(f"  [cyan]{escape_markup(restart_cmd)}[/cyan]")

    if not should_restart:
        restart_line = "[yellow]![/yellow] Restart required to apply changes"
    elif restarted:
        restart_line = "[green]✓[/green] OpenClaw restarted"
    else:
        restart_line = f"[yellow]![/yellow] Manual restart needed: {escape_markup(restart_cmd)}"

    mounts_line = (
        "[green]✓[/green] Docker mounts updated" if annotated else "[yellow]![/yellow] Docker mounts need manual update"
    )
    note(
        "\n".join(
            [
                f"[green]✓[/green] .clawignore created at {escape_markup(ignore_path)}",
                f"[green]✓[/green] {len(patterns)} files/patterns blocked",
                mounts_line,
                restart_line,
            ]
        ),
        "Summary",
    )
    console.print("[green]Setup complete! Your secrets are now protected.[/green]")


def run_advisory_setup(ctx: click.Context, workspace: Path, settings: ClawignoreSettings, prompter: Prompter) -> None:
    """Write ``.clawignore`` without Docker; nothing enforces it."""
    warn("[yellow]Creating .clawignore without Docker enforcement[/yellow]")
    console.print("  [dim]This file will be advisory only. OpenClaw may still[/dim]")
    console.print("  [dim]be able to access these files through shell commands.[/dim]")
    console.print()

    patterns = _collect_patterns(ctx, workspace, prompter, settings)
    if not patterns:
        _cancel(ctx, "No files selected")

    ignore_path = _write_workspace_ignore(ctx, workspace, patterns)
    note(
        "\n".join(
            [
                f"[yellow]![/yellow] .clawignore created at {escape_markup(ignore_path)}",
                f"[yellow]![/yellow] {len(patterns)} files/patterns listed",
                "[yellow]![/yellow] Enforcement is [bold]NOT ACTIVE[/bold] without Docker",
                "",
                "To enable enforcement, set up Docker:",
                "[cyan]  clawignore docker-help[/cyan]",
            ]
        ),
        "Warning: Advisory Mode Only",
        border_style="yellow",
    )
    console.print("[yellow]Setup complete (advisory mode)[/yellow]")


def handle_missing_docker(ctx: click.Context, status: RuntimeStatus, settings: ClawignoreSettings, prompter: Prompter) -> None:
    problem = "not_installed" if not status.installed else "not_running"
    warn("Docker not detected on this system." if problem == "not_installed" else "Docker is installed but not running.")
    console.print()
    console.print("  [dim].clawignore requires Docker to enforce file blocking[/dim]")
    console.print("  [dim]securely. Without Docker, blocked files can still be[/dim]")
    console.print("  [dim]accessed through shell commands.[/dim]")
    console.print()

    choice = prompter.choose(
        "What would you like to do?",
        [
            Option("create_anyway", "Create .clawignore anyway", "basic protection only"),
            Option("help_docker", "Help me set up Docker", "recommended"),
            Option("exit", "Exit"),
        ],
        default="help_docker",
    )
    if choice is None or choice == "exit":
        _cancel(ctx)
    if choice == "help_docker":
        show_docker_help(problem, prompter)
        ctx.exit(0)
    run_advisory_setup(ctx, Path.cwd(), settings, prompter)


# ===== COMMAND =====


@click.command("setup")
@click.option("--mode", type=click.Choice(["full", "quick"]), default=None, help="Skip the mode question")
@click.option("--max-depth", type=click.IntRange(1, 10), default=None, help="Levels of the home directory to browse")
@click.option("--skip-review", is_flag=True, help="Skip the sensitive-file review phase")
@click.option("--token", default=None, help="Gateway token to use instead of a random one")
@click.option("--yes", "-y", is_flag=True, help="Answer yes/no questions with their default")
@click.pass_context
def setup_cmd(ctx, mode: str | None, max_depth: int | None, skip_review: bool, token: str | None, yes: bool):
    """Choose what OpenClaw can see and generate the Docker setup."""
    settings: ClawignoreSettings = ctx.obj["settings"]
    if max_depth is not None:
        settings = settings.model_copy(update={"browser": settings.browser.model_copy(update={"max_depth": max_depth})})
    prompter = AutoPrompter() if yes else Prompter()

    console.print("[bold cyan]🦞 Clawignore Setup[/bold cyan]")
    with console.status("Checking your OpenClaw setup..."):
        status = check_docker()
        workspace = discover_workspace()

    if not status.installed or not status.running:
        handle_missing_docker(ctx, status, settings, prompter)
        return

    if not status.service_running:
        warn("OpenClaw is not currently running in Docker.")
        if not prompter.confirm("Continue with setup anyway?", default=True):
            _cancel(ctx)

    if workspace is None:
        error("Could not find OpenClaw workspace directory.")
        info("Expected location: ~/openclaw/workspace or ~/.openclaw/workspace")
        ctx.exit(1)

    success(f"Found workspace: [dim]{escape_markup(workspace)}[/dim]")
    layout = OpenClawLayout.for_workspace(workspace)
    logger.info(f"Setup started for {layout.root}")

    if mode is None:
        mode = prompter.choose(
            "What would you like to do?",
            [
                Option("full", "Browse my home folder and choose what to mount", "recommended - full control"),
                Option("quick", "Quick setup - just block sensitive files in workspace", "faster"),
            ],
            default="full",
        )
        if mode is None:
            _cancel(ctx)

    if mode == "quick":
        compose_file = find_compose_file()
        if compose_file is not None:
            run_quick_setup(ctx, layout, compose_file, settings, prompter)
            return
        warn("No docker-compose.yml found. Quick setup requires an existing Docker configuration.")
        info("Switching to full setup mode...")

    run_full_setup(ctx, layout, settings, prompter, skip_review=skip_review, token=token)
