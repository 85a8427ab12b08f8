"""Rebuild the Docker artifacts from an existing ``.clawignore``."""

from __future__ import annotations

import logging

import click

from ..console import error
from ..console import info
from ..console import success
from ..console import warn
from ..errors import ArtifactWriteError
from ..ignore_file import read_ignore_file
from ..mount_plan import compile_mount_plan
from ..mount_plan import read_env_token
from ..mount_plan import write_mount_plan
from ..paths import OpenClawLayout
from ..paths import discover_workspace
from ..settings import ClawignoreSettings
from ..tree import top_level_entries
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message

logger = logging.getLogger(__name__)


@click.command("regenerate")
@click.option("--token", default=None, help="Gateway token (default: reuse the one in .env)")
@click.pass_context
def regenerate_cmd(ctx, token: str | None):
    """Regenerate docker-compose.yml and .env from the current .clawignore."""
    settings: ClawignoreSettings = ctx.obj["settings"]
    workspace = discover_workspace()
    if workspace is None:
        error("Could not find OpenClaw workspace directory.")
        ctx.exit(1)

    layout = OpenClawLayout.for_workspace(workspace)
    denied = sorted(read_ignore_file(layout.ignore_file))
    if not denied:
        warn(f"No patterns in {escape_markup(layout.ignore_file)}; every home folder will be mounted")

    token = token or read_env_token(layout.env_file)
    if token is None:
        info("No existing gateway token found, generating a new one")

    all_paths = top_level_entries(layout.home)
    plan = compile_mount_plan(all_paths, denied, layout, gateway_token=token, docker=settings.docker)
    if plan.config_fallback_reason:
        warn(f"Using a minimal OpenClaw config ({escape_markup(plan.config_fallback_reason)})")

    try:
        write_mount_plan(plan, layout, settings.docker)
    except ArtifactWriteError as e:
        error(escape_markup(format_error_message(e)))
        ctx.exit(1)

    logger.info(f"Regenerated mount plan with {len(plan.paths_to_mount)} mounts")
    success(f"Regenerated Docker configuration in {escape_markup(layout.root)}")
    info(f"{len(plan.paths_to_mount)} folders mounted, {len(plan.ignore_list)} hidden")
    info(f"Apply with: [cyan]cd {escape_markup(layout.root)} && docker compose up -d[/cyan]")
