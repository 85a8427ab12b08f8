"""Platform-specific Docker install/start help."""

from __future__ import annotations

import click

from ..console import success
from ..docker import check_docker
from ..ui import Prompter
from ..wizard import show_docker_help


@click.command("docker-help")
@click.option(
    "--problem",
    type=click.Choice(["not_installed", "not_running"]),
    default=None,
    help="Show these steps instead of probing Docker",
)
def docker_help_cmd(problem: str | None):
    """Show how to install or start Docker on this platform."""
    if problem is None:
        status = check_docker()
        if status.installed and status.running:
            success("Docker is installed and running.")
            return
        problem = "not_installed" if not status.installed else "not_running"
    show_docker_help(problem, Prompter())
