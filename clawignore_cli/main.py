"""Command-line entry point for clawignore."""

from __future__ import annotations

import logging

import click

from . import __version__
from .commands.docker_help import docker_help_cmd
from .commands.ignore import show_ignore_cmd
from .commands.regenerate import regenerate_cmd
from .commands.scan import scan_cmd
from .commands.setup import setup_cmd
from .logging_setup import init_json_logging
from .settings import load_settings

logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.version_option(__version__, prog_name="clawignore")
@click.pass_context
def cli(ctx):
    """Clawignore - choose what the OpenClaw agent can see."""
    init_json_logging()
    ctx.ensure_object(dict)
    if "settings" not in ctx.obj:
        ctx.obj["settings"] = load_settings()
    logger.info(f"clawignore {__version__} invoked: {ctx.invoked_subcommand or 'setup'}")

    # If no command specified, run the interactive setup
    if ctx.invoked_subcommand is None:
        ctx.invoke(setup_cmd, mode=None, max_depth=None, skip_review=False, token=None, yes=False)


cli.add_command(setup_cmd)
cli.add_command(scan_cmd)
cli.add_command(show_ignore_cmd)
cli.add_command(regenerate_cmd)
cli.add_command(docker_help_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
