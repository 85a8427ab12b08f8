"""Interactive steps shared by the setup flows.

Quick-mode wizard over scanner results, the browser with its line-based
fallback, and the Docker installation help screens.
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Literal

import click

from .browser import BrowseResult
from .browser import browse_and_select
from .browser.fallback import select_paths_simple
from .console import console
from .console import info
from .console import success
from .console import warn
from .errors import TerminalUnavailableError
from .scanner import SensitiveFile
from .scanner import category_icon
from .scanner import group_by_category
from .settings import ReviewSettings
from .tree import FileNode
from .tree import TreeBuilder
from .tree import iter_nodes
from .ui import Option
from .ui import Prompter
from .utils.error_format import escape_markup

logger = logging.getLogger(__name__)

DockerProblem = Literal["not_installed", "not_running"]

DOCKER_DOCS_URL = "https://docs.docker.com/get-docker/"

PREVIEW_PER_CATEGORY = 5


class WizardCancelled(Exception):
    """Raised when the user cancels a wizard question."""


def select_hidden_paths(
    tree: list[FileNode],
    root: str,
    prompter: Prompter,
    review: ReviewSettings | None = None,
    skip_review: bool = False,
) -> BrowseResult:
    """Run the full-screen browser, falling back to numbered prompts without a terminal."""
    review = review or ReviewSettings()
    try:
        return browse_and_select(
            tree,
            root,
            preselect_sensitive=review.preselect_sensitive,
            skip_review=skip_review,
            deny_unreviewed_sensitive=review.deny_unreviewed_sensitive,
        )
    except TerminalUnavailableError as e:
        logger.info(f"Falling back to simple selection: {e.reason}")
        warn("Interactive browser not available, using simple mode")
        seed = []
        if review.preselect_sensitive or review.deny_unreviewed_sensitive:
            seed = [node.absolute_path for node in iter_nodes(tree) if node.is_sensitive]
        return select_paths_simple(tree, seed, prompter)


def show_sensitive_files(files: list[SensitiveFile], absolute: bool = False) -> None:
    """Print detected files grouped by category, a few per category."""
    console.print()
    for category, members in group_by_category(files).items():
        console.print(f"  [bold]{category.capitalize()}:[/bold]")
        for file in members[:PREVIEW_PER_CATEGORY]:
            shown = file.path if absolute else file.relative_path
            console.print(f"    {category_icon(file.category)} {escape_markup(shown)}")
            console.print(f"       [dim]{escape_markup(file.reason)}[/dim]")
        if len(members) > PREVIEW_PER_CATEGORY:
            console.print(f"       [dim]... and {len(members) - PREVIEW_PER_CATEGORY} more[/dim]")
        console.print()


def run_wizard(files: list[SensitiveFile], workspace: Path, prompter: Prompter) -> list[str]:
    """Ask which detected files to block and collect extra patterns.

    Returns:
        Workspace-relative patterns to ignore

    Raises:
        WizardCancelled: If the user cancels a required question
    """
    if not files:
        info("No sensitive files detected automatically.")
        add = prompter.confirm("Would you like to add files to ignore?", default=False)
        if not add:
            return []
        return prompt_add_files(workspace, prompter)

    show_sensitive_files(files)
    choice = prompter.choose(
        "Block all detected sensitive files?",
        [
            Option("all", "Yes, block all detected files", "recommended"),
            Option("choose", "Let me choose which ones"),
            Option("skip", "Skip auto-detected files"),
        ],
        default="all",
    )
    if choice is None:
        raise WizardCancelled()

    patterns: list[str] = []
    if choice == "all":
        patterns.extend(f.relative_path for f in files)
    elif choice == "choose":
        options = [Option(f.relative_path, f"{category_icon(f.category)} {f.relative_path}", f.reason) for f in files]
        initial = {f.relative_path for f in files if f.confidence == "high"}
        chosen = prompter.multiselect("Select files to block:", options, initial=initial)
        if chosen is None:
            raise WizardCancelled()
        patterns.extend(chosen)

    add_more = prompter.confirm("Add additional files or patterns to ignore?", default=False)
    if add_more is None:
        raise WizardCancelled()
    if add_more:
        patterns.extend(prompt_add_files(workspace, prompter))

    return patterns


def prompt_add_files(workspace: Path, prompter: Prompter) -> list[str]:
    """Collect extra patterns by browsing the workspace or typing them."""
    method = prompter.choose(
        "How do you want to add files?",
        [Option("browse", "Browse my folders", "recommended"), Option("type", "Type paths manually")],
        default="browse",
    )
    if method is None:
        return []
    if method == "type":
        return prompt_custom_patterns(prompter)

    tree = TreeBuilder(workspace).build()
    result = select_hidden_paths(tree, str(workspace), prompter, ReviewSettings(deny_unreviewed_sensitive=False))
    if result.cancelled:
        return []
    return [relative_pattern(Path(p), workspace) for p in result.denied_paths]


def relative_pattern(path: Path, workspace: Path) -> str:
    """Workspace-relative ignore pattern; directories end with a slash."""
    try:
        pattern = path.relative_to(workspace).as_posix()
    except ValueError:
        pattern = str(path)
    return pattern + "/" if path.is_dir() else pattern


def prompt_custom_patterns(prompter: Prompter) -> list[str]:
    """Read patterns one per prompt until "done" or cancel."""
    console.print()
    console.print("  [dim]Enter file paths or glob patterns to ignore.[/dim]")
    console.print("  [dim]Examples: company-data/, *.xlsx, internal/**/*.pdf[/dim]")
    console.print('  [dim]Type "done" when finished.[/dim]')
    console.print()

    patterns: list[str] = []
    while True:
        value = prompter.text("Add a pattern")
        if value is None:
            break
        value = value.strip()
        if value.lower() == "done":
            break
        if not value:
            warn('Enter a pattern or "done" to finish')
            continue
        patterns.append(value)
        success(f"Added: [cyan]{escape_markup(value)}[/cyan]")
    return patterns


# ===== DOCKER HELP =====

INSTALL_STEPS = {
    "Darwin": [
        ("Download Docker Desktop for Mac:", "https://docs.docker.com/desktop/install/mac-install/"),
        ("Open the downloaded .dmg and drag Docker to Applications", None),
        ("Launch Docker from Applications", None),
        ("Wait for Docker to start (whale icon in menu bar)", None),
    ],
    "Windows": [
        ("Download Docker Desktop for Windows:", "https://docs.docker.com/desktop/install/windows-install/"),
        ("Run the installer and follow the prompts", None),
        ("Restart your computer if prompted", None),
        ("Launch Docker Desktop", None),
    ],
    "Linux": [
        ("Install Docker Engine:", "curl -fsSL https://get.docker.com | sh"),
        ("Add your user to the docker group:", "sudo usermod -aG docker $USER"),
        ("Log out and back in (or run: newgrp docker)", None),
        ("Verify Docker is working:", "docker run hello-world"),
    ],
}

START_STEPS = {
    "Darwin": [
        ("Open Docker Desktop from your Applications folder, or run:", "open -a Docker"),
        ("Wait for the whale icon in your menu bar to stop animating", None),
    ],
    "Windows": [
        ("Open Docker Desktop from Start Menu", None),
        ("Wait for Docker to start (icon in system tray)", None),
    ],
    "Linux": [
        ("Start the Docker service:", "sudo systemctl start docker"),
        ("Verify Docker is running:", "docker ps"),
    ],
}


def docker_help_steps(problem: DockerProblem, system: str | None = None) -> list[tuple[str, str | None]]:
    """Numbered help steps for the platform, ending with "run setup again"."""
    system = system or platform.system()
    table = INSTALL_STEPS if problem == "not_installed" else START_STEPS
    steps = list(table.get(system, table["Linux"]))
    steps.append(("Run this setup again:", "clawignore setup"))
    return steps


def show_docker_help(problem: DockerProblem, prompter: Prompter, system: str | None = None) -> None:
    title = "Installing Docker" if problem == "not_installed" else "Starting Docker"
    console.print()
    console.print(f"[bold]{title}[/bold]")
    console.print()
    for number, (text, command) in enumerate(docker_help_steps(problem, system), 1):
        console.print(f"  {number}. {text}")
        if command:
            console.print(f"     [cyan]{escape_markup(command)}[/cyan]")
        console.print()

    if prompter.confirm("Open Docker installation guide in your browser?", default=True):
        click.launch(DOCKER_DOCS_URL)
        success("Opened Docker docs in your browser")

    console.print("Come back after Docker is installed and running!")
