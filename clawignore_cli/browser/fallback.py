"""Line-based selection used when the full-screen browser cannot run.

Lists the top-level entries plus every sensitive entry as a numbered table
and lets the user toggle entries by number until an empty answer confirms.
Toggles follow the same rules as the full-screen browser: hiding a directory
hides what is under it, and un-hiding an entry un-hides its hidden parents.
"""

from __future__ import annotations

import logging

from rich.table import Table

from ..selection import PathIndex
from ..selection import seed_selection
from ..selection import toggle
from ..tree import FileNode
from ..tree import iter_nodes
from ..tree import top_level_paths
from ..ui.prompts import Prompter
from .state import BrowseResult

logger = logging.getLogger(__name__)


def _candidates(tree: list[FileNode]) -> list[FileNode]:
    seen = set()
    result = []
    for node in list(tree) + [n for n in iter_nodes(tree) if n.is_sensitive]:
        if node.absolute_path not in seen:
            seen.add(node.absolute_path)
            result.append(node)
    return result


def _parse_numbers(answer: str, limit: int) -> list[int]:
    numbers = []
    for token in answer.replace(",", " ").split():
        if token.isdigit() and 1 <= int(token) <= limit:
            numbers.append(int(token) - 1)
    return numbers


def select_paths_simple(tree: list[FileNode], seed: list[str], prompter: Prompter) -> BrowseResult:
    """Ask for hidden paths with plain prompts.

    Args:
        tree: Browse tree
        seed: Paths hidden at the start (usually the sensitive entries)
        prompter: Prompt layer used for questions and output

    Returns:
        BrowseResult; ``cancelled`` is set when the user aborts a prompt
    """
    candidates = _candidates(tree)
    index = PathIndex(n.absolute_path for n in iter_nodes(tree))
    state = seed_selection((path for path in seed if path in index), index)

    while True:
        table = Table(show_header=True, header_style="bold", box=None)
        table.add_column("#", justify="right")
        table.add_column("Path")
        table.add_column("Status")
        for idx, node in enumerate(candidates, 1):
            if node.absolute_path in state:
                status = "[red]HIDDEN[/red]"
            elif node.is_sensitive:
                status = "[yellow]sensitive[/yellow]"
            else:
                status = "[green]visible[/green]"
            name = node.relative_path + ("/" if node.is_directory else "")
            table.add_row(str(idx), name, status)
        prompter.console.print(table)

        answer = prompter.text("Numbers to toggle (press enter to confirm)", default="")
        if answer is None:
            return BrowseResult.aborted()
        if not answer.strip():
            break
        numbers = _parse_numbers(answer, len(candidates))
        if not numbers:
            prompter.console.print(f"[yellow]Enter numbers between 1 and {len(candidates)}[/yellow]")
            continue
        for position in numbers:
            state = toggle(state, candidates[position].absolute_path, index)

    denied = state.denied_paths()
    logger.info(f"Simple selection finished with {len(denied)} hidden entries")
    return BrowseResult(denied_paths=denied, all_paths=top_level_paths(tree))
