"""Two-phase selection browser.

Phase A reviews every auto-detected sensitive entry; phase B browses the
whole tree. The phases are pure state machines (``state``), drawn by
``render`` and driven by a runner, normally the prompt_toolkit one in
``terminal``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial

from ..tree import FileNode
from ..tree import iter_nodes
from .render import render_browse
from .render import render_review
from .state import Action
from .state import BrowseResult
from .state import BrowseState
from .state import ReviewState
from .state import SensitiveFileItem
from .state import Status
from .state import collect_sensitive_items
from .state import finish_browse
from .state import reduce_browse
from .state import reduce_review
from .terminal import BROWSE_KEYS
from .terminal import REVIEW_KEYS
from .terminal import run_in_terminal

logger = logging.getLogger(__name__)

PhaseRunner = Callable[..., object]


def browse_and_select(
    tree: list[FileNode],
    root: str,
    *,
    preselect_sensitive: bool = True,
    skip_review: bool = False,
    deny_unreviewed_sensitive: bool = True,
    runner: PhaseRunner = run_in_terminal,
) -> BrowseResult:
    """Run the review and browse phases over ``tree``.

    Args:
        tree: Nodes produced by the tree builder
        root: Walk root, shown in the browse header
        preselect_sensitive: Default ``selected`` value of review items
        skip_review: Skip phase A even when sensitive entries exist
        deny_unreviewed_sensitive: When phase A is skipped, start phase B
            with the sensitive entries already hidden
        runner: Runs one phase to completion; receives (state, reducer,
            renderer, key_map) and returns the final state

    Returns:
        BrowseResult, with ``cancelled`` set if the user aborted either phase

    Raises:
        TerminalUnavailableError: If the terminal cannot be used
    """
    items = collect_sensitive_items(tree, preselect=preselect_sensitive)
    seed: list[str] = []

    if items and not skip_review:
        review = runner(ReviewState(items=tuple(items)), reduce_review, render_review, REVIEW_KEYS)
        if review.status is Status.CANCELLED:
            logger.info("Selection cancelled during sensitive review")
            return BrowseResult.aborted()
        seed = review.selected_paths()
    elif items and deny_unreviewed_sensitive:
        seed = [node.absolute_path for node in iter_nodes(tree) if node.is_sensitive]

    browse = runner(
        BrowseState.start(tree, seed),
        reduce_browse,
        partial(render_browse, root=root),
        BROWSE_KEYS,
    )
    result = finish_browse(browse)
    if result.cancelled:
        logger.info("Selection cancelled during browse")
    else:
        logger.info(f"Selection confirmed: {len(result.denied_paths)} denied of {len(result.all_paths)} top-level")
    return result


__all__ = [
    "Action",
    "BrowseResult",
    "BrowseState",
    "ReviewState",
    "SensitiveFileItem",
    "Status",
    "browse_and_select",
    "collect_sensitive_items",
    "finish_browse",
    "reduce_browse",
    "reduce_review",
]
