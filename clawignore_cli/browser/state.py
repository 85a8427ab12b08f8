"""Pure state machines for the two browser phases.

Each phase is a frozen state object plus a ``reduce_*(state, action)``
function that returns the next state. Nothing here touches the terminal, so
the transition tables can be exercised directly in tests.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from enum import Enum

from ..selection import PathIndex
from ..selection import SelectionState
from ..selection import seed_selection
from ..selection import toggle
from ..tree import FileNode
from ..tree import flatten_visible
from ..tree import iter_nodes
from ..tree import top_level_paths


class Action(str, Enum):
    """Input events understood by the browser."""

    UP = "up"
    DOWN = "down"
    TOGGLE = "toggle"
    SELECT_ALL = "select_all"
    DESELECT_ALL = "deselect_all"
    EXPAND = "expand"
    COLLAPSE = "collapse"
    CONFIRM = "confirm"
    CANCEL = "cancel"


class Status(str, Enum):
    ACTIVE = "active"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class BrowseResult:
    """Outcome of a browsing session.

    ``cancelled`` distinguishes an aborted session from one where the user
    confirmed without hiding anything; both have empty ``denied_paths``.
    """

    denied_paths: list[str] = field(default_factory=list)
    all_paths: list[str] = field(default_factory=list)
    cancelled: bool = False

    @classmethod
    def aborted(cls) -> BrowseResult:
        return cls(cancelled=True)


def _clamp(value: int, size: int) -> int:
    return max(0, min(value, size - 1)) if size else 0


# ===== PHASE A: SENSITIVE REVIEW =====


@dataclass(frozen=True)
class SensitiveFileItem:
    """Review-phase copy of a sensitive tree node."""

    name: str
    absolute_path: str
    relative_path: str
    reason: str
    is_directory: bool = False
    selected: bool = True


def collect_sensitive_items(tree: Iterable[FileNode], preselect: bool = True) -> list[SensitiveFileItem]:
    """Flatten every sensitive node of the tree into review items."""
    return [
        SensitiveFileItem(
            name=node.name,
            absolute_path=node.absolute_path,
            relative_path=node.relative_path,
            reason=node.reason or "Potentially sensitive file",
            is_directory=node.is_directory,
            selected=preselect,
        )
        for node in iter_nodes(list(tree))
        if node.is_sensitive
    ]


@dataclass(frozen=True)
class ReviewState:
    items: tuple[SensitiveFileItem, ...]
    cursor: int = 0
    status: Status = Status.ACTIVE

    @property
    def selected_count(self) -> int:
        return sum(1 for item in self.items if item.selected)

    def selected_paths(self) -> list[str]:
        return [item.absolute_path for item in self.items if item.selected]


def reduce_review(state: ReviewState, action: Action) -> ReviewState:
    """Apply one input event to the review phase."""
    if state.status is not Status.ACTIVE:
        return state

    size = len(state.items)

    if action is Action.UP:
        return replace(state, cursor=_clamp(state.cursor - 1, size))
    if action is Action.DOWN:
        return replace(state, cursor=_clamp(state.cursor + 1, size))
    if action is Action.TOGGLE and size:
        items = list(state.items)
        current = items[state.cursor]
        items[state.cursor] = replace(current, selected=not current.selected)
        return replace(state, items=tuple(items))
    if action is Action.SELECT_ALL:
        return replace(state, items=tuple(replace(i, selected=True) for i in state.items))
    if action is Action.DESELECT_ALL:
        return replace(state, items=tuple(replace(i, selected=False) for i in state.items))
    if action is Action.CONFIRM:
        return replace(state, status=Status.CONFIRMED)
    if action is Action.CANCEL:
        return replace(state, status=Status.CANCELLED)
    return state


# ===== PHASE B: FULL BROWSE =====


@dataclass(frozen=True)
class BrowseState:
    """Full-browse session state.

    ``visible`` is the expansion-aware flattening of ``tree`` and is kept in
    step with ``expanded`` by the reducer.
    ``hidden_count`` is the size of the denied list and is refreshed on
    every toggle.
    """

    tree: tuple[FileNode, ...]
    index: PathIndex = field(compare=False, repr=False)
    selection: SelectionState
    visible: tuple[FileNode, ...]
    expanded: frozenset[str] = frozenset()
    cursor: int = 0
    status: Status = Status.ACTIVE
    preselected_count: int = 0
    hidden_count: int = 0

    @classmethod
    def start(cls, tree: Iterable[FileNode], seed: Iterable[str] = ()) -> BrowseState:
        nodes = tuple(tree)
        index = PathIndex(node.absolute_path for node in iter_nodes(nodes))
        seed = list(seed)
        selection = seed_selection(seed, index)
        return cls(
            tree=nodes,
            index=index,
            selection=selection,
            visible=tuple(flatten_visible(nodes, frozenset())),
            preselected_count=len(seed),
            hidden_count=len(selection.denied_paths()),
        )

    @property
    def current(self) -> FileNode | None:
        return self.visible[self.cursor] if self.visible else None

    def is_hidden(self, node: FileNode) -> bool:
        return node.absolute_path in self.selection


def _with_expanded(state: BrowseState, expanded: frozenset[str]) -> BrowseState:
    visible = tuple(flatten_visible(state.tree, expanded))
    return replace(state, expanded=expanded, visible=visible, cursor=_clamp(state.cursor, len(visible)))


def reduce_browse(state: BrowseState, action: Action) -> BrowseState:
    """Apply one input event to the browse phase."""
    if state.status is not Status.ACTIVE:
        return state

    size = len(state.visible)
    node = state.current

    if action is Action.UP:
        return replace(state, cursor=_clamp(state.cursor - 1, size))
    if action is Action.DOWN:
        return replace(state, cursor=_clamp(state.cursor + 1, size))
    if action is Action.EXPAND:
        if node and node.expandable and node.absolute_path not in state.expanded:
            return _with_expanded(state, state.expanded | {node.absolute_path})
        return state
    if action is Action.COLLAPSE:
        if node and node.is_directory and node.absolute_path in state.expanded:
            return _with_expanded(state, state.expanded - {node.absolute_path})
        return state
    if action is Action.TOGGLE:
        if node is None:
            return state
        selection = toggle(state.selection, node.absolute_path, state.index)
        return replace(state, selection=selection, hidden_count=len(selection.denied_paths()))
    if action is Action.CONFIRM:
        return replace(state, status=Status.CONFIRMED)
    if action is Action.CANCEL:
        return replace(state, status=Status.CANCELLED)
    return state


def finish_browse(state: BrowseState) -> BrowseResult:
    """Turn a finished browse state into the reported result."""
    if state.status is Status.CANCELLED:
        return BrowseResult.aborted()
    return BrowseResult(
        denied_paths=state.selection.denied_paths(),
        all_paths=top_level_paths(state.tree),
    )
