"""Hidden-path selection state and its propagation rules.

Paths are compared segment by segment (``/a/b`` is not an ancestor of
``/a/bc``, and ``/a/b/`` equals ``/a/b``).

Invariant maintained by ``seed_selection`` and ``toggle``: when a directory
is hidden, every known descendant of it is hidden as well. The denied list
reported to callers is the minimal covering form of the hidden set.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field
from pathlib import PurePath


def path_segments(path: str) -> tuple[str, ...]:
    """Split a path into normalized segments."""
    return PurePath(os.path.normpath(path)).parts


def is_descendant(path: str, ancestor: str) -> bool:
    """True if ``path`` lies strictly below ``ancestor``."""
    child = path_segments(path)
    parent = path_segments(ancestor)
    return len(child) > len(parent) and child[: len(parent)] == parent


def is_covered(path: str, denied: Iterable[str]) -> bool:
    """True if ``path`` equals or lies below any denied path."""
    segments = path_segments(path)
    for entry in denied:
        prefix = path_segments(entry)
        if segments[: len(prefix)] == prefix:
            return True
    return False


def reduce_to_minimal_cover(paths: Iterable[str]) -> list[str]:
    """Drop every path that has an ancestor in the same collection.

    Returns the remaining paths sorted, so that the result is stable and
    ``reduce_to_minimal_cover(reduce_to_minimal_cover(s))`` equals
    ``reduce_to_minimal_cover(s)``.
    """
    by_segments = {path_segments(p): p for p in paths}
    kept = []
    for segments, original in by_segments.items():
        if any(segments[:i] in by_segments for i in range(1, len(segments))):
            continue
        kept.append(original)
    return sorted(kept)


class PathIndex:
    """Known paths of a tree, pre-split for descendant queries."""

    def __init__(self, paths: Iterable[str]) -> None:
        self._segments = {p: path_segments(p) for p in paths}

    def __contains__(self, path: str) -> bool:
        return path in self._segments

    def __len__(self) -> int:
        return len(self._segments)

    def descendants(self, path: str) -> set[str]:
        prefix = path_segments(path)
        size = len(prefix)
        return {p for p, segments in self._segments.items() if len(segments) > size and segments[:size] == prefix}


@dataclass(frozen=True)
class _ToggleRecord:
    path: str
    added: frozenset[str]
    removed: frozenset[str]


@dataclass(frozen=True)
class SelectionState:
    """Set of absolute paths the user chose to hide.

    ``last_toggle`` remembers the most recent toggle so that toggling the
    same path again undoes it exactly. It does not take part in equality.
    """

    hidden: frozenset[str] = frozenset()
    last_toggle: _ToggleRecord | None = field(default=None, compare=False, repr=False)

    def __contains__(self, path: str) -> bool:
        return path in self.hidden

    def __len__(self) -> int:
        return len(self.hidden)

    def denied_paths(self) -> list[str]:
        return reduce_to_minimal_cover(self.hidden)


def seed_selection(paths: Iterable[str], index: PathIndex) -> SelectionState:
    """Start a selection from pre-approved paths, expanding directories."""
    hidden: set[str] = set()
    for path in paths:
        hidden.add(path)
        hidden |= index.descendants(path)
    return SelectionState(hidden=frozenset(hidden))


def toggle(state: SelectionState, path: str, index: PathIndex) -> SelectionState:
    """Flip the hidden status of ``path``.

    Hiding adds the path and every known descendant. Unhiding removes the
    path, every hidden descendant, and every hidden ancestor, so that the
    ancestor no longer covers the path; the ancestor's other descendants stay
    hidden individually. Toggling the same path twice in a row restores the
    state from before the first toggle.
    """
    last = state.last_toggle
    if last is not None and last.path == path:
        return SelectionState(hidden=(state.hidden - last.added) | last.removed)

    if path in state.hidden:
        segments = path_segments(path)
        removed = set()
        for candidate in state.hidden:
            other = path_segments(candidate)
            shorter = min(len(other), len(segments))
            if other[:shorter] == segments[:shorter]:
                # equal, ancestor or descendant
                removed.add(candidate)
        record = _ToggleRecord(path=path, added=frozenset(), removed=frozenset(removed))
        return SelectionState(hidden=state.hidden - removed, last_toggle=record)

    added = ({path} | index.descendants(path)) - state.hidden
    record = _ToggleRecord(path=path, added=frozenset(added), removed=frozenset())
    return SelectionState(hidden=state.hidden | added, last_toggle=record)
