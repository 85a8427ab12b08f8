"""Depth-bounded filesystem tree for the selection browser.

The tree is built once per session and never mutated afterwards. UI state
such as which directories are expanded is kept by the browser, keyed by path.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from .sensitivity import ENV_FILE_PREFIX
from .sensitivity import classify

DEFAULT_MAX_DEPTH = 3

APP_CONFIG_DIR_NAME = ".openclaw"

# Top-level clutter; only skipped directly under the walk root
SYSTEM_HIDDEN = frozenset(
    {
        "Library",
        "Applications",
        "System",
        "Volumes",
        "private",
        "usr",
        "bin",
        "sbin",
        "etc",
        "var",
        "tmp",
        "cores",
        "opt",
        "node_modules",
        ".git",
        ".Trash",
        ".cache",
        ".npm",
        ".nvm",
    }
)

# Dot entries containing one of these stay visible so they can be hidden explicitly
VISIBLE_DOT_FRAGMENTS = ("ssh", "aws", "config", "kube")


@dataclass(frozen=True)
class FileNode:
    """One entry discovered during a walk.

    Attributes:
        name: Base name
        absolute_path: Full path on the host
        relative_path: Path relative to the walk root
        is_directory: True for directories (symlinks are never directories here)
        depth: 0 for direct children of the walk root
        is_sensitive: Classifier verdict, fixed at creation
        reason: Classifier reason, empty when not sensitive
        children: Child nodes for directories, None for files
        truncated: True when the depth bound stopped recursion into this directory
    """

    name: str
    absolute_path: str
    relative_path: str
    is_directory: bool
    depth: int
    is_sensitive: bool = False
    reason: str = ""
    children: tuple[FileNode, ...] | None = None
    truncated: bool = False

    @property
    def expandable(self) -> bool:
        return self.is_directory and not self.truncated


def _is_visible(name: str, depth: int, app_dir_name: str) -> bool:
    if depth == 0 and name in SYSTEM_HIDDEN:
        return False
    if not name.startswith("."):
        return True
    if name.startswith(ENV_FILE_PREFIX) or name.startswith(app_dir_name):
        return True
    return any(fragment in name for fragment in VISIBLE_DOT_FRAGMENTS)


def _read_entries(directory: str) -> list[os.DirEntry]:
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError:
        return []
    # Directories first, then by name
    return sorted(entries, key=lambda e: (not _entry_is_dir(e), e.name))


def _entry_is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def build_tree(
    directory: str | Path,
    root_path: str | Path,
    depth: int = 0,
    max_depth: int = DEFAULT_MAX_DEPTH,
    app_dir_name: str = APP_CONFIG_DIR_NAME,
) -> list[FileNode]:
    """Walk ``directory`` and return its visible entries as FileNodes.

    Args:
        directory: Directory to list
        root_path: Walk root, used for relative paths
        depth: Depth of the entries being listed (0 for the root's children)
        max_depth: Entries at this depth and below are not listed
        app_dir_name: Dotted config directory that always stays visible

    Returns:
        Nodes sorted directories first, then by name. Unreadable directories
        produce an empty list.
    """
    if depth >= max_depth:
        return []

    directory = str(directory)
    root = str(root_path)
    nodes: list[FileNode] = []

    for entry in _read_entries(directory):
        if not _is_visible(entry.name, depth, app_dir_name):
            continue

        full_path = os.path.join(directory, entry.name)
        relative = os.path.relpath(full_path, root) if full_path != root else entry.name
        verdict = classify(entry.name, full_path)
        is_dir = _entry_is_dir(entry)

        children = None
        truncated = False
        if is_dir:
            truncated = depth + 1 >= max_depth
            children = tuple(build_tree(full_path, root, depth + 1, max_depth, app_dir_name))

        nodes.append(
            FileNode(
                name=entry.name,
                absolute_path=full_path,
                relative_path=relative,
                is_directory=is_dir,
                depth=depth,
                is_sensitive=verdict.sensitive,
                reason=verdict.reason,
                children=children,
                truncated=truncated,
            )
        )

    return nodes


class TreeBuilder:
    """Builds the browse tree for an explicitly configured root.

    Example usage:
        builder = TreeBuilder(Path.home(), max_depth=3)
        tree = builder.build()
    """

    def __init__(
        self,
        root: str | Path,
        max_depth: int = DEFAULT_MAX_DEPTH,
        app_dir_name: str = APP_CONFIG_DIR_NAME,
    ) -> None:
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self.root = Path(root)
        self.max_depth = max_depth
        self.app_dir_name = app_dir_name

    def build(self) -> list[FileNode]:
        return build_tree(self.root, self.root, 0, self.max_depth, self.app_dir_name)

    def __repr__(self) -> str:
        return f"TreeBuilder(root={self.root!s}, max_depth={self.max_depth})"


def iter_nodes(nodes: tuple[FileNode, ...] | list[FileNode]) -> Iterator[FileNode]:
    """Yield every node depth-first, parents before children."""
    for node in nodes:
        yield node
        if node.children:
            yield from iter_nodes(node.children)


def flatten_visible(
    nodes: tuple[FileNode, ...] | list[FileNode], expanded: frozenset[str] | set[str]
) -> list[FileNode]:
    """Return the nodes whose ancestors are all expanded, in display order."""
    result: list[FileNode] = []

    def traverse(level):
        for node in level:
            result.append(node)
            if node.is_directory and node.absolute_path in expanded and node.children:
                traverse(node.children)

    traverse(nodes)
    return result


def top_level_paths(nodes: tuple[FileNode, ...] | list[FileNode]) -> list[str]:
    return [node.absolute_path for node in nodes if node.depth == 0]


def top_level_entries(root: str | Path, app_dir_name: str = APP_CONFIG_DIR_NAME) -> list[str]:
    """Absolute paths of the visible entries directly under ``root``.

    Same order and filtering as the top level of ``build_tree``, without
    classifying or descending into anything.
    """
    directory = str(root)
    return [
        os.path.join(directory, entry.name)
        for entry in _read_entries(directory)
        if _is_visible(entry.name, 0, app_dir_name)
    ]
