"""Rendering of browser states as Rich text.

Rendering is a pure function of the state: it never mutates it and does not
write to the terminal. The terminal runner converts the returned ``Text`` to
ANSI for prompt_toolkit.
"""

from __future__ import annotations

from rich.text import Text

from .state import BrowseState
from .state import ReviewState

REVIEW_WINDOW = 12
BROWSE_WINDOW = 15

TITLE = "🦞 Clawignore Setup"


def _window(cursor: int, size: int, height: int) -> tuple[int, int]:
    """Return the [start, end) slice that keeps the cursor roughly centered."""
    start = max(0, min(cursor - height // 2, size - height))
    return start, min(start + height, size)


def _header(output: Text, subtitle: str) -> None:
    output.append(f"{TITLE}{subtitle}\n", style="cyan")
    output.append("─" * 60 + "\n", style="dim")
    output.append("\n")


def render_review(state: ReviewState, height: int = REVIEW_WINDOW) -> Text:
    """Render the sensitive-file review phase."""
    output = Text()
    _header(output, " - Sensitive Files Review")

    output.append("Review auto-detected sensitive files:\n", style="bold")
    output.append("  These files will be HIDDEN from OpenClaw by default.\n", style="dim")
    output.append("  Deselect any files you want the AI to access.\n", style="dim")
    output.append("\n")
    output.append("  ↑/↓ navigate • space toggle • a select all • n deselect all • enter continue\n", style="dim")
    output.append("\n")
    output.append("  ")
    output.append(f"{state.selected_count}/{len(state.items)}", style="bold yellow")
    output.append(" files selected to hide\n\n", style="bold")

    start, end = _window(state.cursor, len(state.items), height)
    if start > 0:
        output.append("     ↑ more above\n", style="dim")

    for i in range(start, end):
        item = state.items[i]
        checkbox = "◉" if item.selected else "◯"
        icon = "📁" if item.is_directory else "📄"
        status = " [WILL HIDE]" if item.selected else " [VISIBLE]"
        line = f"  {checkbox} {icon} {item.relative_path}{status}"

        if i == state.cursor:
            output.append(line, style="reverse")
        else:
            output.append(line, style="red" if item.selected else "green")
        output.append("\n")
        output.append(f"       {item.reason}\n", style="dim")

    if end < len(state.items):
        output.append("     ↓ more below\n", style="dim")

    output.append("\n")
    output.append("  Press enter to continue to file browser →\n", style="dim")
    return output


def render_browse(state: BrowseState, root: str, height: int = BROWSE_WINDOW) -> Text:
    """Render the full browse phase."""
    output = Text()
    _header(output, "")

    output.append("Select files/folders to HIDE from OpenClaw:\n", style="bold")
    output.append("  (Selected items will NOT be accessible to the AI)\n", style="dim")
    if state.preselected_count:
        output.append(
            f"  ⚠️  {state.preselected_count} sensitive items auto-detected and pre-selected\n",
            style="yellow",
        )
    output.append("\n")
    output.append("  ↑/↓ navigate • space toggle • → expand • ← collapse • enter confirm\n", style="dim")
    output.append("\n")
    output.append(f"  📁 {root}\n\n", style="dim")

    if not state.visible:
        output.append("  (nothing to show)\n", style="dim italic")

    start, end = _window(state.cursor, len(state.visible), height)
    if start > 0:
        output.append("     ↑ more above\n", style="dim")

    for i in range(start, end):
        node = state.visible[i]
        hidden = state.is_hidden(node)
        indent = "  " * (node.depth + 1)
        checkbox = "◉" if hidden else "◯"
        if node.is_directory:
            icon = "📂" if node.absolute_path in state.expanded else "📁"
            name = node.name + "/"
        else:
            icon = "📄"
            name = node.name

        if hidden and node.is_sensitive:
            status, status_style = " [SENSITIVE]", "yellow"
        elif hidden:
            status, status_style = " [HIDDEN]", "red"
        elif node.is_sensitive:
            status, status_style = " (sensitive)", "dim"
        else:
            status, status_style = "", ""

        if i == state.cursor:
            output.append(f"{indent}{checkbox} {icon} {name}{status}", style="reverse")
        else:
            output.append(f"{indent}{checkbox} {icon} {name}", style="red" if hidden else "")
            output.append(status, style=status_style)
        output.append("\n")

    if end < len(state.visible):
        output.append("     ↓ more below\n", style="dim")

    output.append("\n")
    output.append(f"  {state.hidden_count} hidden", style="red")
    output.append(" from OpenClaw\n\n", style="dim")
    output.append("  Press enter to confirm\n", style="dim")
    return output
