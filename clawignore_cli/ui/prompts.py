"""Question/answer layer on top of Rich prompts.

Every method returns ``None`` when the user cancels (Ctrl-C or end of
input), so callers can tell a cancelled question apart from a "no".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rich.console import Console
from rich.prompt import Confirm
from rich.prompt import Prompt

from ..console import console as default_console

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Option:
    """One choice of a menu question."""

    value: str
    label: str
    hint: str = ""


class Prompter:
    """Asks yes/no, menu and free-text questions on a Rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or default_console

    def confirm(self, question: str, default: bool = True) -> bool | None:
        try:
            return Confirm.ask(question, default=default, console=self.console)
        except (KeyboardInterrupt, EOFError):
            logger.debug(f"Prompt cancelled: {question}")
            return None

    def choose(self, question: str, options: list[Option], default: str | None = None) -> str | None:
        """Show a numbered menu and return the chosen option's value."""
        self.console.print(f"[bold]{question}[/bold]")
        numbers = {}
        default_number = "1"
        for idx, option in enumerate(options, 1):
            numbers[str(idx)] = option.value
            if option.value == default:
                default_number = str(idx)
            hint = f" [dim]({option.hint})[/dim]" if option.hint else ""
            self.console.print(f"  [cyan]{idx}.[/cyan] {option.label}{hint}")

        try:
            answer = Prompt.ask("Choose", choices=list(numbers), default=default_number, console=self.console)
        except (KeyboardInterrupt, EOFError):
            logger.debug(f"Prompt cancelled: {question}")
            return None
        return numbers[answer]

    def multiselect(self, question: str, options: list[Option], initial: set[str] | None = None) -> list[str] | None:
        """Let the user toggle options by number; an empty answer accepts.

        Returns:
            Selected values in option order, or None when cancelled
        """
        selected = set(initial or ())
        while True:
            self.console.print(f"[bold]{question}[/bold]")
            for idx, option in enumerate(options, 1):
                mark = "[green]●[/green]" if option.value in selected else "○"
                hint = f" [dim]({option.hint})[/dim]" if option.hint else ""
                self.console.print(f"  [cyan]{idx:>2}.[/cyan] {mark} {option.label}{hint}")

            answer = self.text("Numbers to toggle (enter to accept)", default="")
            if answer is None:
                return None
            if not answer.strip():
                return [option.value for option in options if option.value in selected]

            tokens = answer.replace(",", " ").split()
            valid = [int(t) for t in tokens if t.isdigit() and 1 <= int(t) <= len(options)]
            if len(valid) != len(tokens):
                self.console.print(f"[yellow]Enter numbers between 1 and {len(options)}[/yellow]")
            for number in valid:
                selected ^= {options[number - 1].value}

    def text(self, question: str, default: str | None = None) -> str | None:
        try:
            if default is None:
                return Prompt.ask(question, console=self.console)
            return Prompt.ask(question, default=default, console=self.console)
        except (KeyboardInterrupt, EOFError):
            logger.debug(f"Prompt cancelled: {question}")
            return None
