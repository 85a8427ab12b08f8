"""Terminal prompt helpers for the CLI."""

from .prompts import Option
from .prompts import Prompter

__all__ = ["Option", "Prompter"]
