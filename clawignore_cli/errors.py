"""Exception types raised by the selection browser and mount plan compiler.

Tree building and classification never raise: unreadable directories become
empty subtrees and unreadable files are treated as not sensitive. User
cancellation is not an error either; it is reported on ``BrowseResult``.
"""

from pathlib import Path


class ClawignoreError(Exception):
    """Base class for clawignore failures."""


class TerminalUnavailableError(ClawignoreError):
    """Raised when the interactive browser cannot take over the terminal.

    Callers are expected to fall back to the simple selection mode.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Interactive terminal unavailable: {reason}")


class ConfigReadError(ClawignoreError):
    """Raised when an existing OpenClaw config file cannot be parsed."""

    def __init__(self, path: Path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Could not parse {path}: {detail}")


class ArtifactWriteError(ClawignoreError):
    """Raised when a generated artifact cannot be written to disk."""

    def __init__(self, path: Path, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write {path}: {cause}")
