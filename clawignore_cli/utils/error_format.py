"""Safe error message formatting utilities.

Ensures exceptions always have useful display messages, even when their
str() representation is empty (e.g. a bare PermissionError or TimeoutError).
"""

from __future__ import annotations

import subprocess

from rich.markup import escape as _escape_markup

# Friendly messages for exception types that often arrive without details
FRIENDLY_MESSAGES: dict[type, str] = {
    PermissionError: "Permission denied. Check ownership of the OpenClaw directory.",
    IsADirectoryError: "Expected a file but found a directory.",
    TimeoutError: "Operation timed out.",
    subprocess.TimeoutExpired: "External command timed out.",
    KeyboardInterrupt: "Operation interrupted by user.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a useful display message.

    Messages that already name their type are returned unchanged; empty
    ones are replaced by a friendly message for known types.

    Examples:
        >>> format_error_message(PermissionError())
        'PermissionError: Permission denied. Check ownership of the OpenClaw directory.'

        >>> format_error_message(ValueError("bad depth"), include_type=False)
        'bad depth'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if include_type and error_type not in error_str:
            return f"{error_type}: {error_str}"
        return error_str

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}"

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a value for safe interpolation into Rich markup strings.

    Paths and exception messages may contain brackets that Rich would
    otherwise read as markup tags.
    """
    return _escape_markup(str(value))
