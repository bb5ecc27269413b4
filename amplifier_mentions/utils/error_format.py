"""Error message formatting for provider warnings and CLI output.

Some exceptions (TimeoutError, CancelledError) have an empty str(), which
would turn into warnings like "Files & Folders search failed: ". These
helpers always produce a non-empty message.
"""

from __future__ import annotations

import asyncio

from rich.markup import escape as _escape_markup

# Fallback text for exception types known to have empty str()
FRIENDLY_MESSAGES: dict[type, str] = {
    TimeoutError: "Backend did not respond in time.",
    asyncio.CancelledError: "Search was cancelled.",
    ConnectionResetError: "Connection to the backend was reset.",
    BrokenPipeError: "Connection to the backend was closed unexpectedly.",
    FileNotFoundError: "Path does not exist.",
    PermissionError: "Permission denied.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a non-empty display message.

    Examples:
        >>> format_error_message(ValueError("invalid row"))
        'ValueError: invalid row'

        >>> format_error_message(ValueError("invalid row"), include_type=False)
        'invalid row'

        >>> format_error_message(TimeoutError())
        'TimeoutError: Backend did not respond in time.'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if include_type and error_type not in error_str:
            return f"{error_type}: {error_str}"
        return error_str

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}" if include_type else friendly_msg

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a value for interpolation into Rich markup.

    Mention tokens look like ``@[file:local:/x]``; unescaped, Rich would read
    the brackets as a style tag.
    """
    return _escape_markup(str(value))
