"""Terminal styling and status messages."""

from __future__ import annotations

import os
import sys

_RESET = "\x1b[0m"
_BOLD = "\x1b[1m"
_RED = "\x1b[31m"
_GREEN = "\x1b[32m"
_BLUE = "\x1b[34m"

SEPARATOR = "===================="


def no_emoji() -> bool:
    """Return True when the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" in os.environ


def _colors_enabled() -> bool:
    force = os.environ.get("CLICOLOR_FORCE")
    if force is not None and force != "0":
        return True
    if os.environ.get("CLICOLOR") == "0":
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _style(text: object, code: str) -> str:
    text = str(text)
    if not _colors_enabled():
        return text
    return f"{code}{text}{_RESET}"


def bold(text: object) -> str:
    """Render text in bold."""
    return _style(text, _BOLD)


def red(text: object) -> str:
    """Render text in red."""
    return _style(text, _RED)


def green(text: object) -> str:
    """Render text in green."""
    return _style(text, _GREEN)


def blue(text: object) -> str:
    """Render text in blue."""
    return _style(text, _BLUE)


def warn(message: str) -> None:
    """Print a warning line in red."""
    mark = "!" if no_emoji() else "⚠️ "
    print(f"{red(mark)} {red(message)}")


def success(message: str) -> None:
    """Print a success line in green."""
    mark = "✓" if no_emoji() else "✅"
    print(f"{green(mark)} {green(message)}")


def separator() -> str:
    """Return the bold horizontal rule used around outputs and hints."""
    return bold(SEPARATOR)