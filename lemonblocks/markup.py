"""Lemonbar markup helpers.

All directives take the form ``%{...}``. A literal percent sign in display
text must be written ``%%``.
"""

from typing import Optional

# Default urgent background, overridden from configuration at startup
URGENT_COLOR = "#ffff0000"

ALIGN_LEFT = "%{l}"
ALIGN_CENTER = "%{c}"
ALIGN_RIGHT = "%{r}"

BUTTON_LEFT = 1
BUTTON_MIDDLE = 2
BUTTON_RIGHT = 3
BUTTON_SCROLL_UP = 4
BUTTON_SCROLL_DOWN = 5


def escape_text(text: str) -> str:
    """Escape display text so it cannot open a directive."""
    return text.replace("%", "%%")


def escape_command(command: str) -> str:
    """Escape a click command so its colons do not end the directive."""
    return command.replace(":", "\\:")


def foreground(color: str, text: str) -> str:
    return f"%{{F{color}}}{text}%{{F-}}"


def background(color: str, text: str) -> str:
    return f"%{{B{color}}}{text}%{{B-}}"


def underline(text: str) -> str:
    return f"%{{+u}}{text}%{{-u}}"


def reverse(text: str) -> str:
    """Swap foreground and background for text."""
    return f"%{{R}}{text}%{{R}}"


def urgent(text: str, color: Optional[str] = None) -> str:
    """Render text in the urgent (failure / critical) style."""
    return background(color or URGENT_COLOR, text)


def click(command: str, text: str, button: Optional[int] = None) -> str:
    """Wrap text in a clickable region that runs command in a shell.

    Args:
        command: Shell command to execute on click
        text: Markup shown inside the region
        button: Mouse button number (1-5); None means left button

    Returns:
        Markup string for the clickable region
    """
    button_field = "" if button is None else str(button)
    return f"%{{A{button_field}:{escape_command(command)}:}}{text}%{{A}}"
