"""
ThunderBBS Color Preferences

Maps logical UI elements to color names and renders them as ANSI codes
for Telnet sessions. Web sessions always get plain text.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .sessions import Session

ANSI_RESET = "\x1b[0m"

COLOR_CODES = {
    "black": "\x1b[30m",
    "red": "\x1b[31m",
    "green": "\x1b[32m",
    "yellow": "\x1b[33m",
    "blue": "\x1b[34m",
    "magenta": "\x1b[35m",
    "cyan": "\x1b[36m",
    "white": "\x1b[37m",
    "bright_black": "\x1b[1;30m",
    "bright_red": "\x1b[1;31m",
    "bright_green": "\x1b[1;32m",
    "bright_yellow": "\x1b[1;33m",
    "bright_blue": "\x1b[1;34m",
    "bright_magenta": "\x1b[1;35m",
    "bright_cyan": "\x1b[1;36m",
    "bright_white": "\x1b[1;37m",
}

# Customizable elements and their compiled-in defaults
DEFAULT_COLORS = {
    "prompt": "green",
    "username": "bright_yellow",
    "timestamp": "cyan",
}

COLOR_ELEMENTS = tuple(DEFAULT_COLORS)
SAFE_COLOR = "white"


def default_colors() -> dict[str, str]:
    """Fresh copy of the default element -> color map."""
    return dict(DEFAULT_COLORS)


def is_valid_color(name: str) -> bool:
    return name in COLOR_CODES


def resolve_color(session: "Session", element: str) -> str:
    """
    Resolve the color name for a UI element.

    Session override first, then the compiled-in default. Unknown names
    resolve to SAFE_COLOR instead of failing.
    """
    name = session.prefs.get(element) or DEFAULT_COLORS.get(element, SAFE_COLOR)
    if name not in COLOR_CODES:
        return SAFE_COLOR
    return name


def color_code(name: str) -> str:
    """ANSI escape for a color name."""
    return COLOR_CODES.get(name, COLOR_CODES[SAFE_COLOR])


def highlight(session: "Session", color: str, text: str) -> str:
    """Wrap text in a fixed color on Telnet; plain text on the web."""
    if not session.is_telnet:
        return text
    return f"{color_code(color)}{text}{ANSI_RESET}"


def paint(session: "Session", element: str, text: str) -> str:
    """Wrap text in the session's color for a UI element."""
    return highlight(session, resolve_color(session, element), text)
