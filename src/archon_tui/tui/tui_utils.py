"""TUI utility functions for formatting, key decoding and display helpers."""

import shutil

CONTROL_KEYS = {
    "\x03": "ctrl+c",
    "\x04": "ctrl+d",
    "\x06": "ctrl+f",
    "\x0c": "ctrl+l",
    "\x15": "ctrl+u",
    "\x18": "ctrl+x",
    "\r": "enter",
    "\n": "enter",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\t": "tab",
    " ": "space",
    "\x1b": "esc",
}

ESCAPE_SEQUENCES = {
    "[A": "up",
    "[B": "down",
    "[C": "right",
    "[D": "left",
    "OA": "up",
    "OB": "down",
    "OC": "right",
    "OD": "left",
    "[H": "home",
    "[F": "end",
    "OH": "home",
    "OF": "end",
    "[1~": "home",
    "[7~": "home",
    "[4~": "end",
    "[8~": "end",
    "[5~": "pgup",
    "[6~": "pgdown",
    "[3~": "delete",
    "[15~": "f5",
}


def decode_key(raw: str) -> str | None:
    """
    Translate raw terminal input into a normalized key name.

    Args:
        raw: One character, or an ESC-prefixed escape sequence

    Returns:
        Key name ("j", "up", "ctrl+d", "enter", ...) or None if unrecognized

    Examples:
        >>> decode_key("j")
        'j'
        >>> decode_key("\\x1b[A")
        'up'
        >>> decode_key("\\x04")
        'ctrl+d'
        >>> decode_key("\\x1b[6~")
        'pgdown'
    """
    if not raw:
        return None
    if raw in CONTROL_KEYS:
        return CONTROL_KEYS[raw]
    if raw.startswith("\x1b"):
        return ESCAPE_SEQUENCES.get(raw[1:])
    if len(raw) == 1 and raw.isprintable():
        return raw
    return None


def is_escape_sequence_complete(sequence: str) -> bool:
    """
    Check whether an escape sequence (without the leading ESC) is finished.

    Examples:
        >>> is_escape_sequence_complete("[")
        False
        >>> is_escape_sequence_complete("[A")
        True
        >>> is_escape_sequence_complete("[15~")
        True
    """
    if not sequence:
        return False
    if sequence[0] not in "[O":
        return True
    if len(sequence) < 2:
        return False
    last = sequence[-1]
    return last.isalpha() or last == "~"


def truncate_text(text: str, max_len: int) -> str:
    """
    Truncate text to max length, adding ellipsis if needed.

    Args:
        text: Text to truncate
        max_len: Maximum length including ellipsis

    Returns:
        Truncated text with "..." suffix if text exceeds max_len

    Examples:
        >>> truncate_text("short", 10)
        'short'
        >>> truncate_text("this is a long text", 10)
        'this is...'
    """
    if len(text) <= max_len:
        return text

    if max_len <= 3:
        return "..."[:max_len]

    return text[: max_len - 3] + "..."


def get_terminal_size() -> tuple[int, int]:
    """
    Get terminal size as (columns, rows) tuple.

    Returns:
        Tuple of (columns, rows), defaults to (80, 24) if unavailable
    """
    try:
        size = shutil.get_terminal_size(fallback=(80, 24))
        return (size.columns, size.lines)
    except (OSError, ValueError):
        return (80, 24)


def get_status_badge(status: str) -> tuple[str, str]:
    """
    Get icon and color for a task status.

    Args:
        status: Task status name ("todo", "doing", "review", "done")

    Returns:
        Tuple of (icon, color) for the given status

    Examples:
        >>> get_status_badge("doing")
        ('▶', 'yellow')
        >>> get_status_badge("done")
        ('✓', 'green')
    """
    badge_map = {
        "todo": ("○", "white"),
        "doing": ("▶", "yellow"),
        "review": ("◆", "magenta"),
        "done": ("✓", "green"),
    }

    return badge_map.get(status, ("?", "dim"))
