"""System clipboard access through platform copy commands."""

from __future__ import annotations

import logging
import shutil
import subprocess

from .tui.exceptions import ClipboardError

logger = logging.getLogger(__name__)

CLIPBOARD_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("pbcopy",),
    ("wl-copy",),
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
    ("clip",),
)


class SubprocessClipboard:
    """ClipboardWriter piping text into the first available copy command."""

    def __init__(self, commands: tuple[tuple[str, ...], ...] = CLIPBOARD_COMMANDS) -> None:
        self.commands = commands

    def find_command(self) -> tuple[str, ...] | None:
        """Return the first clipboard command found on PATH, if any."""
        for command in self.commands:
            if shutil.which(command[0]):
                return command
        return None

    def write_text(self, text: str) -> None:
        """Copy text to the clipboard.

        Raises:
            ClipboardError: If no command is available or the command fails
        """
        command = self.find_command()
        if command is None:
            raise ClipboardError("no clipboard command found")

        try:
            result = subprocess.run(
                list(command),
                input=text,
                text=True,
                capture_output=True,
                check=False,
                timeout=5,
            )
        except (OSError, subprocess.SubprocessError) as err:
            raise ClipboardError(f"{command[0]} failed: {err}") from err

        if result.returncode != 0:
            detail = (result.stderr or "").strip() or f"exit code {result.returncode}"
            raise ClipboardError(f"{command[0]} failed: {detail}")
        logger.debug(f"Copied {len(text)} character(s) with {command[0]}")
