"""Clipboard backend selection.

``external`` shells out to a platform tool; ``terminal`` and ``internal`` only
keep the private register. Initialization never raises: an unusable backend
falls back to ``internal`` and the problem is returned for the caller to
report when convenient.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import sys

from .errors import ClipboardError
from .util import STREAM_ENCODING

METHODS = ("external", "terminal", "internal")


def set_method(name: str) -> str:
    """Normalize the ``clipboard`` option value to a known method."""
    candidate = str(name).strip().lower()
    return candidate if candidate in METHODS else "external"


def _external_commands() -> list[list[str]]:
    if sys.platform == "darwin":
        return [["pbcopy"]]
    if os.name == "nt":
        return [["clip"]]
    return [
        ["wl-copy"],
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ]


class Clipboard:
    """Active clipboard backend for the session."""

    def __init__(self) -> None:
        self.method = "internal"
        self.command: list[str] | None = None
        self.register = ""

    def initialize(self, method: str) -> ClipboardError | None:
        """Activate ``method``; on failure fall back to ``internal`` and return the error."""
        self.method = method
        self.command = None
        if method != "external":
            return None
        for command in _external_commands():
            if shutil.which(command[0]) is not None:
                self.command = command
                return None
        self.method = "internal"
        return ClipboardError("No clipboard tool found (install xclip, xsel or wl-clipboard)")

    def write(self, text: str) -> bool:
        """Copy ``text``; the internal register is always updated."""
        self.register = text
        if self.method != "external" or self.command is None:
            return True
        try:
            proc = subprocess.run(
                self.command,
                input=text.encode(STREAM_ENCODING, errors="surrogateescape"),
                check=False,
            )
        except OSError:
            return False
        return proc.returncode == 0

    def read(self) -> str:
        return self.register


__all__ = ["Clipboard", "METHODS", "set_method"]
