"""
Clipboard sinks for codecollector.
"""

from __future__ import annotations

from typing import Protocol

import pyperclip

from .core import ClipboardUnavailable


class ClipboardSink(Protocol):
    def set_clipboard_text(self, text: str) -> None:
        """Place *text* on the clipboard or raise :class:`ClipboardUnavailable`."""
        ...


class PyperclipSink:
    """Write to the system clipboard through ``pyperclip``."""

    def set_clipboard_text(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardUnavailable(f"Could not access the system clipboard: {e}")
