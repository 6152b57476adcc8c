"""Clipboard write via pyperclip."""

import logging

import pyperclip

from gitswitch.errors import ClipboardError

logger = logging.getLogger(__name__)


def copy_to_clipboard(text: str) -> None:
    """Copy text to the system clipboard. Raises ClipboardError when unavailable."""
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.warning("Clipboard unavailable: %s", e)
        raise ClipboardError(
            "Could not copy to clipboard. Please copy the key manually."
        ) from e
