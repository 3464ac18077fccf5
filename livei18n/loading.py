"""Placeholder text shown while a translation is pending."""

from __future__ import annotations

from typing import Literal

LoadingPattern = Literal["dots", "blocks", "none"]

_PATTERN_CHARACTERS = {"dots": "•", "blocks": "▮"}


def generate_loading_text(original_text: str, pattern: LoadingPattern = "none") -> str:
    """Replace every non-space character with the pattern glyph, keeping layout.

    `"none"` returns the text unchanged, e.g. `generate_loading_text("Hi you", "dots")`
    gives `"•• •••"`.
    """

    if pattern == "none":
        return original_text
    glyph = _PATTERN_CHARACTERS.get(pattern)
    if glyph is None:
        raise ValueError(f"Unsupported loading pattern `{pattern}`.")
    return "".join(character if character == " " else glyph for character in original_text)
