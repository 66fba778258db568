"""Greedy word wrap of plain text inside a bounded box.

The layout engine only decides where lines break. It measures candidate
lines with the font's real advance widths (`font.getlength`), so any object
exposing `size` and `getlength(text)` can stand in for a Pillow font.
"""

import math
import re

LINE_HEIGHT_FACTOR = 1.2
"""Plain-text line height as a multiple of the font size."""

LINE_BREAKS = re.compile(r"\r\n|\r|\n")


def line_height(font_size):
    return font_size * LINE_HEIGHT_FACTOR


def max_lines(font_size, max_height):
    """Returns how many lines of the given font size fit in `max_height` pixels."""
    if font_size <= 0 or max_height <= 0:
        return 0
    return math.floor(max_height / line_height(font_size))


def wrap_text(text, font, max_width, max_height):
    """Wraps text into lines that fit inside a box.

    Line breaks inside the text count as spaces, so every wrapped line is a
    single line of glyphs. Words are separated by single spaces and packed
    greedily: each word is appended to the current line unless the resulting
    line would be wider than `max_width`, in which case the current line is
    committed and the word starts the next one. A word wider than the box on
    its own still gets its own line. Once the number of lines allowed by the
    box height is reached, the remaining words are dropped without any
    overflow marker.

    Args:
        text (str | None): The text to wrap.
        font (ImageFont.FreeTypeFont): The font used to measure line widths.
            Its `size` also determines the line height.
        max_width (float): The box width in pixels.
        max_height (float): The box height in pixels.

    Returns:
        list[str]: The lines, in drawing order. Empty if the text is empty or
        whitespace only, or if not even one line fits in the box.
    """
    if text is None:
        return []
    text = LINE_BREAKS.sub(" ", str(text))
    if not text.strip():
        return []

    limit = max_lines(font.size, max_height)
    if limit == 0:
        return []

    words = text.split(" ")
    lines = []
    current = words[0]
    for word in words[1:]:
        candidate = f"{current} {word}"
        if font.getlength(candidate) > max_width and current != "":
            lines.append(current)
            if len(lines) >= limit:
                return lines
            current = word
        else:
            current = candidate

    if current and len(lines) < limit:
        lines.append(current)
    return lines
