"""Thematic break classifier."""

from __future__ import annotations

from huellas.parsing.charsets import THEMATIC_BREAK_CHARS


def is_thematic_break(content: str) -> bool:
    """Check if content is a thematic break.

    CommonMark 4.1: three or more matching ``-``, ``*`` or ``_`` characters,
    each optionally separated by spaces or tabs, and nothing else.

    Args:
        content: Line content with leading indentation stripped
    """
    if not content or content[0] not in THEMATIC_BREAK_CHARS:
        return False
    char = content[0]
    count = 0
    for c in content:
        if c == char:
            count += 1
        elif c not in " \t":
            return False
    return count >= 3
