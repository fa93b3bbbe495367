"""Fenced code block classifiers."""

from __future__ import annotations

from typing import NamedTuple

from huellas.utils.text import unescape_string


class FenceOpen(NamedTuple):
    """Opening code fence.

    Attributes:
        char: Fence character, ``\\``` or ``~``
        length: Number of fence characters (at least 3)
        info: Info string with escapes and entities resolved
    """

    char: str
    length: int
    info: str


def classify_fence_open(content: str) -> FenceOpen | None:
    """Try to classify content as an opening code fence.

    CommonMark 4.5: at least three backticks or tildes. The info string
    of a backtick fence may not contain backticks.

    Args:
        content: Line content with leading indentation stripped
    """
    if not content or content[0] not in "`~":
        return None
    char = content[0]
    length = 0
    while length < len(content) and content[length] == char:
        length += 1
    if length < 3:
        return None
    info = content[length:]
    if char == "`" and "`" in info:
        return None
    return FenceOpen(char, length, unescape_string(info.strip()))


def is_fence_close(content: str, char: str, min_length: int) -> bool:
    """Check if content closes a fence opened with ``char`` * ``min_length``.

    The closing fence may be longer than the opening one and may be
    followed only by spaces or tabs.
    """
    length = 0
    while length < len(content) and content[length] == char:
        length += 1
    if length < min_length:
        return False
    return not content[length:].strip(" \t")
