"""List item marker classifier."""

from __future__ import annotations

from typing import NamedTuple

from huellas.parsing.charsets import DIGITS, ORDERED_LIST_DELIMITERS, UNORDERED_LIST_MARKERS

# CommonMark 5.2: ordered list start numbers have at most 9 digits
MAX_ORDERED_DIGITS = 9


class ListMarker(NamedTuple):
    """A list item marker at the start of the content.

    Attributes:
        ordered: True for ``1.``/``1)`` markers
        char: Bullet character, or the ordered delimiter (``.`` or ``)``)
        start: Start number for ordered markers, None for bullets
        length: Marker length in characters
    """

    ordered: bool
    char: str
    start: int | None
    length: int


def classify_list_marker(content: str) -> ListMarker | None:
    """Try to classify content as starting with a list marker.

    The marker must be followed by a space, a tab or the end of the line.

    Args:
        content: Line content with leading indentation stripped
    """
    if not content:
        return None
    first = content[0]
    if first in UNORDERED_LIST_MARKERS:
        marker = ListMarker(False, first, None, 1)
    elif first in DIGITS:
        pos = 0
        while pos < len(content) and content[pos] in DIGITS:
            pos += 1
        if pos > MAX_ORDERED_DIGITS or pos >= len(content):
            return None
        if content[pos] not in ORDERED_LIST_DELIMITERS:
            return None
        marker = ListMarker(True, content[pos], int(content[:pos]), pos + 1)
    else:
        return None

    if marker.length < len(content) and content[marker.length] not in " \t":
        return None
    return marker


def lists_match(ordered: bool, char: str, other: ListMarker) -> bool:
    """Check whether an item with ``other`` continues a list.

    A change of bullet character or ordered delimiter starts a new list.
    """
    return ordered == other.ordered and char == other.char
