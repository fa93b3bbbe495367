"""Footnote definition classifier."""

from __future__ import annotations

from typing import NamedTuple


class FootnoteMarker(NamedTuple):
    """A ``[^label]:`` marker at the start of the content."""

    label: str
    length: int


def classify_footnote_definition(content: str) -> FootnoteMarker | None:
    """Try to classify content as a footnote definition marker.

    Format: [^label]: content

    The label may not be empty and may not contain whitespace or
    brackets.

    Args:
        content: Line content with leading indentation stripped
    """
    if not content.startswith("[^"):
        return None
    end = content.find("]", 2)
    if end <= 2 or not content.startswith("]:", end):
        return None
    label = content[2:end]
    if any(c.isspace() or c == "[" for c in label):
        return None
    return FootnoteMarker(label, end + 2)
