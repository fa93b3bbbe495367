"""ATX heading and setext underline classifiers."""

from __future__ import annotations

from typing import NamedTuple

from huellas.parsing.charsets import SPACE_OR_TAB


class AtxHeading(NamedTuple):
    """Result of classifying an ATX heading line."""

    level: int
    content: str


def classify_atx_heading(content: str) -> AtxHeading | None:
    """Try to classify content as an ATX heading.

    ATX headings start with 1-6 # characters followed by space/tab or the
    end of the line. A closing sequence of # is removed when it is preceded
    by a space or tab (or is all the line holds).

    Args:
        content: Line content with leading indentation stripped

    Returns:
        AtxHeading if valid heading, None otherwise.
    """
    level = 0
    length = len(content)
    while level < length and content[level] == "#":
        level += 1
    if level == 0 or level > 6:
        return None
    if level < length and content[level] not in SPACE_OR_TAB:
        return None

    heading_content = content[level:].strip(" \t")
    if heading_content.endswith("#"):
        trailing_start = len(heading_content)
        while trailing_start > 0 and heading_content[trailing_start - 1] == "#":
            trailing_start -= 1
        if trailing_start == 0:
            heading_content = ""
        elif heading_content[trailing_start - 1] in SPACE_OR_TAB:
            heading_content = heading_content[:trailing_start].rstrip(" \t")

    return AtxHeading(level, heading_content)


def classify_setext_underline(content: str) -> int | None:
    """Return the heading level for a setext underline, or None.

    CommonMark 4.3: a run of ``=`` (level 1) or ``-`` (level 2) optionally
    followed by spaces or tabs.
    """
    stripped = content.rstrip(" \t")
    if not stripped:
        return None
    char = stripped[0]
    if char not in "=-":
        return None
    if stripped.count(char) != len(stripped):
        return None
    return 1 if char == "=" else 2
