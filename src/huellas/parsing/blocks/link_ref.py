"""Link reference definitions peeled off the start of paragraphs.

CommonMark 4.7: a link reference definition is a label, a colon, a
destination and an optional title, each part possibly on its own line.
Definitions can only start a paragraph; whatever follows the last one
stays paragraph text.
"""

from __future__ import annotations

from huellas.parsing.inline.links import (
    scan_link_destination,
    scan_link_label,
    scan_link_title,
    skip_spaces_and_newline,
)
from huellas.references import LinkDefinition, ReferenceTable, normalize_label


def _skip_to_line_end(text: str, pos: int) -> int | None:
    """Skip trailing spaces; return the start of the next line, or None."""
    length = len(text)
    while pos < length and text[pos] in " \t":
        pos += 1
    if pos >= length:
        return pos
    if text[pos] == "\n":
        return pos + 1
    return None


def _parse_definition(
    text: str, start: int, references: ReferenceTable, *, footnotes_enabled: bool
) -> int:
    """Parse one definition at ``start``; return characters consumed or 0."""
    label_length = scan_link_label(text, start)
    if label_length == 0:
        return 0
    raw_label = text[start + 1 : start + label_length - 1]
    if footnotes_enabled and raw_label.startswith("^"):
        # GFM: a caret label names a footnote, never a link
        return 0
    pos = start + label_length
    if pos >= len(text) or text[pos] != ":":
        return 0

    pos = skip_spaces_and_newline(text, pos + 1)
    destination = scan_link_destination(text, pos)
    if destination is None:
        return 0
    url, pos = destination

    before_title = pos
    pos = skip_spaces_and_newline(text, pos)
    title: str | None = None
    if pos != before_title:
        scanned = scan_link_title(text, pos)
        if scanned is not None:
            title, pos = scanned
    if title is None:
        pos = before_title

    line_end = _skip_to_line_end(text, pos)
    if line_end is None:
        if title is None:
            return 0
        # The title is followed by more text: the definition ends before it
        title = None
        line_end = _skip_to_line_end(text, before_title)
        if line_end is None:
            return 0

    if not normalize_label(raw_label):
        return 0
    references.define_link(raw_label, LinkDefinition(raw_label, url, title))
    return line_end - start


def parse_reference_definitions(
    text: str, references: ReferenceTable, *, footnotes_enabled: bool = False
) -> int:
    """Define every link reference at the start of ``text``.

    Returns:
        Offset of the first character that is not part of a definition.
    """
    pos = 0
    while pos < len(text) and text[pos] == "[":
        consumed = _parse_definition(text, pos, references, footnotes_enabled=footnotes_enabled)
        if consumed == 0:
            break
        pos += consumed
    return pos
