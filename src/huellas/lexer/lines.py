"""Line scanning for the block parser.

Splits normalized source into Line records and walks each line with a
LineCursor that tracks the byte offset and the visual column separately,
so tabs can be consumed partially (CommonMark 2.2: tabs behave as if
replaced by spaces with a tab stop of 4).

Thread Safety:
Line is immutable. A LineCursor belongs to one parse of one line; the
underlying text is never modified.

"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum, auto
from typing import NamedTuple

from huellas.lexer.classifiers.heading import classify_atx_heading, classify_setext_underline
from huellas.parsing.charsets import SPACE_OR_TAB

# Columns of indentation that turn a line into indented code
CODE_INDENT = 4

TAB_STOP = 4


class Line(NamedTuple):
    """One source line with the trailing newline removed.

    Attributes:
        text: Line content
        lineno: 1-indexed line number
        offset: Absolute offset of the first character in the normalized source
    """

    text: str
    lineno: int
    offset: int


def normalize_source(source: str) -> str:
    """Normalize line endings to ``\\n`` and replace NUL with U+FFFD.

    CommonMark 2.3: U+0000 must be replaced with the replacement character.
    """
    if "\r" in source:
        source = source.replace("\r\n", "\n").replace("\r", "\n")
    if "\x00" in source:
        source = source.replace("\x00", "\ufffd")
    return source


def split_lines(source: str) -> Iterator[Line]:
    """Yield lines of already-normalized source.

    A trailing newline does not produce an extra empty line.
    """
    offset = 0
    lineno = 0
    length = len(source)
    while offset < length:
        lineno += 1
        end = source.find("\n", offset)
        if end == -1:
            yield Line(source[offset:], lineno, offset)
            return
        yield Line(source[offset:end], lineno, offset)
        offset = end + 1


class LineKind(Enum):
    """Coarse classification of the remainder of a line."""

    BLANK = auto()
    INDENTED_CODE = auto()
    ATX_HEADING = auto()
    SETEXT_UNDERLINE = auto()
    TEXT = auto()


class LineCursor:
    """Position within one line, tracking character offset and visual column.

    The block parser consumes container prefixes through the cursor
    (block quote markers, list item indentation, footnote indentation)
    and hands whatever remains to the leaf or to a new block.

    Attributes:
        text: The full line text (never modified)
        offset: Index of the next unconsumed character
        column: Visual column of ``offset`` (tabs expand to multiples of 4)
        partially_consumed_tab: True when ``advance_columns`` stopped in
            the middle of a tab; the rest of that tab counts as spaces.

    """

    __slots__ = (
        "text",
        "offset",
        "column",
        "partially_consumed_tab",
        "next_nonspace",
        "next_nonspace_column",
    )

    def __init__(self, text: str) -> None:
        self.text = text
        self.offset = 0
        self.column = 0
        self.partially_consumed_tab = False
        self.next_nonspace = 0
        self.next_nonspace_column = 0

    def find_next_nonspace(self) -> None:
        """Locate the next non-space character without consuming anything."""
        text = self.text
        i = self.offset
        cols = self.column
        length = len(text)
        while i < length:
            char = text[i]
            if char == " ":
                i += 1
                cols += 1
            elif char == "\t":
                i += 1
                cols += TAB_STOP - (cols % TAB_STOP)
            else:
                break
        self.next_nonspace = i
        self.next_nonspace_column = cols

    @property
    def indent(self) -> int:
        """Columns of whitespace between the cursor and the next non-space."""
        return self.next_nonspace_column - self.column

    @property
    def indented(self) -> bool:
        """True when the remainder is indented enough to be code."""
        return self.indent >= CODE_INDENT

    def is_blank(self) -> bool:
        """True when nothing but spaces and tabs remain."""
        return self.next_nonspace >= len(self.text)

    def peek(self, offset: int | None = None) -> str:
        """Return the character at ``offset`` (default: cursor), or ''."""
        pos = self.offset if offset is None else offset
        return self.text[pos] if pos < len(self.text) else ""

    def peek_nonspace(self) -> str:
        """Return the next non-space character, or ''."""
        return self.peek(self.next_nonspace)

    def rest(self) -> str:
        """Return the unconsumed text from the cursor."""
        return self.text[self.offset :]

    def rest_from_nonspace(self) -> str:
        """Return the text from the next non-space character."""
        return self.text[self.next_nonspace :]

    def skip_spaces(self) -> None:
        """Consume whitespace up to the next non-space character."""
        self.offset = self.next_nonspace
        self.column = self.next_nonspace_column
        self.partially_consumed_tab = False

    def advance(self, count: int) -> None:
        """Consume ``count`` characters; a tab counts as one character."""
        self._advance(count, columns=False)

    def advance_columns(self, count: int) -> None:
        """Consume ``count`` columns, splitting a tab when necessary."""
        self._advance(count, columns=True)

    def _advance(self, count: int, *, columns: bool) -> None:
        text = self.text
        length = len(text)
        while count > 0 and self.offset < length:
            if text[self.offset] == "\t":
                chars_to_tab = TAB_STOP - (self.column % TAB_STOP)
                if columns:
                    self.partially_consumed_tab = chars_to_tab > count
                    step = min(chars_to_tab, count)
                    self.column += step
                    if not self.partially_consumed_tab:
                        self.offset += 1
                    count -= step
                else:
                    self.partially_consumed_tab = False
                    self.column += chars_to_tab
                    self.offset += 1
                    count -= 1
            else:
                self.partially_consumed_tab = False
                self.offset += 1
                self.column += 1
                count -= 1

    def try_consume_blockquote_marker(self) -> bool:
        """Consume ``>`` and one optional following space if present.

        CommonMark 5.1: the marker is ``>`` preceded by up to three spaces
        of indentation and optionally followed by one space (a tab counts
        as the columns needed to reach that space).
        """
        self.find_next_nonspace()
        if self.indented or self.peek_nonspace() != ">":
            return False
        self.skip_spaces()
        self.advance(1)
        if self.peek() in SPACE_OR_TAB:
            self.advance_columns(1)
        return True

    def content_for_leaf(self) -> str:
        """Return the remainder for a leaf block, expanding a split tab."""
        if self.partially_consumed_tab:
            # The rest of the tab becomes spaces
            spaces = TAB_STOP - (self.column % TAB_STOP)
            return " " * spaces + self.text[self.offset + 1 :]
        return self.text[self.offset :]


def classify(cursor: LineCursor) -> LineKind:
    """Classify the remainder of the line at the cursor.

    Only the distinctions every container needs are made here; the block
    parser asks the construct classifiers for anything more specific.
    """
    cursor.find_next_nonspace()
    if cursor.is_blank():
        return LineKind.BLANK
    if cursor.indented:
        return LineKind.INDENTED_CODE
    rest = cursor.rest_from_nonspace()
    if classify_atx_heading(rest) is not None:
        return LineKind.ATX_HEADING
    if classify_setext_underline(rest) is not None:
        return LineKind.SETEXT_UNDERLINE
    return LineKind.TEXT
