"""Core inline parsing for Huellas.

Scans the raw text of one leaf block (paragraph, heading or table cell)
and produces its inline nodes. Plain text runs are copied in one slice;
special characters dispatch to the handler mixins. After the scan,
remaining emphasis delimiters are matched and the piece chain is frozen
into immutable nodes.

Thread Safety:
An InlineParser holds per-call state; create one per leaf (they are
cheap) or reuse one within a single thread.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from huellas.nodes import Inline, LineBreak, SoftBreak, Text
from huellas.parsing.charsets import INLINE_SPECIAL
from huellas.parsing.inline.delimiters import Bracket, Delimiter, Piece, PieceChain
from huellas.parsing.inline.emphasis import EmphasisMixin
from huellas.parsing.inline.links import LinkParsingMixin
from huellas.parsing.inline.special import SpecialInlineMixin

if TYPE_CHECKING:
    from huellas.config import ParseConfig
    from huellas.location import SourceLocation
    from huellas.references import ReferenceTable


class InlineParser(EmphasisMixin, LinkParsingMixin, SpecialInlineMixin):
    """Parse the inline content of leaf blocks.

    Link references and footnote labels resolve against the document's
    ReferenceTable, which must be complete before the first call.
    Footnote references mark the table as they resolve.

    Example:
        >>> parser = InlineParser(ParseConfig(), ReferenceTable())
        >>> parser.parse("*hi*", SourceLocation(1, 1))
        (Emphasis(..., children=(Text(..., content='hi'),)),)

    """

    def __init__(self, config: ParseConfig, references: ReferenceTable) -> None:
        self._references = references
        self._strikethrough_enabled = config.strikethrough_enabled
        self._footnotes_enabled = config.footnotes_enabled
        self._text = ""
        self._pos = 0
        self._chain = PieceChain()
        self._delimiters: Delimiter | None = None
        self._brackets: Bracket | None = None
        self._location: SourceLocation

    def parse(self, text: str, location: SourceLocation) -> tuple[Inline, ...]:
        """Parse ``text`` into inline nodes.

        Leading and trailing whitespace of the whole text is ignored, so a
        trailing backslash or trailing spaces never become a hard break.
        """
        self._text = text.strip(" \t\n")
        self._pos = 0
        self._chain = PieceChain()
        self._delimiters = None
        self._brackets = None
        self._location = location

        text = self._text
        length = len(text)
        while self._pos < length:
            char = text[self._pos]
            if char not in INLINE_SPECIAL:
                self._parse_plain()
            elif char == "\n":
                self._handle_newline()
            elif char == "\\":
                self._handle_backslash()
            elif char == "`":
                self._handle_backticks()
            elif char == "*" or char == "_" or char == "~":
                self._handle_delimiter_run(char)
            elif char == "[":
                self._handle_open_bracket()
            elif char == "!":
                self._handle_bang()
            elif char == "]":
                self._handle_close_bracket()
            elif char == "<":
                self._handle_angle()
            elif char == "&":
                self._handle_entity()
            else:
                self._pos += 1
                self._append_text(char)

        self._process_emphasis(None)
        return self._freeze(list(self._chain))

    # -------------------------------------------------------------------------
    # Chain helpers
    # -------------------------------------------------------------------------

    def _append_text(self, text: str) -> Piece:
        return self._chain.append(Piece(text))

    def _freeze(self, pieces: list[Piece]) -> tuple[Inline, ...]:
        """Turn pieces into nodes, merging adjacent text."""
        nodes: list[Inline] = []
        pending: list[str] = []
        for piece in pieces:
            if piece.node is None:
                if piece.text:
                    pending.append(piece.text)
            elif isinstance(piece.node, Text):
                pending.append(piece.node.content)
            else:
                if pending:
                    nodes.append(Text(self._location, "".join(pending)))
                    pending = []
                nodes.append(piece.node)
        if pending:
            nodes.append(Text(self._location, "".join(pending)))
        return tuple(nodes)

    # -------------------------------------------------------------------------
    # Plain text and line endings
    # -------------------------------------------------------------------------

    def _parse_plain(self) -> None:
        text = self._text
        start = self._pos
        end = start + 1
        length = len(text)
        while end < length and text[end] not in INLINE_SPECIAL:
            end += 1
        self._pos = end
        self._append_text(text[start:end])

    def _handle_newline(self) -> None:
        """CommonMark 6.7/6.8: hard break after 2+ spaces, else soft break.

        Trailing spaces before the newline and leading spaces after it are
        removed.
        """
        self._pos += 1
        last = self._chain.tail
        hard = False
        if last is not None and last.node is None and last.text and last.text.endswith(" "):
            stripped = last.text.rstrip(" ")
            hard = len(last.text) - len(stripped) >= 2
            last.text = stripped
        self._chain.append(Piece(None, LineBreak(self._location) if hard else SoftBreak(self._location)))

        text = self._text
        while self._pos < len(text) and text[self._pos] in " \t":
            self._pos += 1
