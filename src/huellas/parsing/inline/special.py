"""Escapes, code spans, entities, autolinks and raw inline HTML.

Each handler starts at the special character under the cursor, appends
what it recognized to the chain, and advances the cursor. Anything that
does not match is left for the caller to emit as literal text.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from huellas.lexer.classifiers.html import HTML_TAG_RE
from huellas.nodes import CodeSpan, HtmlInline, LineBreak, Link, LinkType, Text
from huellas.parsing.inline.delimiters import Piece
from huellas.utils.text import decode_entity, is_escapable

if TYPE_CHECKING:
    from huellas.location import SourceLocation
    from huellas.parsing.inline.delimiters import PieceChain

_EMAIL_AUTOLINK_RE = re.compile(
    r"<([a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*)>"
)
_URI_AUTOLINK_RE = re.compile(r"<([A-Za-z][A-Za-z0-9.+-]{1,31}:[^<>\x00-\x20]*)>")


class SpecialInlineMixin:
    """Mixin for the single-character inline constructs.

    Required Host Attributes:
        - _text: str
        - _pos: int
        - _chain: PieceChain
        - _location: SourceLocation

    Required Host Methods:
        - _append_text(text) -> Piece

    """

    _text: str
    _pos: int
    _chain: PieceChain
    _location: SourceLocation

    def _append_text(self, text: str) -> Piece:
        raise NotImplementedError

    def _append_node(self, node) -> Piece:
        return self._chain.append(Piece(None, node))

    def _handle_backslash(self) -> None:
        """CommonMark 6.1: backslash escapes and backslash hard breaks."""
        text = self._text
        self._pos += 1
        next_char = text[self._pos] if self._pos < len(text) else ""
        if next_char == "\n":
            self._pos += 1
            self._append_node(LineBreak(self._location))
        elif next_char and is_escapable(next_char):
            self._pos += 1
            # Escaped characters are always plain text, never delimiters
            self._append_node(Text(self._location, next_char))
        else:
            self._append_text("\\")

    def _handle_backticks(self) -> None:
        """CommonMark 6.1: code spans.

        A run of N backticks opens a span closed by the next run of exactly
        N backticks. Line endings become spaces; one leading and one
        trailing space are stripped when both are present and the content
        is not all spaces. Without a closer the run is literal.
        """
        text = self._text
        start = self._pos
        end = start
        while end < len(text) and text[end] == "`":
            end += 1
        ticks = end - start

        search = end
        while True:
            close = text.find("`", search)
            if close == -1:
                break
            close_end = close
            while close_end < len(text) and text[close_end] == "`":
                close_end += 1
            if close_end - close == ticks:
                content = text[end:close].replace("\n", " ")
                if (
                    len(content) >= 2
                    and content[0] == " "
                    and content[-1] == " "
                    and content.strip(" ")
                ):
                    content = content[1:-1]
                self._append_node(CodeSpan(self._location, content))
                self._pos = close_end
                return
            search = close_end

        self._pos = end
        self._append_text(text[start:end])

    def _handle_entity(self) -> None:
        """CommonMark 6.2: entity and numeric character references."""
        decoded = decode_entity(self._text, self._pos)
        if decoded is None:
            self._pos += 1
            self._append_text("&")
            return
        value, self._pos = decoded
        self._append_node(Text(self._location, value))

    def _handle_angle(self) -> None:
        """Autolinks (CommonMark 6.4) and raw HTML (CommonMark 6.6)."""
        text = self._text
        pos = self._pos

        match = _URI_AUTOLINK_RE.match(text, pos)
        if match is not None:
            url = match.group(1)
            self._append_node(
                Link(
                    self._location,
                    url,
                    None,
                    (Text(self._location, url),),
                    LinkType.AUTOLINK,
                )
            )
            self._pos = match.end()
            return

        match = _EMAIL_AUTOLINK_RE.match(text, pos)
        if match is not None:
            address = match.group(1)
            self._append_node(
                Link(
                    self._location,
                    "mailto:" + address,
                    None,
                    (Text(self._location, address),),
                    LinkType.EMAIL,
                )
            )
            self._pos = match.end()
            return

        match = HTML_TAG_RE.match(text, pos)
        if match is not None:
            self._append_node(HtmlInline(self._location, match.group(0)))
            self._pos = match.end()
            return

        self._pos += 1
        self._append_text("<")
