"""Link, image and footnote reference parsing.

Handles inline links, the three reference forms, images, and footnote
references, plus the destination/title/label scanners shared with link
reference definitions.

CommonMark 0.31.2 compliance:
- Link destinations can be angle-bracket delimited or raw
- Angle-bracket destinations: no newlines, can have spaces
- Raw destinations: no spaces, no control chars, balanced parens
- Backslash escapes and entities work in destinations and titles
- Links may not contain other links; images may
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from huellas.nodes import FootnoteRef, Image, Link, LinkType
from huellas.parsing.inline.delimiters import Bracket, Piece
from huellas.utils.text import is_escapable, unescape_string

if TYPE_CHECKING:
    from huellas.location import SourceLocation
    from huellas.nodes import Inline
    from huellas.parsing.inline.delimiters import Delimiter, PieceChain
    from huellas.references import ReferenceTable

# CommonMark 6.3: at most 999 characters between the brackets
_LINK_LABEL_RE = re.compile(r"\[(?:[^\\\[\]]|\\.){0,999}\]", re.DOTALL)
_ANGLE_DESTINATION_RE = re.compile(r"<(?:[^<>\n\\\x00]|\\.)*>", re.DOTALL)
_LINK_TITLE_RE = re.compile(
    r"\"(?:\\.|[^\"\\\x00])*\"|'(?:\\.|[^'\\\x00])*'|\((?:\\.|[^()\\\x00])*\)",
    re.DOTALL,
)
_FOOTNOTE_LABEL_RE = re.compile(r"\^([^\s\[\]]+)")
# Unescaped parentheses a raw destination may nest before the scan gives up
MAX_DESTINATION_PARENS = 32


def skip_spaces_and_newline(text: str, pos: int) -> int:
    """Skip spaces/tabs, at most one newline, then spaces/tabs again."""
    length = len(text)
    while pos < length and text[pos] in " \t":
        pos += 1
    if pos < length and text[pos] == "\n":
        pos += 1
        while pos < length and text[pos] in " \t":
            pos += 1
    return pos


def scan_link_label(text: str, pos: int) -> int:
    """Return the length of a link label ``[...]`` at pos, or 0."""
    match = _LINK_LABEL_RE.match(text, pos)
    return 0 if match is None else match.end() - pos


def scan_link_destination(text: str, pos: int) -> tuple[str, int] | None:
    """Parse a link destination starting at pos.

    CommonMark 6.5: Link destination is either:
    1. Angle-bracket delimited: <url> (can contain spaces, no newlines or unescaped </>)
    2. Raw URL: non-empty sequence of non-space chars with balanced parens,
       nested at most MAX_DESTINATION_PARENS deep so a scan stays short

    Returns:
        (url, end_pos) or None if invalid. The url has escapes and entities
        resolved.
    """
    match = _ANGLE_DESTINATION_RE.match(text, pos)
    if match is not None:
        return unescape_string(match.group(0)[1:-1]), match.end()
    if pos < len(text) and text[pos] == "<":
        return None

    start = pos
    depth = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if char == "\\" and pos + 1 < length and is_escapable(text[pos + 1]):
            pos += 2
        elif char == "(":
            depth += 1
            if depth > MAX_DESTINATION_PARENS:
                return None
            pos += 1
        elif char == ")":
            if depth < 1:
                break
            depth -= 1
            pos += 1
        elif ord(char) <= 0x20 or char == "\x7f":
            break
        else:
            pos += 1

    if depth != 0:
        return None
    if pos == start and (pos >= length or text[pos] != ")"):
        return None
    return unescape_string(text[start:pos]), pos


def scan_link_title(text: str, pos: int) -> tuple[str, int] | None:
    """Parse a quoted or parenthesized link title at pos."""
    match = _LINK_TITLE_RE.match(text, pos)
    if match is None:
        return None
    return unescape_string(match.group(0)[1:-1]), match.end()


class LinkParsingMixin:
    """Mixin for brackets, links, images and footnote references.

    Required Host Attributes:
        - _text: str
        - _pos: int
        - _chain: PieceChain
        - _delimiters: Delimiter | None
        - _brackets: Bracket | None
        - _location: SourceLocation
        - _references: ReferenceTable
        - _footnotes_enabled: bool

    Required Host Methods:
        - _append_text(text) -> Piece
        - _freeze(pieces) -> tuple[Inline, ...]
        - _process_emphasis(stack_bottom) -> None
        - _remove_delimiter(delimiter) -> None

    """

    _text: str
    _pos: int
    _chain: PieceChain
    _delimiters: Delimiter | None
    _brackets: Bracket | None
    _location: SourceLocation
    _references: ReferenceTable
    _footnotes_enabled: bool

    def _append_text(self, text: str) -> Piece:
        raise NotImplementedError

    def _freeze(self, pieces: list[Piece]) -> tuple[Inline, ...]:
        raise NotImplementedError

    def _process_emphasis(self, stack_bottom: Delimiter | None) -> None:
        raise NotImplementedError

    def _remove_delimiter(self, delimiter: Delimiter) -> None:
        raise NotImplementedError

    def _push_bracket(self, piece: Piece, index: int, *, image: bool) -> None:
        if self._brackets is not None:
            self._brackets.bracket_after = True
        self._brackets = Bracket(
            piece=piece,
            index=index,
            image=image,
            previous_delimiter=self._delimiters,
            prev=self._brackets,
        )

    def _handle_open_bracket(self) -> None:
        start = self._pos
        self._pos += 1
        piece = self._append_text("[")
        self._push_bracket(piece, start, image=False)

    def _handle_bang(self) -> None:
        start = self._pos
        self._pos += 1
        if self._pos < len(self._text) and self._text[self._pos] == "[":
            self._pos += 1
            piece = self._append_text("![")
            self._push_bracket(piece, start + 1, image=True)
        else:
            self._append_text("!")

    def _handle_close_bracket(self) -> None:
        """Close the innermost bracket as a link, image or footnote, or literally.

        Tries, in order: footnote reference ``[^label]`` (defined labels
        only), inline ``(dest "title")``, full reference ``[label]``,
        collapsed ``[]`` and shortcut forms.
        """
        self._pos += 1
        after_close = self._pos
        opener = self._brackets

        if opener is None:
            self._append_text("]")
            return
        if not opener.active:
            self._append_text("]")
            self._brackets = opener.prev
            return

        if not opener.image and self._try_footnote_reference(opener, after_close):
            return

        is_image = opener.image
        text = self._text
        url: str | None = None
        title: str | None = None
        link_type = LinkType.INLINE
        label = ""
        matched = False

        if self._pos < len(text) and text[self._pos] == "(":
            inline = self._scan_inline_link_tail(self._pos + 1)
            if inline is not None:
                url, title, self._pos = inline
                matched = True

        if not matched:
            before_label = self._pos
            label_length = scan_link_label(text, before_label)
            raw_label: str | None = None
            if label_length > 2:
                raw_label = text[before_label + 1 : before_label + label_length - 1]
                link_type = LinkType.REFERENCE
            elif not opener.bracket_after:
                raw_label = text[opener.index + 1 : after_close - 1]
                link_type = LinkType.COLLAPSED if label_length == 2 else LinkType.SHORTCUT
            if label_length == 0:
                self._pos = after_close
            if raw_label is not None:
                definition = self._references.resolve_link(raw_label)
                if definition is not None:
                    url = definition.url
                    title = definition.title
                    label = raw_label
                    matched = True
                    if label_length > 0:
                        self._pos = before_label + label_length
            if not matched:
                self._pos = after_close

        if not matched:
            self._brackets = opener.prev
            self._append_text("]")
            return

        assert url is not None
        # Emphasis inside the link text is resolved before the text is frozen
        self._process_emphasis(opener.previous_delimiter)
        children = self._freeze(self._chain.take_after(opener.piece))
        node: Inline
        if is_image:
            node = Image(self._location, url, title, children, link_type, label)
        else:
            node = Link(self._location, url, title, children, link_type, label)
        self._chain.insert_after(opener.piece, Piece(None, node))
        self._chain.unlink(opener.piece)
        self._brackets = opener.prev

        if not is_image:
            # Links may not contain links: earlier [ openers become literal
            earlier = self._brackets
            while earlier is not None:
                if not earlier.image:
                    earlier.active = False
                earlier = earlier.prev

    def _scan_inline_link_tail(self, pos: int) -> tuple[str, str | None, int] | None:
        """Parse ``dest "title")`` after the opening parenthesis.

        Returns:
            (url, title, position after ``)``) or None.
        """
        text = self._text
        pos = skip_spaces_and_newline(text, pos)
        destination = scan_link_destination(text, pos)
        if destination is None:
            return None
        url, pos = destination
        title: str | None = None
        before_title = pos
        pos = skip_spaces_and_newline(text, pos)
        if pos > before_title:
            scanned = scan_link_title(text, pos)
            if scanned is not None:
                title, pos = scanned
                pos = skip_spaces_and_newline(text, pos)
        if pos < len(text) and text[pos] == ")":
            return url, title, pos + 1
        return None

    def _try_footnote_reference(self, opener: Bracket, after_close: int) -> bool:
        """Turn ``[^label]`` into a FootnoteRef when the label is defined."""
        if not self._footnotes_enabled:
            return False
        inner = self._text[opener.index + 1 : after_close - 1]
        match = _FOOTNOTE_LABEL_RE.fullmatch(inner)
        if match is None:
            return False
        definition = self._references.resolve_footnote(match.group(1))
        if definition is None:
            return False

        number = self._references.mark_referenced(definition.label)
        # The label text is consumed whole; delimiters inside it are dropped
        while self._delimiters is not None and self._delimiters is not opener.previous_delimiter:
            self._remove_delimiter(self._delimiters)
        self._chain.take_after(opener.piece)
        node = FootnoteRef(self._location, definition.label, number)
        self._chain.insert_after(opener.piece, Piece(None, node))
        self._chain.unlink(opener.piece)
        self._brackets = opener.prev
        return True
