"""Emphasis and strikethrough delimiter processing.

Implements the CommonMark delimiter stack algorithm for emphasis/strong,
extended with GFM strikethrough.
See: https://spec.commonmark.org/0.31.2/#emphasis-and-strong-emphasis

Thread Safety:
All methods use instance-local state only. Safe for concurrent use when
each parser instance is used by one thread.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from huellas.nodes import Emphasis, Strikethrough, Strong
from huellas.parsing.charsets import is_unicode_punctuation, is_unicode_whitespace
from huellas.parsing.inline.delimiters import Delimiter, Piece

if TYPE_CHECKING:
    from huellas.location import SourceLocation
    from huellas.nodes import Inline
    from huellas.parsing.inline.delimiters import PieceChain

# GFM: a strikethrough run longer than this is literal text
MAX_STRIKETHROUGH_RUN = 2


class EmphasisMixin:
    """Mixin for emphasis delimiter scanning and matching.

    Required Host Attributes:
        - _text: str
        - _pos: int
        - _chain: PieceChain
        - _delimiters: Delimiter | None (top of the delimiter stack)
        - _location: SourceLocation
        - _strikethrough_enabled: bool

    Required Host Methods:
        - _append_text(text) -> Piece
        - _freeze(pieces) -> tuple[Inline, ...]

    """

    _text: str
    _pos: int
    _chain: PieceChain
    _delimiters: Delimiter | None
    _location: SourceLocation
    _strikethrough_enabled: bool

    def _append_text(self, text: str) -> Piece:
        raise NotImplementedError

    def _freeze(self, pieces: list[Piece]) -> tuple[Inline, ...]:
        raise NotImplementedError

    # -------------------------------------------------------------------------
    # Scanning
    # -------------------------------------------------------------------------

    def _scan_delimiter_run(self, char: str) -> tuple[int, bool, bool]:
        """Measure the run at the cursor and apply the flanking rules.

        Returns:
            (run length, can_open, can_close)
        """
        text = self._text
        start = self._pos
        end = start
        while end < len(text) and text[end] == char:
            end += 1
        count = end - start

        before = text[start - 1] if start > 0 else ""
        after = text[end] if end < len(text) else ""
        before_ws = is_unicode_whitespace(before)
        after_ws = is_unicode_whitespace(after)
        before_punct = is_unicode_punctuation(before)
        after_punct = is_unicode_punctuation(after)

        left_flanking = not after_ws and (not after_punct or before_ws or before_punct)
        right_flanking = not before_ws and (not before_punct or after_ws or after_punct)

        if char == "_":
            # CommonMark 6.2: intraword _ cannot open or close
            can_open = left_flanking and (not right_flanking or before_punct)
            can_close = right_flanking and (not left_flanking or after_punct)
        else:
            can_open = left_flanking
            can_close = right_flanking
        return count, can_open, can_close

    def _handle_delimiter_run(self, char: str) -> None:
        """Push a delimiter run onto the chain and the delimiter stack."""
        count, can_open, can_close = self._scan_delimiter_run(char)
        run = self._text[self._pos : self._pos + count]
        self._pos += count
        piece = self._append_text(run)

        if char == "~" and (not self._strikethrough_enabled or count > MAX_STRIKETHROUGH_RUN):
            return

        delimiter = Delimiter(
            char=char,
            count=count,
            orig_count=count,
            piece=piece,
            can_open=can_open,
            can_close=can_close,
            prev=self._delimiters,
        )
        if self._delimiters is not None:
            self._delimiters.next = delimiter
        self._delimiters = delimiter

    def _remove_delimiter(self, delimiter: Delimiter) -> None:
        if delimiter.prev is not None:
            delimiter.prev.next = delimiter.next
        if delimiter.next is None:
            self._delimiters = delimiter.prev
        else:
            delimiter.next.prev = delimiter.prev

    # -------------------------------------------------------------------------
    # Matching
    # -------------------------------------------------------------------------

    def _process_emphasis(self, stack_bottom: Delimiter | None) -> None:
        """Match closers against openers above ``stack_bottom``.

        CommonMark "process emphasis": walk closers left to right, look back
        for the nearest compatible opener, wrap what lies between, and drop
        delimiters that can no longer match. ``openers_bottom`` remembers,
        per (char, closer can_open, length mod 3), how far back a failed
        search went, keeping the whole pass linear.
        """
        openers_bottom: dict[tuple[str, bool, int], Delimiter | None] = {}

        closer = self._delimiters
        while closer is not None and closer.prev is not stack_bottom:
            closer = closer.prev

        while closer is not None:
            if not closer.can_close:
                closer = closer.next
                continue

            char = closer.char
            bottom_key = (char, closer.can_open, closer.orig_count % 3)
            bottom = openers_bottom.get(bottom_key, stack_bottom)

            opener = closer.prev
            found = False
            while opener is not None and opener is not stack_bottom and opener is not bottom:
                if opener.char == char and opener.can_open and self._delimiters_match(opener, closer):
                    found = True
                    break
                opener = opener.prev

            old_closer = closer
            if found:
                assert opener is not None
                closer = self._wrap_match(opener, closer)
            else:
                closer = closer.next
                openers_bottom[bottom_key] = old_closer.prev
                if not old_closer.can_open:
                    self._remove_delimiter(old_closer)

        while self._delimiters is not None and self._delimiters is not stack_bottom:
            self._remove_delimiter(self._delimiters)

    def _delimiters_match(self, opener: Delimiter, closer: Delimiter) -> bool:
        if closer.char == "~":
            # GFM: ~ pairs only with a run of the same length
            return opener.count == closer.count
        # Rule of 3: if either side can both open and close, the sum of the
        # original run lengths must not be a multiple of 3 unless both are.
        odd_match = (
            (closer.can_open or opener.can_close)
            and closer.orig_count % 3 != 0
            and (opener.orig_count + closer.orig_count) % 3 == 0
        )
        return not odd_match

    def _wrap_match(self, opener: Delimiter, closer: Delimiter) -> Delimiter | None:
        """Wrap the pieces between a matched pair and return the next closer."""
        if closer.char == "~":
            used = closer.count
        else:
            used = 2 if closer.count >= 2 and opener.count >= 2 else 1

        opener_piece = opener.piece
        closer_piece = closer.piece
        opener.count -= used
        closer.count -= used
        assert opener_piece.text is not None and closer_piece.text is not None
        opener_piece.text = opener_piece.text[: len(opener_piece.text) - used]
        closer_piece.text = closer_piece.text[: len(closer_piece.text) - used]

        children = self._freeze(self._chain.take_after(opener_piece, closer_piece))
        if closer.char == "~":
            node: Inline = Strikethrough(self._location, children)
        elif used == 1:
            node = Emphasis(self._location, children)
        else:
            node = Strong(self._location, children)
        self._chain.insert_after(opener_piece, Piece(None, node))

        # Delimiters strictly between the pair can no longer match
        between = closer.prev
        while between is not None and between is not opener:
            earlier = between.prev
            self._remove_delimiter(between)
            between = earlier

        if opener.count == 0:
            self._chain.unlink(opener_piece)
            self._remove_delimiter(opener)
        if closer.count == 0:
            self._chain.unlink(closer_piece)
            following = closer.next
            self._remove_delimiter(closer)
            return following
        return closer
