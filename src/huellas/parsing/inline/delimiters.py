"""Working structures of the inline parser.

While a leaf's text is scanned, its output is a doubly linked chain of
pieces: literal text not yet known to be plain (delimiter runs, brackets)
and finished inline nodes. Two stacks index into that chain:

- the delimiter stack, one entry per ``*``/``_``/``~`` run
- the bracket stack, one entry per ``[`` or ``![``

Matching a closer against an opener lifts the pieces between them out of
the chain and replaces them with a single node, so nesting is built
bottom-up without recursion.

Thread Safety:
All structures are created per inline parse and never shared.

"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from huellas.nodes import Inline


@dataclass(slots=True, eq=False)
class Piece:
    """One element of the inline chain.

    Exactly one of ``text`` and ``node`` is set.
    """

    text: str | None
    node: Inline | None = None
    prev: Piece | None = None
    next: Piece | None = None


class PieceChain:
    """Doubly linked list of pieces with O(1) insert and unlink."""

    __slots__ = ("head", "tail")

    def __init__(self) -> None:
        self.head: Piece | None = None
        self.tail: Piece | None = None

    def append(self, piece: Piece) -> Piece:
        piece.prev = self.tail
        piece.next = None
        if self.tail is None:
            self.head = piece
        else:
            self.tail.next = piece
        self.tail = piece
        return piece

    def insert_after(self, anchor: Piece, piece: Piece) -> Piece:
        piece.prev = anchor
        piece.next = anchor.next
        if anchor.next is None:
            self.tail = piece
        else:
            anchor.next.prev = piece
        anchor.next = piece
        return piece

    def unlink(self, piece: Piece) -> None:
        if piece.prev is None:
            self.head = piece.next
        else:
            piece.prev.next = piece.next
        if piece.next is None:
            self.tail = piece.prev
        else:
            piece.next.prev = piece.prev
        piece.prev = piece.next = None

    def take_after(self, start: Piece, stop: Piece | None = None) -> list[Piece]:
        """Unlink and return the pieces strictly between ``start`` and ``stop``.

        ``stop`` of None takes everything up to the end of the chain.
        """
        taken: list[Piece] = []
        piece = start.next
        while piece is not None and piece is not stop:
            following = piece.next
            self.unlink(piece)
            taken.append(piece)
            piece = following
        return taken

    def __iter__(self) -> Iterator[Piece]:
        piece = self.head
        while piece is not None:
            yield piece
            piece = piece.next


@dataclass(slots=True, eq=False)
class Delimiter:
    """A run of ``*``, ``_`` or ``~`` on the delimiter stack.

    Attributes:
        char: Delimiter character
        count: Characters of the run still unmatched
        orig_count: Length of the run as written (rule of 3)
        piece: Text piece holding the unmatched characters
        can_open: Run is left-flanking (with the ``_`` refinements)
        can_close: Run is right-flanking (with the ``_`` refinements)
    """

    char: str
    count: int
    orig_count: int
    piece: Piece
    can_open: bool
    can_close: bool
    prev: Delimiter | None = None
    next: Delimiter | None = None


@dataclass(slots=True, eq=False)
class Bracket:
    """An opening ``[`` or ``![`` on the bracket stack.

    Attributes:
        piece: Text piece holding ``[`` or ``![``
        index: Position of ``[`` in the text
        image: True for ``![``
        active: False once a link closed around it (links cannot nest)
        bracket_after: Another bracket opened after this one
        previous_delimiter: Top of the delimiter stack when the bracket opened
    """

    piece: Piece
    index: int
    image: bool
    previous_delimiter: Delimiter | None
    prev: Bracket | None = None
    active: bool = True
    bracket_after: bool = False
