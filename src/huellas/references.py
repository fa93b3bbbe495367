"""Per-document table of link reference and footnote definitions.

One ReferenceTable is created for each parse and owned by the resulting
Document. Definitions follow "first definition wins": a later definition
with an equivalent label is ignored (and logged at DEBUG).

Footnotes additionally track the order in which they are first referenced,
which is the order their definitions are emitted after the document body.

Thread Safety:
A table is filled by exactly one parse and read afterwards. It is never
shared between parses.

"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from huellas.utils.logger import get_logger

if TYPE_CHECKING:
    from huellas.nodes import FootnoteDefinition

logger = get_logger(__name__)


def normalize_label(label: str) -> str:
    """Normalize a reference label for matching.

    CommonMark 4.7: labels match case-insensitively after stripping
    leading/trailing whitespace and collapsing internal whitespace runs to
    a single space. Unicode case folding makes ``ẞ`` match ``SS``.

    Examples:
        >>> normalize_label("  Foo\\n  Bar ")
        'foo bar'
        >>> normalize_label("ẞ") == normalize_label("SS")
        True

    """
    return " ".join(label.split()).casefold()


@dataclass(frozen=True, slots=True)
class LinkDefinition:
    """Target of a link reference definition.

    Markdown: [label]: /url "title"
    """

    label: str
    url: str
    title: str | None = None


class ReferenceTable:
    """Link and footnote definitions for one document.

    Labels are stored under their normalized form. Footnote numbers are
    assigned on first reference, starting at 1.
    """

    __slots__ = ("_links", "_footnotes", "_footnote_refs", "_numbers", "_order")

    def __init__(self) -> None:
        self._links: dict[str, LinkDefinition] = {}
        self._footnotes: dict[str, FootnoteDefinition] = {}
        # normalized label -> number of references so far
        self._footnote_refs: dict[str, int] = {}
        # normalized label -> footnote number; insertion order is reference order
        self._numbers: dict[str, int] = {}
        self._order: list[str] = []

    # -------------------------------------------------------------------------
    # Links
    # -------------------------------------------------------------------------

    def define_link(self, label: str, definition: LinkDefinition) -> bool:
        """Store a link definition unless the label is already defined.

        Returns:
            True if stored, False if an earlier definition wins (or the
            label normalizes to nothing).
        """
        key = normalize_label(label)
        if not key:
            return False
        if key in self._links:
            logger.debug("Duplicate link reference definition ignored: %r", label)
            return False
        self._links[key] = definition
        return True

    def resolve_link(self, label: str) -> LinkDefinition | None:
        """Look up a link definition by label (any equivalent spelling)."""
        return self._links.get(normalize_label(label))

    @property
    def links(self) -> dict[str, LinkDefinition]:
        """Link definitions by normalized label, in definition order."""
        return dict(self._links)

    # -------------------------------------------------------------------------
    # Footnotes
    # -------------------------------------------------------------------------

    def define_footnote(self, label: str, definition: FootnoteDefinition) -> bool:
        """Store a footnote definition unless the label is already defined.

        Returns:
            True if stored, False if an earlier definition wins.
        """
        key = normalize_label(label)
        if not key:
            return False
        if key in self._footnotes:
            logger.debug("Duplicate footnote definition ignored: %r", label)
            return False
        self._footnotes[key] = definition
        return True

    def replace_footnote(self, label: str, definition: FootnoteDefinition) -> None:
        """Swap in the resolved body of an already-defined footnote.

        The inline pass builds each footnote body after the body's block
        structure was recorded; definition order is kept.
        """
        key = normalize_label(label)
        if key not in self._footnotes:
            raise KeyError(label)
        self._footnotes[key] = definition

    def resolve_footnote(self, label: str) -> FootnoteDefinition | None:
        """Look up a footnote definition by label (any equivalent spelling)."""
        return self._footnotes.get(normalize_label(label))

    def mark_referenced(self, label: str) -> int:
        """Record a reference to a footnote and return its number.

        The first reference to a label fixes its number (1-based, in
        first-reference order); later references return the same number.
        """
        key = normalize_label(label)
        self._footnote_refs[key] = self._footnote_refs.get(key, 0) + 1
        number = self._numbers.get(key)
        if number is None:
            self._order.append(key)
            number = len(self._order)
            self._numbers[key] = number
        return number

    def reference_count(self, label: str) -> int:
        """Return how many times a footnote has been referenced."""
        return self._footnote_refs.get(normalize_label(label), 0)

    def footnote_number(self, label: str) -> int | None:
        """Return the footnote's number, or None if never referenced."""
        return self._numbers.get(normalize_label(label))

    def numbered_label(self, number: int) -> str | None:
        """Return the normalized label that received ``number``, or None."""
        if 1 <= number <= len(self._order):
            return self._order[number - 1]
        return None

    @property
    def numbered_count(self) -> int:
        """How many distinct footnote labels have been referenced."""
        return len(self._order)

    def referenced_labels(self) -> list[str]:
        """Normalized labels of referenced footnotes, in first-reference order.

        Only labels with a definition are included.
        """
        return [key for key in self._order if key in self._footnotes]

    def unreferenced_labels(self) -> list[str]:
        """Normalized labels of defined but never-referenced footnotes.

        Returned in definition order.
        """
        return [key for key in self._footnotes if key not in self._footnote_refs]

    def iter_footnotes(self) -> Iterator[FootnoteDefinition]:
        """Yield footnote definitions in definition order."""
        yield from self._footnotes.values()

    def __repr__(self) -> str:
        return (
            f"ReferenceTable(links={len(self._links)}, "
            f"footnotes={len(self._footnotes)}, referenced={len(self._numbers)})"
        )
