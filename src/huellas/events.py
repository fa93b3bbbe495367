"""Event types of the Huellas event stream.

A parsed document is exposed to renderers as one flat, ordered sequence
of events: Start/End pairs for every block and every inline container,
and leaf events for text-like content in between. A renderer consumes the
sequence without ever looking at the source again.

Event kinds:
- Start(tag, attrs) / End(tag): open and close a block or inline container
- Text, Code, Html, InlineHtml: literal content
- SoftBreak, HardBreak: line breaks inside inline content
- FootnoteReference(label, number): a resolved ``[^label]``
- TaskListMarker(checked): first event inside a task list item

Start attributes by tag:
- HEADING: level
- LIST: ordered, start, tight
- CODE_BLOCK: info, fenced
- TABLE: alignments
- TABLE_CELL: align
- FOOTNOTE_DEFINITION: label, number
- LINK, IMAGE: link_type, url, title, label

Thread Safety:
All events are frozen (immutable) and safe to share across threads.

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class Tag(Enum):
    """Kinds of container delimited by Start/End events."""

    # Blocks
    PARAGRAPH = auto()
    HEADING = auto()
    BLOCK_QUOTE = auto()
    LIST = auto()
    ITEM = auto()
    CODE_BLOCK = auto()
    HTML_BLOCK = auto()
    TABLE = auto()
    TABLE_HEAD = auto()
    TABLE_ROW = auto()
    TABLE_CELL = auto()
    FOOTNOTE_DEFINITION = auto()
    THEMATIC_BREAK = auto()

    # Inlines
    EMPHASIS = auto()
    STRONG = auto()
    STRIKETHROUGH = auto()
    LINK = auto()
    IMAGE = auto()

    @property
    def is_inline(self) -> bool:
        return self in _INLINE_TAGS


_INLINE_TAGS = frozenset({Tag.EMPHASIS, Tag.STRONG, Tag.STRIKETHROUGH, Tag.LINK, Tag.IMAGE})


@dataclass(frozen=True, slots=True)
class Start:
    """Opens a container.

    ``attrs`` is a tuple of (name, value) pairs so the event stays
    hashable; use get() for lookups.
    """

    tag: Tag
    attrs: tuple[tuple[str, Any], ...] = ()

    def get(self, name: str, default: Any = None) -> Any:
        for key, value in self.attrs:
            if key == name:
                return value
        return default


@dataclass(frozen=True, slots=True)
class End:
    """Closes the innermost open container, which must have the same tag."""

    tag: Tag


@dataclass(frozen=True, slots=True)
class Text:
    """Literal text. Escapes and entities are already resolved."""

    text: str


@dataclass(frozen=True, slots=True)
class Code:
    """Inline code span content."""

    code: str


@dataclass(frozen=True, slots=True)
class Html:
    """Raw HTML block content."""

    html: str


@dataclass(frozen=True, slots=True)
class InlineHtml:
    """Raw inline HTML."""

    html: str


@dataclass(frozen=True, slots=True)
class SoftBreak:
    """A line ending inside a paragraph."""


@dataclass(frozen=True, slots=True)
class HardBreak:
    """A hard line break."""


@dataclass(frozen=True, slots=True)
class FootnoteReference:
    """A resolved footnote reference and the footnote's number."""

    label: str
    number: int


@dataclass(frozen=True, slots=True)
class TaskListMarker:
    """Checkbox of a task list item."""

    checked: bool


# PEP 695 type alias for all events
type Event = (
    Start
    | End
    | Text
    | Code
    | Html
    | InlineHtml
    | SoftBreak
    | HardBreak
    | FootnoteReference
    | TaskListMarker
)

__all__ = [
    "Code",
    "End",
    "Event",
    "FootnoteReference",
    "HardBreak",
    "Html",
    "InlineHtml",
    "SoftBreak",
    "Start",
    "Tag",
    "TaskListMarker",
    "Text",
]
