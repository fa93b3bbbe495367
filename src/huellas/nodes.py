"""Typed AST nodes for Huellas.

All AST nodes are frozen dataclasses with slots for:
- Type safety: IDE autocomplete, catch errors at dev time
- Immutability: Safe sharing across threads
- Memory efficiency: __slots__ reduces memory footprint
- Pattern matching: match statements work naturally

Node Hierarchy:
Node (base)
├── Block (block-level elements)
│   ├── Document
│   ├── Heading
│   ├── Paragraph
│   ├── CodeBlock
│   ├── BlockQuote
│   ├── List
│   ├── ListItem
│   ├── ThematicBreak
│   ├── HtmlBlock
│   ├── Table / TableRow / TableCell
│   ├── FootnoteDefinition
│   └── CustomBlock
└── Inline (inline elements)
    ├── Text
    ├── Emphasis
    ├── Strong
    ├── Strikethrough
    ├── Link
    ├── Image
    ├── CodeSpan
    ├── LineBreak
    ├── SoftBreak
    ├── HtmlInline
    ├── FootnoteRef
    └── CustomInline

CustomBlock and CustomInline are bases for nodes defined outside this
package. A build hook creates them from events, and they describe
themselves as events again through to_events().

Leaf blocks that hold inline content (Paragraph, Heading, TableCell) keep
the raw ``span`` they were built from next to the parsed ``children``.
Container blocks never hold raw text, and leaf blocks never hold blocks.

Thread Safety:
All nodes are frozen (immutable) and safe to share across threads.
Document.references is the one mutable member; it is filled during the
parse that creates the Document and only read afterwards.

"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Literal

from huellas.location import InlineSpan, SourceLocation

if TYPE_CHECKING:
    from huellas.events import Event
    from huellas.references import ReferenceTable

type Alignment = Literal["left", "center", "right"] | None


class LinkType(Enum):
    """How a link or image was written in the source."""

    INLINE = "inline"  # [text](url)
    REFERENCE = "reference"  # [text][label]
    COLLAPSED = "collapsed"  # [text][]
    SHORTCUT = "shortcut"  # [text]
    AUTOLINK = "autolink"  # <https://example.com>
    EMAIL = "email"  # <user@example.com>


# =============================================================================
# Base Node
# =============================================================================


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all AST nodes.

    All nodes track their source location for error messages and debugging.

    """

    location: SourceLocation


# =============================================================================
# Inline Nodes
# =============================================================================


@dataclass(frozen=True, slots=True)
class Text(Node):
    """Plain text content.

    The most common inline node, representing literal text.

    """

    content: str


@dataclass(frozen=True, slots=True)
class Emphasis(Node):
    """Emphasized text.

    Markdown: *text* or _text_
    """

    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Strong(Node):
    """Strong text.

    Markdown: **text** or __text__
    """

    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Strikethrough(Node):
    """Deleted text.

    Markdown: ~text~ or ~~text~~
    """

    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Link(Node):
    """Hyperlink.

    Markdown: [text](url "title"), [text][ref], [text][], [text], <url>

    ``label`` is the reference label as written for the reference forms
    and empty otherwise.
    """

    url: str
    title: str | None
    children: tuple[Inline, ...]
    link_type: LinkType = LinkType.INLINE
    label: str = ""


@dataclass(frozen=True, slots=True)
class Image(Node):
    """Image.

    Markdown: ![alt](url "title"). The alt text keeps its inline structure
    in ``children``.
    """

    url: str
    title: str | None
    children: tuple[Inline, ...]
    link_type: LinkType = LinkType.INLINE
    label: str = ""


@dataclass(frozen=True, slots=True)
class CodeSpan(Node):
    """Inline code.

    Markdown: `code`
    """

    code: str


@dataclass(frozen=True, slots=True)
class LineBreak(Node):
    """Hard line break.

    Markdown: ``\\`` at end of line or two trailing spaces
    """


@dataclass(frozen=True, slots=True)
class SoftBreak(Node):
    """Soft line break (single newline in paragraph)."""


@dataclass(frozen=True, slots=True)
class HtmlInline(Node):
    """Inline raw HTML, passed through unchanged."""

    html: str


@dataclass(frozen=True, slots=True)
class FootnoteRef(Node):
    """Footnote reference.

    Markdown: [^1] or [^note]

    ``label`` is the label of the definition it resolved to; ``number`` is
    the footnote's 1-based position in first-reference order.
    """

    label: str
    number: int


@dataclass(frozen=True, slots=True)
class CustomInline(Node):
    """Base for inline nodes defined outside this package.

    Subclasses are frozen dataclasses that add their own fields and
    implement to_events(). The events must be balanced inline events; the
    emitter yields them in place of the node.
    """

    def to_events(self) -> Sequence[Event]:
        raise NotImplementedError(f"{type(self).__name__} must implement to_events()")


# PEP 695 type alias for inline elements
type Inline = (
    Text
    | Emphasis
    | Strong
    | Strikethrough
    | Link
    | Image
    | CodeSpan
    | LineBreak
    | SoftBreak
    | HtmlInline
    | FootnoteRef
    | CustomInline
)


# =============================================================================
# Block Nodes
# =============================================================================


@dataclass(frozen=True, slots=True)
class Heading(Node):
    """ATX or setext heading.

    Markdown: # Heading or Heading\\n======
    """

    level: Literal[1, 2, 3, 4, 5, 6]
    children: tuple[Inline, ...] = ()
    span: InlineSpan | None = None
    style: Literal["atx", "setext"] = "atx"


@dataclass(frozen=True, slots=True)
class Paragraph(Node):
    """Paragraph block."""

    children: tuple[Inline, ...] = ()
    span: InlineSpan | None = None


@dataclass(frozen=True, slots=True)
class CodeBlock(Node):
    """Fenced or indented code block.

    ``info`` is the full info string after the opening fence (backslash
    escapes and entities resolved), or None for indented code and for a
    fence with no info string.
    ``literal`` ends with a newline unless the block is empty.
    """

    literal: str
    info: str | None = None
    fenced: bool = True
    marker: Literal["`", "~"] = "`"


@dataclass(frozen=True, slots=True)
class BlockQuote(Node):
    """Block quote.

    Markdown: > quoted text
    """

    children: tuple[Block, ...]


@dataclass(frozen=True, slots=True)
class ListItem(Node):
    """List item.

    ``checked`` is True/False for task list items and None otherwise.
    """

    children: tuple[Block, ...]
    checked: bool | None = None


@dataclass(frozen=True, slots=True)
class List(Node):
    """Ordered or unordered list.

    ``marker`` is the bullet character (``-``, ``+``, ``*``) or the ordered
    delimiter (``.``, ``)``) used in the source.
    """

    items: tuple[ListItem, ...]
    ordered: bool = False
    start: int = 1
    tight: bool = True
    marker: str = "-"


@dataclass(frozen=True, slots=True)
class ThematicBreak(Node):
    """Thematic break.

    Markdown: --- or *** or ___
    """


@dataclass(frozen=True, slots=True)
class HtmlBlock(Node):
    """Raw HTML block, without the trailing newline."""

    html: str


@dataclass(frozen=True, slots=True)
class TableCell(Node):
    """Table cell.

    Markdown: | cell content |
    """

    children: tuple[Inline, ...] = ()
    span: InlineSpan | None = None
    align: Alignment = None


@dataclass(frozen=True, slots=True)
class TableRow(Node):
    """Table row."""

    cells: tuple[TableCell, ...]
    is_header: bool = False


@dataclass(frozen=True, slots=True)
class Table(Node):
    """Table (GFM-style).

    Markdown:
        | A | B |
        |---|--:|
        | 1 | 2 |

    The header fixes the column count; ``alignments`` has one entry per
    column.
    """

    head: TableRow
    body: tuple[TableRow, ...]
    alignments: tuple[Alignment, ...]


@dataclass(frozen=True, slots=True)
class FootnoteDefinition(Node):
    """Footnote definition body.

    Markdown: [^1]: Footnote content here.

    Definitions are not part of Document.children; they live in the
    document's ReferenceTable and are emitted after the body.
    """

    label: str
    children: tuple[Block, ...]


@dataclass(frozen=True, slots=True)
class CustomBlock(Node):
    """Base for block nodes defined outside this package.

    Like CustomInline, but to_events() yields block events. The Markdown
    writer sees only those events, so a custom block writes as whatever
    blocks it describes itself as.
    """

    def to_events(self) -> Sequence[Event]:
        raise NotImplementedError(f"{type(self).__name__} must implement to_events()")


@dataclass(frozen=True, slots=True)
class Document(Node):
    """Root document node.

    Contains all top-level blocks in the document plus the table of link
    reference definitions and footnote definitions collected while parsing.
    """

    children: tuple[Block, ...]
    references: ReferenceTable = field(compare=False, repr=False, kw_only=True)


# PEP 695 type alias for block elements
type Block = (
    Document
    | Heading
    | Paragraph
    | CodeBlock
    | BlockQuote
    | List
    | ListItem
    | ThematicBreak
    | HtmlBlock
    | Table
    | TableRow
    | TableCell
    | FootnoteDefinition
    | CustomBlock
)
