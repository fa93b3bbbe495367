"""Container stack for block parsing.

The block parser keeps every open block on an explicit stack: the document
at the bottom, then block quotes, lists, list items and footnote
definitions, and at most one open leaf (paragraph, code, HTML, table) on
top. Each new line first walks the stack from the bottom asking every
frame whether the line continues it, then closes the frames that did not
match, then opens new blocks on top.

Frames are mutable while open. When the whole document has been read the
parser freezes the frame tree into immutable nodes.

Usage:
    stack = ContainerStack()  # Initializes with DOCUMENT frame
    frame = ContainerFrame(BlockKind.BLOCK_QUOTE, lineno=1, col=1, offset=0)
    stack.push(frame)
    stack.depth()  # 1
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from huellas.nodes import Alignment


class BlockKind(Enum):
    """Kinds of open blocks."""

    DOCUMENT = auto()
    BLOCK_QUOTE = auto()
    LIST = auto()
    ITEM = auto()
    FOOTNOTE_DEFINITION = auto()
    PARAGRAPH = auto()
    HEADING = auto()
    THEMATIC_BREAK = auto()
    CODE_BLOCK = auto()
    HTML_BLOCK = auto()
    TABLE = auto()


# Blocks that hold other blocks
CONTAINER_KINDS = frozenset(
    {
        BlockKind.DOCUMENT,
        BlockKind.BLOCK_QUOTE,
        BlockKind.LIST,
        BlockKind.ITEM,
        BlockKind.FOOTNOTE_DEFINITION,
    }
)

# Leaves that take every remaining line while they are open
ACCEPTS_LINES = frozenset(
    {
        BlockKind.PARAGRAPH,
        BlockKind.CODE_BLOCK,
        BlockKind.HTML_BLOCK,
    }
)


def can_contain(parent: BlockKind, child: BlockKind) -> bool:
    """Return True if a ``parent`` block may directly hold ``child``."""
    if parent is BlockKind.LIST:
        return child is BlockKind.ITEM
    if child is BlockKind.ITEM:
        return False
    return parent in CONTAINER_KINDS


@dataclass(slots=True, eq=False)
class ContainerFrame:
    """One open (or closed, not yet frozen) block.

    Attributes:
        kind: Block kind
        lineno: Line where the block starts (1-indexed)
        col: Column where the block starts (1-indexed)
        offset: Absolute source offset of the block start
        children: Child frames (containers only)
        lines: Raw content lines (leaves only)
        is_open: False once the block has been finalized
        last_line_blank: The last line added inside this block was blank
        last_line_checked: Tightness scan already visited this frame
        depth: Number of enclosing containers, document excluded

    The remaining attributes belong to one kind each (list, item, code,
    HTML, heading, footnote, table) and keep their defaults elsewhere.

    """

    kind: BlockKind
    lineno: int
    col: int
    offset: int
    children: list[ContainerFrame] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)
    is_open: bool = True
    last_line_blank: bool = False
    last_line_checked: bool = False
    depth: int = 0
    end_lineno: int = 0
    end_offset: int = 0

    # List and list item
    ordered: bool = False
    marker_char: str = ""
    start: int = 1
    tight: bool = True
    marker_offset: int = 0
    padding: int = 0
    checked: bool | None = None

    # Code block
    fenced: bool = False
    fence_char: str = ""
    fence_length: int = 0
    fence_offset: int = 0
    info: str | None = None

    # HTML block
    html_type: int = 0

    # Heading
    level: int = 0
    setext: bool = False

    # Footnote definition
    label: str = ""
    content_indent: int = 0

    # Table
    alignments: tuple[Alignment, ...] = ()
    rows: list[list[str]] = field(default_factory=list)
    row_lines: list[int] = field(default_factory=list)

    @property
    def is_container(self) -> bool:
        """True for blocks that hold other blocks."""
        return self.kind in CONTAINER_KINDS

    @property
    def accepts_lines(self) -> bool:
        """True for leaves that take the rest of each matching line."""
        return self.kind in ACCEPTS_LINES

    @property
    def first_child(self) -> ContainerFrame | None:
        return self.children[0] if self.children else None

    @property
    def last_child(self) -> ContainerFrame | None:
        return self.children[-1] if self.children else None

    def add_line(self, text: str) -> None:
        """Append a raw content line to a leaf."""
        self.lines.append(text)

    @property
    def content(self) -> str:
        """Raw leaf content, lines joined with newlines."""
        return "\n".join(self.lines)


@dataclass
class ContainerStack:
    """Manages the stack of open blocks during parsing.

    Invariant: stack[0] is always DOCUMENT, stack[-1] is the innermost
    open block (the "tip"). Every frame's parent is the frame below it.

    Usage:
        stack = ContainerStack()  # Initializes with DOCUMENT frame
        stack.push(frame)         # Open a block as child of the tip
        stack.pop()               # Remove the tip
        stack[i]                  # i-th open block from the bottom

    """

    _stack: list[ContainerFrame] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Initialize with DOCUMENT frame."""
        self._stack = [ContainerFrame(BlockKind.DOCUMENT, lineno=1, col=1, offset=0)]

    @property
    def document(self) -> ContainerFrame:
        """The root frame."""
        return self._stack[0]

    def push(self, frame: ContainerFrame) -> None:
        """Attach ``frame`` as the last child of the tip and make it the tip.

        Sets the frame's container depth from its parent.
        """
        parent = self._stack[-1]
        frame.depth = parent.depth + (1 if frame.is_container else 0)
        parent.children.append(frame)
        self._stack.append(frame)

    def pop(self) -> ContainerFrame:
        """Remove the tip.

        Raises:
            ValueError: If attempting to pop the document frame
        """
        if len(self._stack) <= 1:
            raise ValueError("Cannot pop document frame")
        return self._stack.pop()

    def current(self) -> ContainerFrame:
        """Get the innermost open block."""
        return self._stack[-1]

    def parent_of_tip(self) -> ContainerFrame:
        """Get the block holding the tip."""
        return self._stack[-2]

    def depth(self) -> int:
        """Current nesting depth (document = 0).

        Returns:
            The number of open blocks above DOCUMENT
        """
        return len(self._stack) - 1

    def index_of(self, frame: ContainerFrame) -> int:
        """Position of an open frame in the stack."""
        for i in range(len(self._stack) - 1, -1, -1):
            if self._stack[i] is frame:
                return i
        raise ValueError("frame is not open")

    def __getitem__(self, index: int) -> ContainerFrame:
        return self._stack[index]

    def __len__(self) -> int:
        return len(self._stack)

    def __iter__(self):
        return iter(self._stack)

    def __reversed__(self):
        return reversed(self._stack)
