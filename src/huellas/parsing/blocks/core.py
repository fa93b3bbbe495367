"""Block structure parser for Huellas.

Reads normalized source line by line and builds a tree of ContainerFrames.
For every line:

1. Walk the open blocks from the document down, asking each whether the
   line continues it (consuming its prefix: ``>``, item indentation,
   footnote indentation, code indentation).
2. Try block starts at the first unmatched position, opening new
   containers until a leaf takes the rest of the line.
3. If nothing new started and the open paragraph was not matched, the
   line is a lazy continuation of that paragraph. Otherwise close the
   unmatched blocks and add the line to the tip, or start a paragraph.

Nothing here recurses: the open blocks are an explicit stack, and nesting
depth is capped by ParseConfig.max_nesting_depth. Inline content is left
raw in the frames; the Parser runs the inline pass afterwards.

Thread Safety:
A BlockParser holds the state of one parse. Create one per parse.

"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, NamedTuple

from huellas.lexer.classifiers.fence import is_fence_close
from huellas.lexer.classifiers.html import html_block_ends
from huellas.lexer.lines import Line, LineCursor, split_lines
from huellas.parsing.blocks.footnote import FootnoteParsingMixin
from huellas.parsing.blocks.leaves import LeafBlockMixin
from huellas.parsing.blocks.list import ListParsingMixin
from huellas.parsing.blocks.table import TableParsingMixin
from huellas.parsing.charsets import BLOCK_START_CHARS, SPACE_OR_TAB
from huellas.parsing.containers import BlockKind, ContainerFrame, ContainerStack, can_contain
from huellas.utils.logger import get_logger

if TYPE_CHECKING:
    from huellas.config import ParseConfig
    from huellas.references import ReferenceTable

logger = get_logger(__name__)

# Result codes shared by continuation checks and block starts
_MATCHED = 0
_NOT_MATCHED = 1
_LINE_DONE = 2

type BlockStart = Callable[[LineCursor, ContainerFrame], int]


class BlockTree(NamedTuple):
    """Result of the block phase.

    Attributes:
        document: Root frame; footnote definitions are not among its
            descendants
        footnotes: Footnote definition frames in definition order
    """

    document: ContainerFrame
    footnotes: list[ContainerFrame]


class BlockParser(LeafBlockMixin, ListParsingMixin, TableParsingMixin, FootnoteParsingMixin):
    """Line-oriented block parser over an explicit container stack.

    Usage:
        >>> tree = BlockParser(ParseConfig(), ReferenceTable()).parse("> quote\\n")
        >>> tree.document.children[0].kind
        <BlockKind.BLOCK_QUOTE: 2>

    """

    def __init__(self, config: ParseConfig, references: ReferenceTable) -> None:
        self._references = references
        self._tables_enabled = config.tables_enabled
        self._footnotes_enabled = config.footnotes_enabled
        self._ragged_rows = config.table_ragged_rows
        self._max_depth = config.max_nesting_depth

        self._stack = ContainerStack()
        self._footnote_frames: list[ContainerFrame] = []
        self._line_number = 0
        self._line_offset = 0
        self._all_closed = True
        self._last_matched: ContainerFrame = self._stack.document
        self._depth_logged = False

        # Precedence: the first start that accepts the line wins
        self._block_starts: tuple[BlockStart, ...] = (
            self._try_start_blockquote,
            self._try_start_atx_heading,
            self._try_start_fence,
            self._try_start_html_block,
            self._try_start_setext_heading,
            self._try_start_table,
            self._try_start_thematic_break,
            self._try_start_footnote,
            self._try_start_list_item,
            self._try_start_indented_code,
        )

    def parse(self, source: str) -> BlockTree:
        """Build the block tree of already-normalized ``source``."""
        for line in split_lines(source):
            self._incorporate_line(line)
        while len(self._stack) > 1:
            self._finalize(self._stack.current())
        self._stack.document.is_open = False
        return BlockTree(self._stack.document, self._footnote_frames)

    # -------------------------------------------------------------------------
    # Per-line driver
    # -------------------------------------------------------------------------

    def _incorporate_line(self, line: Line) -> None:
        self._line_number = line.lineno
        self._line_offset = line.offset
        line_end = line.offset + len(line.text)
        cursor = LineCursor(line.text)
        stack = self._stack
        old_tip = stack.current()

        # 1. Continuation of open blocks
        container = stack.document
        index = 1
        while index < len(stack):
            frame = stack[index]
            cursor.find_next_nonspace()
            result = self._continue(frame, cursor)
            if result == _MATCHED:
                container = frame
                index += 1
            elif result == _NOT_MATCHED:
                break
            else:
                # Closing fence: the line ends the code block and nothing else
                self._extend_open_frames(line_end)
                return

        self._all_closed = container is old_tip
        self._last_matched = container

        # 2. New block starts
        matched_leaf = container.kind is not BlockKind.PARAGRAPH and container.accepts_lines
        while not matched_leaf:
            cursor.find_next_nonspace()
            if not cursor.indented and cursor.peek_nonspace() not in BLOCK_START_CHARS:
                cursor.skip_spaces()
                break
            for start in self._block_starts:
                result = start(cursor, container)
                if not result:
                    continue
                container = stack.current()
                if result == _LINE_DONE:
                    matched_leaf = True
                break
            else:
                cursor.skip_spaces()
                break

        # 3. Lazy continuation, or add the line to the tip
        blank = cursor.is_blank()
        tip = stack.current()
        if not self._all_closed and not blank and tip.kind is BlockKind.PARAGRAPH:
            tip.add_line(cursor.content_for_leaf())
        else:
            self._close_unmatched()
            self._mark_blank(container, blank)
            kind = container.kind
            if container.accepts_lines:
                if not (kind is BlockKind.CODE_BLOCK and container.fenced and container.lineno == line.lineno):
                    container.add_line(cursor.content_for_leaf())
                if (
                    kind is BlockKind.HTML_BLOCK
                    and 1 <= container.html_type <= 5
                    and html_block_ends(container.html_type, cursor.rest())
                ):
                    self._set_end(container, line_end)
                    self._finalize(container)
            elif kind is BlockKind.TABLE:
                if not blank and cursor.offset < len(cursor.text):
                    self._add_table_line(container, cursor)
            elif cursor.offset < len(cursor.text) and not blank:
                cursor.skip_spaces()
                paragraph = self._add_child(BlockKind.PARAGRAPH, cursor.column, cursor.offset)
                paragraph.add_line(cursor.content_for_leaf())

        self._extend_open_frames(line_end)

    def _add_table_line(self, table: ContainerFrame, cursor: LineCursor) -> None:
        if self._add_table_row(table, cursor):
            return
        # A rejected row ends the table and starts a paragraph
        self._finalize(table)
        paragraph = self._add_child(BlockKind.PARAGRAPH, cursor.column, cursor.offset)
        paragraph.add_line(cursor.content_for_leaf())

    def _mark_blank(self, container: ContainerFrame, blank: bool) -> None:
        """Record whether this line was blank on the open blocks.

        Block quote lines are never blank (they start with ``>``), blank
        lines in fenced code do not count, and an item opened on this very
        line with no content is not ended by it.
        """
        if blank and container.last_child is not None:
            container.last_child.last_line_blank = True
        kind = container.kind
        last_line_blank = blank and not (
            kind is BlockKind.BLOCK_QUOTE
            or (kind is BlockKind.CODE_BLOCK and container.fenced)
            or (
                kind is BlockKind.ITEM
                and container.first_child is None
                and container.lineno == self._line_number
            )
        )
        for frame in self._stack:
            frame.last_line_blank = last_line_blank

    def _set_end(self, frame: ContainerFrame, line_end: int) -> None:
        frame.end_lineno = self._line_number
        frame.end_offset = line_end

    def _extend_open_frames(self, line_end: int) -> None:
        for frame in self._stack:
            frame.end_lineno = self._line_number
            frame.end_offset = line_end

    # -------------------------------------------------------------------------
    # Continuation
    # -------------------------------------------------------------------------

    def _continue(self, frame: ContainerFrame, cursor: LineCursor) -> int:
        """Check whether the line continues ``frame``, consuming its prefix."""
        kind = frame.kind
        if kind is BlockKind.BLOCK_QUOTE:
            return _MATCHED if cursor.try_consume_blockquote_marker() else _NOT_MATCHED
        if kind is BlockKind.LIST:
            return _MATCHED
        if kind is BlockKind.ITEM:
            return self._continue_item(frame, cursor)
        if kind is BlockKind.FOOTNOTE_DEFINITION:
            return self._continue_footnote(frame, cursor)
        if kind is BlockKind.PARAGRAPH:
            return _NOT_MATCHED if cursor.is_blank() else _MATCHED
        if kind is BlockKind.CODE_BLOCK:
            return self._continue_code(frame, cursor)
        if kind is BlockKind.HTML_BLOCK:
            if cursor.is_blank() and frame.html_type >= 6:
                return _NOT_MATCHED
            return _MATCHED
        if kind is BlockKind.TABLE:
            return self._continue_table(frame, cursor)
        # Headings and thematic breaks hold exactly one line
        return _NOT_MATCHED

    def _continue_code(self, frame: ContainerFrame, cursor: LineCursor) -> int:
        if frame.fenced:
            if (
                not cursor.indented
                and cursor.peek_nonspace() == frame.fence_char
                and is_fence_close(cursor.rest_from_nonspace(), frame.fence_char, frame.fence_length)
            ):
                self._set_end(frame, self._line_offset + len(cursor.text))
                self._finalize(frame)
                return _LINE_DONE
            # Remove up to the opening fence's indentation
            remaining = frame.fence_offset
            while remaining > 0 and cursor.peek() in SPACE_OR_TAB:
                cursor.advance_columns(1)
                remaining -= 1
            return _MATCHED
        if cursor.indented:
            cursor.advance_columns(4)
            return _MATCHED
        if cursor.is_blank():
            cursor.skip_spaces()
            return _MATCHED
        return _NOT_MATCHED

    # -------------------------------------------------------------------------
    # Container starts owned by the core
    # -------------------------------------------------------------------------

    def _try_start_blockquote(self, cursor: LineCursor, container: ContainerFrame) -> int:
        """CommonMark 5.1: ``>`` opens a block quote."""
        if cursor.indented or cursor.peek_nonspace() != ">":
            return 0
        if not self._nesting_allowed(container, 1):
            return 0
        column = cursor.next_nonspace_column
        offset = cursor.next_nonspace
        cursor.skip_spaces()
        cursor.advance(1)
        if cursor.peek() in SPACE_OR_TAB:
            cursor.advance_columns(1)
        self._close_unmatched()
        self._add_child(BlockKind.BLOCK_QUOTE, column, offset)
        return 1

    # -------------------------------------------------------------------------
    # Tree maintenance (host methods required by the mixins)
    # -------------------------------------------------------------------------

    def _close_unmatched(self) -> None:
        """Finalize every open block the current line did not continue."""
        if self._all_closed:
            return
        while self._stack.current() is not self._last_matched:
            self._finalize(self._stack.current())
        self._all_closed = True

    def _add_child(self, kind: BlockKind, column: int, offset: int) -> ContainerFrame:
        """Open a block of ``kind`` on the current line.

        Blocks that cannot hold ``kind`` are finalized first. ``column`` is
        the 0-based visual column and ``offset`` the index within the line.
        """
        while not can_contain(self._stack.current().kind, kind):
            self._finalize(self._stack.current())
        frame = ContainerFrame(
            kind,
            lineno=self._line_number,
            col=column + 1,
            offset=self._line_offset + offset,
        )
        self._stack.push(frame)
        return frame

    def _nesting_allowed(self, container: ContainerFrame, levels: int) -> bool:
        """Check that opening ``levels`` containers stays within the cap."""
        if container.depth + levels <= self._max_depth:
            return True
        if not self._depth_logged:
            logger.debug(
                "Nesting depth %d reached at line %d; further container markers are text",
                self._max_depth,
                self._line_number,
            )
            self._depth_logged = True
        return False

    def _finalize(self, frame: ContainerFrame) -> None:
        """Close the tip block."""
        popped = self._stack.pop()
        assert popped is frame
        frame.is_open = False
        parent = self._stack.current()
        kind = frame.kind
        if kind is BlockKind.PARAGRAPH:
            self._finalize_paragraph(frame, parent)
        elif kind is BlockKind.CODE_BLOCK:
            self._finalize_code(frame)
        elif kind is BlockKind.LIST:
            self._finalize_list(frame)
        elif kind is BlockKind.FOOTNOTE_DEFINITION:
            self._finalize_footnote(frame)
