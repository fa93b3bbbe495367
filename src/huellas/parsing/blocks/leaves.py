"""Leaf block starts and finalization.

Covers every leaf that is opened by its first line: ATX headings, fenced
and indented code, HTML blocks, setext headings (which convert the open
paragraph), thematic breaks. Also the paragraph finalizer, which peels
link reference definitions off the start of the text.

Block start methods share one contract with the container starts:

    0  the line does not start this block; the cursor is untouched
    1  a container was opened; keep looking for blocks inside it
    2  a leaf was opened; the rest of the line belongs to it

Thread Safety:
All state lives on the parser instance and its frames.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from huellas.lexer.classifiers.fence import classify_fence_open
from huellas.lexer.classifiers.heading import classify_atx_heading, classify_setext_underline
from huellas.lexer.classifiers.html import classify_html_block_start
from huellas.lexer.classifiers.thematic import is_thematic_break
from huellas.lexer.lines import CODE_INDENT
from huellas.parsing.blocks.link_ref import parse_reference_definitions
from huellas.parsing.containers import BlockKind, ContainerFrame

if TYPE_CHECKING:
    from huellas.lexer.lines import LineCursor
    from huellas.parsing.containers import ContainerStack
    from huellas.references import ReferenceTable


def _peel_definitions(
    frame: ContainerFrame, references: ReferenceTable, *, footnotes_enabled: bool
) -> None:
    """Define the link references that open a paragraph and drop their lines."""
    content = frame.content
    if not content.startswith("["):
        return
    consumed = parse_reference_definitions(
        content, references, footnotes_enabled=footnotes_enabled
    )
    if consumed == 0:
        return
    frame.lineno += content.count("\n", 0, consumed)
    remaining = content[consumed:]
    frame.lines = remaining.split("\n") if remaining else []


class LeafBlockMixin:
    """Mixin for leaf block starts.

    Required Host Attributes:
        - _stack: ContainerStack
        - _references: ReferenceTable
        - _all_closed: bool
        - _footnotes_enabled: bool

    Required Host Methods:
        - _close_unmatched() -> None
        - _add_child(kind, column, offset) -> ContainerFrame

    """

    _stack: ContainerStack
    _references: ReferenceTable
    _all_closed: bool
    _footnotes_enabled: bool

    def _close_unmatched(self) -> None:
        raise NotImplementedError

    def _add_child(self, kind: BlockKind, column: int, offset: int) -> ContainerFrame:
        raise NotImplementedError

    def _try_start_atx_heading(self, cursor: LineCursor, container: ContainerFrame) -> int:
        """CommonMark 4.2: ``#`` to ``######`` followed by a space or the end."""
        if cursor.indented:
            return 0
        heading = classify_atx_heading(cursor.rest_from_nonspace())
        if heading is None:
            return 0
        column = cursor.next_nonspace_column
        offset = cursor.next_nonspace
        cursor.offset = len(cursor.text)
        self._close_unmatched()
        frame = self._add_child(BlockKind.HEADING, column, offset)
        frame.level = heading.level
        frame.lines = [heading.content]
        return 2

    def _try_start_fence(self, cursor: LineCursor, container: ContainerFrame) -> int:
        """CommonMark 4.5: opening code fence.

        The info string is kept on the frame; the opening line is not part
        of the content.
        """
        if cursor.indented:
            return 0
        fence = classify_fence_open(cursor.rest_from_nonspace())
        if fence is None:
            return 0
        fence_offset = cursor.indent
        column = cursor.next_nonspace_column
        offset = cursor.next_nonspace
        cursor.offset = len(cursor.text)
        self._close_unmatched()
        frame = self._add_child(BlockKind.CODE_BLOCK, column, offset)
        frame.fenced = True
        frame.fence_char = fence.char
        frame.fence_length = fence.length
        frame.fence_offset = fence_offset
        frame.info = fence.info or None
        return 2

    def _try_start_html_block(self, cursor: LineCursor, container: ContainerFrame) -> int:
        """CommonMark 4.6: HTML blocks.

        The leading indentation stays part of the block, so the cursor is
        not moved.
        """
        if cursor.indented or cursor.peek_nonspace() != "<":
            return 0
        in_paragraph = container.kind is BlockKind.PARAGRAPH or (
            not self._all_closed and self._stack.current().kind is BlockKind.PARAGRAPH
        )
        block_type = classify_html_block_start(cursor.rest_from_nonspace(), in_paragraph=in_paragraph)
        if block_type is None:
            return 0
        self._close_unmatched()
        frame = self._add_child(BlockKind.HTML_BLOCK, cursor.column, cursor.offset)
        frame.html_type = block_type
        return 2

    def _try_start_setext_heading(self, cursor: LineCursor, container: ContainerFrame) -> int:
        """CommonMark 4.3: an underline turns the open paragraph into a heading.

        Link reference definitions at the start of the paragraph are
        defined first. If nothing else is left, the underline is not one.
        """
        if cursor.indented or container.kind is not BlockKind.PARAGRAPH:
            return 0
        level = classify_setext_underline(cursor.rest_from_nonspace())
        if level is None:
            return 0
        self._close_unmatched()
        _peel_definitions(container, self._references, footnotes_enabled=self._footnotes_enabled)
        if not container.content.strip(" \t\n"):
            container.lines = []
            return 0
        container.kind = BlockKind.HEADING
        container.level = level
        container.setext = True
        cursor.offset = len(cursor.text)
        return 2

    def _try_start_thematic_break(self, cursor: LineCursor, container: ContainerFrame) -> int:
        """CommonMark 4.1: ``***``, ``---`` or ``___``."""
        if cursor.indented or not is_thematic_break(cursor.rest_from_nonspace()):
            return 0
        column = cursor.next_nonspace_column
        offset = cursor.next_nonspace
        cursor.offset = len(cursor.text)
        self._close_unmatched()
        self._add_child(BlockKind.THEMATIC_BREAK, column, offset)
        return 2

    def _try_start_indented_code(self, cursor: LineCursor, container: ContainerFrame) -> int:
        """CommonMark 4.4: four columns of indentation outside a paragraph.

        An indented line never interrupts a paragraph or a table, where it
        is continuation text or a row.
        """
        tip = self._stack.current()
        if not cursor.indented or cursor.is_blank():
            return 0
        if tip.kind is BlockKind.PARAGRAPH or tip.kind is BlockKind.TABLE:
            return 0
        cursor.advance_columns(CODE_INDENT)
        self._close_unmatched()
        self._add_child(BlockKind.CODE_BLOCK, cursor.column, cursor.offset)
        return 2

    # -------------------------------------------------------------------------
    # Finalization
    # -------------------------------------------------------------------------

    def _finalize_paragraph(self, frame: ContainerFrame, parent: ContainerFrame) -> None:
        """Peel definitions; a paragraph left empty disappears."""
        _peel_definitions(frame, self._references, footnotes_enabled=self._footnotes_enabled)
        if not frame.content.strip(" \t\n"):
            if parent.children and parent.children[-1] is frame:
                parent.children.pop()

    def _finalize_code(self, frame: ContainerFrame) -> None:
        """Indented code loses its trailing blank lines."""
        if frame.fenced:
            return
        lines = frame.lines
        while lines and not lines[-1].strip(" "):
            lines.pop()
