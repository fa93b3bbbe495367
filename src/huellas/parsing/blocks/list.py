"""List and list item parsing.

CommonMark 5.2/5.3: list items start with a bullet (``-``, ``+``, ``*``) or
an ordered marker (up to 9 digits and ``.`` or ``)``). The item's content
column is the marker width plus 1-4 spaces of padding; continuation lines
must be indented at least that far. A list is a run of items with the same
kind of marker, and it is loose when any item is separated from the next
by a blank line or directly contains two blocks separated by one.

Thread Safety:
All state lives on the parser instance and its frames.

"""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

from huellas.lexer.classifiers.list import ListMarker, classify_list_marker, lists_match
from huellas.parsing.charsets import SPACE_OR_TAB
from huellas.parsing.containers import BlockKind, ContainerFrame

if TYPE_CHECKING:
    from huellas.lexer.lines import LineCursor
    from huellas.parsing.containers import ContainerStack

# CommonMark 5.2: five or more spaces after the marker start indented code
_MAX_MARKER_PADDING = 5


class ItemStart(NamedTuple):
    """A list item marker consumed from the cursor."""

    marker: ListMarker
    marker_offset: int
    padding: int
    column: int
    offset: int


class ListParsingMixin:
    """Mixin for list item start, continuation and list finalization.

    Required Host Attributes:
        - _stack: ContainerStack

    Required Host Methods:
        - _close_unmatched() -> None
        - _add_child(kind, column, offset) -> ContainerFrame
        - _nesting_allowed(container, levels) -> bool

    """

    _stack: ContainerStack

    def _close_unmatched(self) -> None:
        raise NotImplementedError

    def _add_child(self, kind: BlockKind, column: int, offset: int) -> ContainerFrame:
        raise NotImplementedError

    def _nesting_allowed(self, container: ContainerFrame, levels: int) -> bool:
        raise NotImplementedError

    def _parse_item_marker(self, cursor: LineCursor, container: ContainerFrame) -> ItemStart | None:
        """Consume a list marker and its padding, or leave the cursor alone."""
        if cursor.indented:
            return None
        rest = cursor.rest_from_nonspace()
        marker = classify_list_marker(rest)
        if marker is None:
            return None
        if container.kind is BlockKind.PARAGRAPH:
            # Only "1." may interrupt a paragraph, and never with an empty item
            if marker.ordered and marker.start != 1:
                return None
            if not rest[marker.length :].strip(" \t"):
                return None

        marker_offset = cursor.indent
        column = cursor.next_nonspace_column
        offset = cursor.next_nonspace
        cursor.skip_spaces()
        cursor.advance(marker.length)

        spaces_start_column = cursor.column
        spaces_start_offset = cursor.offset
        while True:
            cursor.advance_columns(1)
            if not (
                cursor.column - spaces_start_column < _MAX_MARKER_PADDING
                and cursor.peek() in SPACE_OR_TAB
            ):
                break
        blank_item = cursor.peek() == ""
        spaces_after_marker = cursor.column - spaces_start_column

        if spaces_after_marker >= _MAX_MARKER_PADDING or spaces_after_marker < 1 or blank_item:
            # Content starts one space after the marker
            padding = marker.length + 1
            cursor.column = spaces_start_column
            cursor.offset = spaces_start_offset
            cursor.partially_consumed_tab = False
            if cursor.peek() in SPACE_OR_TAB:
                cursor.advance_columns(1)
        else:
            padding = marker.length + spaces_after_marker

        return ItemStart(marker, marker_offset, padding, column, offset)

    def _try_start_list_item(self, cursor: LineCursor, container: ContainerFrame) -> int:
        """Block start: list item (opening a list when needed)."""
        if cursor.indented and container.kind is not BlockKind.LIST:
            return 0
        if classify_list_marker(cursor.rest_from_nonspace()) is None:
            return 0
        levels = 1 if container.kind is BlockKind.LIST else 2
        if not self._nesting_allowed(container, levels):
            return 0

        start = self._parse_item_marker(cursor, container)
        if start is None:
            return 0
        marker = start.marker

        self._close_unmatched()
        tip = self._stack.current()
        if tip.kind is not BlockKind.LIST or not lists_match(tip.ordered, tip.marker_char, marker):
            lst = self._add_child(BlockKind.LIST, start.column, start.offset)
            lst.ordered = marker.ordered
            lst.marker_char = marker.char
            lst.start = marker.start if marker.start is not None else 1

        item = self._add_child(BlockKind.ITEM, start.column, start.offset)
        item.ordered = marker.ordered
        item.marker_char = marker.char
        item.marker_offset = start.marker_offset
        item.padding = start.padding
        return 1

    def _continue_item(self, frame: ContainerFrame, cursor: LineCursor) -> int:
        """Continuation: blank lines and lines indented to the content column."""
        if cursor.is_blank():
            if frame.first_child is None:
                # A blank line after an empty item ends it
                return 1
            cursor.skip_spaces()
            return 0
        required = frame.marker_offset + frame.padding
        if cursor.indent >= required:
            cursor.advance_columns(required)
            return 0
        return 1

    def _finalize_list(self, frame: ContainerFrame) -> None:
        """Decide tightness once every item is known."""
        frame.tight = True
        items = frame.children
        for i, item in enumerate(items):
            has_next_item = i + 1 < len(items)
            if _ends_with_blank_line(item) and has_next_item:
                frame.tight = False
                return
            sub_items = item.children
            for j, sub in enumerate(sub_items):
                if _ends_with_blank_line(sub) and (has_next_item or j + 1 < len(sub_items)):
                    frame.tight = False
                    return


def _ends_with_blank_line(frame: ContainerFrame | None) -> bool:
    """True if the last line inside ``frame`` was blank.

    Descends through the last child of lists and items, visiting each frame
    once so repeated checks stay linear.
    """
    while frame is not None:
        if frame.last_line_blank:
            return True
        if not frame.last_line_checked and frame.kind in (BlockKind.LIST, BlockKind.ITEM):
            frame.last_line_checked = True
            frame = frame.last_child
        else:
            frame.last_line_checked = True
            break
    return False
