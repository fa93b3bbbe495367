"""Footnote definition parsing.

    [^note]: First paragraph of the footnote,
        continued here.

        Second paragraph, indented.

A definition opens a container. Continuation lines must be indented by
at least min(content column, 4) columns relative to the marker; lazy
paragraph continuation applies as in block quotes. When the container
closes, it is detached from the tree: its body belongs to the document's
reference table and is emitted after the main content.

Thread Safety:
All state lives on the parser instance and its frames.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from huellas.lexer.classifiers.footnote import classify_footnote_definition
from huellas.parsing.containers import BlockKind, ContainerFrame

if TYPE_CHECKING:
    from huellas.lexer.lines import LineCursor
    from huellas.parsing.containers import ContainerStack

# Continuation indent never has to exceed this many columns
MAX_FOOTNOTE_INDENT = 4


class FootnoteParsingMixin:
    """Mixin for footnote definition containers.

    Required Host Attributes:
        - _stack: ContainerStack
        - _footnotes_enabled: bool
        - _footnote_frames: list[ContainerFrame] (definition order)

    Required Host Methods:
        - _close_unmatched() -> None
        - _add_child(kind, column, offset) -> ContainerFrame
        - _nesting_allowed(container, levels) -> bool

    """

    _stack: ContainerStack
    _footnotes_enabled: bool
    _footnote_frames: list[ContainerFrame]

    def _close_unmatched(self) -> None:
        raise NotImplementedError

    def _add_child(self, kind: BlockKind, column: int, offset: int) -> ContainerFrame:
        raise NotImplementedError

    def _nesting_allowed(self, container: ContainerFrame, levels: int) -> bool:
        raise NotImplementedError

    def _try_start_footnote(self, cursor: LineCursor, container: ContainerFrame) -> int:
        """Block start: ``[^label]:``. May interrupt a paragraph, as in GFM."""
        if not self._footnotes_enabled or cursor.indented:
            return 0
        marker = classify_footnote_definition(cursor.rest_from_nonspace())
        if marker is None or not self._nesting_allowed(container, 1):
            return 0

        marker_column = cursor.next_nonspace_column
        column = marker_column
        offset = cursor.next_nonspace
        cursor.skip_spaces()
        cursor.advance(marker.length)

        self._close_unmatched()
        frame = self._add_child(BlockKind.FOOTNOTE_DEFINITION, column, offset)
        frame.label = marker.label

        cursor.find_next_nonspace()
        if cursor.is_blank():
            content_column = cursor.column + 1
        else:
            content_column = cursor.next_nonspace_column
        frame.content_indent = min(content_column - marker_column, MAX_FOOTNOTE_INDENT)
        self._footnote_frames.append(frame)
        return 1

    def _continue_footnote(self, frame: ContainerFrame, cursor: LineCursor) -> int:
        """Continuation: blank lines and sufficiently indented lines."""
        if cursor.is_blank():
            cursor.skip_spaces()
            return 0
        if cursor.indent >= frame.content_indent:
            cursor.advance_columns(frame.content_indent)
            return 0
        return 1

    def _finalize_footnote(self, frame: ContainerFrame) -> None:
        """Detach the closed definition from its parent."""
        parent = self._stack.current()
        if parent.children and parent.children[-1] is frame:
            parent.children.pop()
