"""Table parsing for Huellas.

Handles GFM (GitHub Flavored Markdown) pipe tables:

    | Header 1 | Header 2 |   <- header row (last line of a paragraph)
    |----------|---------:|   <- delimiter row (fixes alignments)
    | Cell 1   | Cell 2   |   <- body rows, until a blank line or another block

The header fixes the column count. A delimiter row with a different cell
count is not a table; both lines stay paragraph text. Body rows whose cell
count differs from the header follow ParseConfig.table_ragged_rows.

Thread Safety:
All state lives on the parser instance and its frames.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from huellas.lexer.classifiers.table import classify_table_delimiter, split_table_row
from huellas.parsing.containers import BlockKind, ContainerFrame
from huellas.utils.logger import get_logger

if TYPE_CHECKING:
    from huellas.config import RaggedRowPolicy
    from huellas.lexer.lines import LineCursor
    from huellas.parsing.containers import ContainerStack

logger = get_logger(__name__)


class TableParsingMixin:
    """Mixin for GFM table start, rows and ragged-row policy.

    Required Host Attributes:
        - _stack: ContainerStack
        - _tables_enabled: bool
        - _ragged_rows: RaggedRowPolicy
        - _line_number: int

    Required Host Methods:
        - _add_child(kind, column, offset) -> ContainerFrame
        - _finalize(frame) -> None

    """

    _stack: ContainerStack
    _tables_enabled: bool
    _ragged_rows: RaggedRowPolicy
    _line_number: int

    def _add_child(self, kind: BlockKind, column: int, offset: int) -> ContainerFrame:
        raise NotImplementedError

    def _finalize(self, frame: ContainerFrame) -> None:
        raise NotImplementedError

    def _try_start_table(self, cursor: LineCursor, container: ContainerFrame) -> int:
        """Block start: a delimiter row under a paragraph's last line."""
        if not self._tables_enabled or cursor.indented:
            return 0
        if container.kind is not BlockKind.PARAGRAPH or container is not self._stack.current():
            return 0
        alignments = classify_table_delimiter(cursor.rest_from_nonspace())
        if alignments is None:
            return 0

        paragraph = container
        header_line = paragraph.lines[-1]
        header = split_table_row(header_line)
        if len(header) != len(alignments):
            logger.debug(
                "Table delimiter row at line %d has %d cells, header has %d; kept as text",
                self._line_number,
                len(alignments),
                len(header),
            )
            return 0

        header_lineno = self._line_number - 1
        column = paragraph.col
        offset = paragraph.end_offset - len(header_line)
        if len(paragraph.lines) > 1:
            # Earlier lines stay a paragraph of their own
            paragraph.lines.pop()
            self._finalize(paragraph)
        else:
            self._stack.pop()
            self._stack.current().children.pop()

        table = self._add_child(BlockKind.TABLE, 0, 0)
        table.lineno = header_lineno
        table.col = column
        table.offset = offset
        table.alignments = alignments
        table.rows.append(header)
        table.row_lines.append(header_lineno)
        cursor.offset = len(cursor.text)
        return 2

    def _continue_table(self, frame: ContainerFrame, cursor: LineCursor) -> int:
        """Continuation: any non-blank line is a candidate row."""
        return 1 if cursor.is_blank() else 0

    def _add_table_row(self, frame: ContainerFrame, cursor: LineCursor) -> bool:
        """Add the rest of the line as a body row.

        Returns:
            False if the row was rejected (the caller then ends the table
            and treats the line as paragraph text).
        """
        cursor.skip_spaces()
        cells = split_table_row(cursor.content_for_leaf())
        width = len(frame.alignments)
        if len(cells) != width:
            if self._ragged_rows == "reject":
                logger.debug(
                    "Ragged table row at line %d (%d cells, expected %d) ends the table",
                    self._line_number,
                    len(cells),
                    width,
                )
                return False
            if self._ragged_rows == "normalize":
                cells = cells[:width] + [""] * (width - len(cells))
        frame.rows.append(cells)
        frame.row_lines.append(self._line_number)
        return True
