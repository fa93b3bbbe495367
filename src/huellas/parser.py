"""Two-phase Markdown parser producing a typed AST.

Phase one (huellas.parsing.blocks) reads the source line by line into a
tree of open/closed frames and fills the ReferenceTable with link and
footnote definitions. Phase two freezes that tree into immutable nodes,
running the inline parser over every leaf once all definitions are known.

Inline resolution order:
1. The main document, in document order
2. Footnote bodies in first-reference order; references found in a body
   number further footnotes, which join the end of the queue
3. Footnote bodies never referenced, in definition order

Every body is resolved exactly once, so mutually referencing footnotes
terminate without special handling.

Thread Safety:
A Parser holds only its configuration and can be shared. Every call to
parse() builds fresh state; the resulting Document is immutable apart from
its ReferenceTable, which nothing modifies after parse() returns.

"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from huellas.config import ParseConfig, get_parse_config
from huellas.lexer.lines import normalize_source
from huellas.location import InlineSpan, SourceLocation
from huellas.nodes import (
    Block,
    BlockQuote,
    CodeBlock,
    Document,
    FootnoteDefinition,
    Heading,
    HtmlBlock,
    List,
    ListItem,
    Paragraph,
    Table,
    TableCell,
    TableRow,
    ThematicBreak,
)
from huellas.parsing.blocks import BlockParser
from huellas.parsing.containers import BlockKind, ContainerFrame
from huellas.parsing.inline import InlineParser
from huellas.references import ReferenceTable, normalize_label

if TYPE_CHECKING:
    from huellas.nodes import Alignment

# GFM task list item: "[ ]", "[x]" or "[X]", whitespace, then content
_TASK_MARKER_RE = re.compile(r"\[([ xX])\][ \t]+(?=\S)")


class Parser:
    """Markdown parser.

    Usage:
        >>> doc = Parser().parse("# Hello\\n\\nWorld")
        >>> doc.children[0]
        Heading(..., level=1, children=(Text(..., content='Hello'),), ...)

    Configuration:
        The config is resolved once, when the Parser is created: the
        explicit argument, else the ambient ParseConfig from the current
        context.

    """

    __slots__ = ("_config", "_source_file")

    def __init__(self, config: ParseConfig | None = None, *, source_file: str | None = None) -> None:
        self._config = config if config is not None else get_parse_config()
        self._source_file = source_file

    @property
    def config(self) -> ParseConfig:
        return self._config

    def parse(self, source: str) -> Document:
        """Parse ``source`` into a Document. Never raises for any input."""
        return _ParseRun(self._config, self._source_file).run(normalize_source(source))


class _ParseRun:
    """State of one parse: the reference table and the inline parser."""

    __slots__ = ("_config", "_source_file", "_references", "_inline", "_pending")

    def __init__(self, config: ParseConfig, source_file: str | None) -> None:
        self._config = config
        self._source_file = source_file
        self._references = ReferenceTable()
        self._inline = InlineParser(config, self._references)
        # normalized label -> frame of a footnote body not resolved yet
        self._pending: dict[str, ContainerFrame] = {}

    def run(self, source: str) -> Document:
        tree = BlockParser(self._config, self._references).parse(source)

        # Bodies are resolved later; the placeholders let references resolve
        for frame in tree.footnotes:
            placeholder = FootnoteDefinition(self._location(frame), frame.label, ())
            if self._references.define_footnote(frame.label, placeholder):
                self._pending[normalize_label(frame.label)] = frame

        children = self._freeze(tree.document)
        self._resolve_footnotes()

        document = tree.document
        location = SourceLocation(
            lineno=1,
            col_offset=1,
            offset=0,
            end_offset=len(source),
            end_lineno=document.end_lineno or 1,
            source_file=self._source_file,
        )
        return Document(location, children, references=self._references)

    # -------------------------------------------------------------------------
    # Footnotes
    # -------------------------------------------------------------------------

    def _resolve_footnotes(self) -> None:
        references = self._references
        next_number = 1
        while True:
            while next_number <= references.numbered_count:
                key = references.numbered_label(next_number)
                next_number += 1
                if key is not None and key in self._pending:
                    self._resolve_footnote(key)
            unreferenced = next(iter(self._pending), None)
            if unreferenced is None:
                return
            self._resolve_footnote(unreferenced)

    def _resolve_footnote(self, key: str) -> None:
        frame = self._pending.pop(key)
        definition = FootnoteDefinition(self._location(frame), frame.label, self._freeze(frame))
        self._references.replace_footnote(frame.label, definition)

    # -------------------------------------------------------------------------
    # Freezing frames into nodes
    # -------------------------------------------------------------------------

    def _freeze(self, root: ContainerFrame) -> tuple[Block, ...]:
        """Build the child nodes of ``root`` without recursion.

        Frames are visited depth first; leaves are frozen (and their inline
        content parsed) in document order, containers once their last
        child is done.
        """
        work: list[tuple[ContainerFrame, int]] = [(root, 0)]
        built: list[list[Block]] = [[]]
        while True:
            frame, index = work[-1]
            if index < len(frame.children):
                work[-1] = (frame, index + 1)
                child = frame.children[index]
                if child.is_container:
                    work.append((child, 0))
                    built.append([])
                else:
                    if index == 0 and frame.kind is BlockKind.ITEM:
                        self._take_task_marker(frame, child)
                    built[-1].append(self._freeze_leaf(child))
                continue

            work.pop()
            children = tuple(built.pop())
            if not work:
                return children
            built[-1].append(self._freeze_container(frame, children))

    def _take_task_marker(self, item: ContainerFrame, first: ContainerFrame) -> None:
        """Strip a ``[ ]``/``[x]`` marker from an item's first paragraph."""
        if not self._config.task_lists_enabled or first.kind is not BlockKind.PARAGRAPH:
            return
        match = _TASK_MARKER_RE.match(first.content)
        if match is None:
            return
        item.checked = match.group(1) != " "
        first.lines[0] = first.lines[0][match.end() :]

    def _freeze_container(self, frame: ContainerFrame, children: tuple) -> Block:
        location = self._location(frame)
        kind = frame.kind
        if kind is BlockKind.BLOCK_QUOTE:
            return BlockQuote(location, children)
        if kind is BlockKind.LIST:
            return List(
                location,
                children,
                ordered=frame.ordered,
                start=frame.start,
                tight=frame.tight,
                marker=frame.marker_char,
            )
        if kind is BlockKind.ITEM:
            return ListItem(location, children, checked=frame.checked)
        return FootnoteDefinition(location, frame.label, children)

    def _freeze_leaf(self, frame: ContainerFrame) -> Block:
        location = self._location(frame)
        kind = frame.kind
        if kind is BlockKind.PARAGRAPH:
            span = self._span(frame.content, location)
            return Paragraph(location, self._inline.parse(span.text, location), span)
        if kind is BlockKind.HEADING:
            span = self._span(frame.content, location)
            return Heading(
                location,
                frame.level,
                self._inline.parse(span.text, location),
                span,
                style="setext" if frame.setext else "atx",
            )
        if kind is BlockKind.CODE_BLOCK:
            literal = "\n".join(frame.lines) + "\n" if frame.lines else ""
            if frame.fenced:
                return CodeBlock(location, literal, frame.info, fenced=True, marker=frame.fence_char)
            return CodeBlock(location, literal, None, fenced=False)
        if kind is BlockKind.HTML_BLOCK:
            return HtmlBlock(location, "\n".join(frame.lines))
        if kind is BlockKind.TABLE:
            return self._freeze_table(frame, location)
        return ThematicBreak(location)

    def _freeze_table(self, frame: ContainerFrame, location: SourceLocation) -> Table:
        alignments = frame.alignments
        rows: list[TableRow] = []
        for row_index, (cells, lineno) in enumerate(zip(frame.rows, frame.row_lines, strict=True)):
            row_location = SourceLocation(lineno, frame.col, source_file=self._source_file)
            frozen: list[TableCell] = []
            for column, text in enumerate(cells):
                align: Alignment = alignments[column] if column < len(alignments) else None
                span = InlineSpan(text, location.offset, location.end_offset)
                frozen.append(
                    TableCell(row_location, self._inline.parse(text, row_location), span, align)
                )
            rows.append(TableRow(row_location, tuple(frozen), is_header=row_index == 0))
        return Table(location, rows[0], tuple(rows[1:]), alignments)

    def _span(self, text: str, location: SourceLocation) -> InlineSpan:
        return InlineSpan(text, location.offset, location.end_offset)

    def _location(self, frame: ContainerFrame) -> SourceLocation:
        return SourceLocation(
            lineno=frame.lineno,
            col_offset=frame.col,
            offset=frame.offset,
            end_offset=frame.end_offset,
            end_lineno=frame.end_lineno or frame.lineno,
            source_file=self._source_file,
        )
