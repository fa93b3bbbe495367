"""Canonical Markdown writer.

Consumes an event sequence and writes Markdown that parses back to the
same events. The output is canonical rather than faithful to the original
source:

- ATX headings; setext only for multi-line level 1-2 headings
- Fenced code with a fence longer than any run of the fence character
  inside; indented code stays indented
- ``-`` bullets at even nesting depths and ``*`` at odd ones, so nested
  markers never read as a thematic break; an adjacent sibling list uses
  ``+`` (or ``)`` for ordered lists) since two lists in a row would
  otherwise merge
- A paragraph whose first line is a lone HTML tag is preceded by an
  unused link reference definition, so it does not open an HTML block;
  the same line parts two adjacent indented code blocks
- Shortcut and collapsed links keep their label verbatim
- Nested strikethrough alternates between ``~~`` and ``~``
- Footnotes and definitions go before a top-level HTML block that never
  closes, since it would swallow them
- ``___`` thematic breaks
- Pipe tables padded to the display width of each column, with
  alignment colons
- Footnote definitions with 4-space continuation lines
- Definitions for reference-style links collected at the end
- Every Markdown-significant character in text escaped

Each container frame collects its children as finished blocks (lists of
lines) and prefixes them when it closes, so nesting is handled by the
frame stack and nothing recurses.

Thread Safety:
All per-write state lives in a _WriteRun created by each write() call.
A MarkdownWriter can be shared between threads.

"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from huellas.errors import RenderError
from huellas.events import (
    Code,
    End,
    Event,
    FootnoteReference,
    HardBreak,
    Html,
    InlineHtml,
    SoftBreak,
    Start,
    Tag,
    TaskListMarker,
    Text,
)
from huellas.lexer.classifiers.html import classify_html_block_start, html_block_ends
from huellas.nodes import LinkType
from huellas.references import normalize_label
from huellas.stringbuilder import StringBuilder
from huellas.utils.logger import get_logger
from huellas.utils.text import display_width

logger = get_logger(__name__)

# Escaped wherever they appear in text
_ALWAYS_ESCAPE = frozenset("\\`*_[]<&~|!#")

# Escaped when they start a line (block markers)
_LINE_START_ESCAPE = frozenset(">-+=")

_ORDERED_MARKER_RE = re.compile(r"[0-9]+(?=[.)])")

# Characters that cannot appear literally in a text line
_TEXT_ENTITIES = {"\n": "&#10;", "\r": "&#13;"}
_SPACE_ENTITIES = {" ": "&#32;", "\t": "&#9;"}

_BLOCK_HOLDERS = frozenset({Tag.BLOCK_QUOTE, Tag.ITEM, Tag.FOOTNOTE_DEFINITION})
_INLINE_LEAVES = frozenset({Tag.PARAGRAPH, Tag.HEADING, Tag.TABLE_CELL})
_INLINE_CONTAINERS = frozenset({Tag.EMPHASIS, Tag.STRONG, Tag.STRIKETHROUGH, Tag.LINK, Tag.IMAGE})

_MIN_FENCE = 3
_MIN_TABLE_COLUMN = 3
_FOOTNOTE_INDENT = "    "
_CODE_INDENT = "    "

# Stands in for the guard definition line until every link label is known
_GUARD_TOKEN = "\x00guard\x00"
_GUARD_LABEL = "html"


def escape_text(text: str, *, at_line_start: bool = False) -> str:
    """Escape ``text`` so that it parses back as literal text.

    Args:
        text: Literal text
        at_line_start: The text begins an output line, where block
            markers and leading whitespace need protection too
    """
    out: list[str] = []
    pos = 0
    if at_line_start:
        while pos < len(text) and text[pos] in _SPACE_ENTITIES:
            out.append(_SPACE_ENTITIES[text[pos]])
            pos += 1
        if pos < len(text):
            match = _ORDERED_MARKER_RE.match(text, pos)
            if match is not None:
                out.append(match.group(0))
                out.append("\\")
                pos = match.end()
            elif text[pos] in _LINE_START_ESCAPE:
                out.append("\\")
    for char in text[pos:]:
        if char in _ALWAYS_ESCAPE:
            out.append("\\")
            out.append(char)
        else:
            out.append(_TEXT_ENTITIES.get(char, char))
    return "".join(out)


def _longest_run(text: str, char: str) -> int:
    longest = 0
    for match in re.finditer(re.escape(char) + "+", text):
        longest = max(longest, len(match.group(0)))
    return longest


def _code_span(code: str, *, in_table: bool) -> str:
    """CommonMark 6.1: a backtick string longer than any run inside."""
    if not code:
        return ""
    code = _in_cell(code, in_table)
    fence = "`" * (_longest_run(code, "`") + 1)
    if (
        code[0] == "`"
        or code[-1] == "`"
        or (code[0] == " " and code[-1] == " " and code.strip(" "))
    ):
        code = f" {code} "
    return f"{fence}{code}{fence}"


def _destination(url: str) -> str:
    if not url or any(c in " <>\x7f" or ord(c) < 0x20 for c in url):
        escaped = url.replace("\\", "\\\\").replace("<", "\\<").replace(">", "\\>")
        return "<" + escaped.replace("&", "\\&") + ">"
    escaped = url.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    return escaped.replace("&", "\\&")


def _title(title: str | None) -> str:
    if title is None:
        return ""
    escaped = title.replace("\\", "\\\\").replace('"', '\\"').replace("&", "\\&")
    return f' "{escaped}"'


def _in_cell(raw: str, in_table: bool) -> str:
    """Escape pipes in raw output inside a table cell.

    GFM 4.10: the row splitter turns ``\\|`` into ``|`` before inline
    parsing, so this is safe inside code, HTML and link destinations.
    """
    return raw.replace("|", "\\|") if in_table else raw


def _runs_to_end(lines: list[str]) -> bool:
    """Check for an HTML block (types 1-5) whose end condition never matches.

    Such a block swallows every line after it up to the end of its
    container.
    """
    if not lines:
        return False
    block_type = classify_html_block_start(lines[0].lstrip(" "), in_paragraph=False)
    if block_type is None or block_type > 5:
        return False
    return not any(html_block_ends(block_type, line) for line in lines)


def _prefix(lines: list[str], first: str, rest: str) -> list[str]:
    """Prefix the first line with ``first`` and the others with ``rest``.

    Empty lines stay empty (a blank line needs no indentation).
    """
    if not lines:
        return [first.rstrip()]
    out = [first + lines[0] if lines[0] else first.rstrip()]
    out.extend(rest + line if line else "" for line in lines[1:])
    return out


def _join(blocks: list[list[str]], *, tight: bool) -> list[str]:
    lines: list[str] = []
    for i, block in enumerate(blocks):
        if i and not tight:
            lines.append("")
        lines.extend(block)
    return lines


@dataclass(slots=True)
class _Frame:
    """One open Start event in the writer."""

    tag: Tag | None
    start: Start | None = None
    # Finished child blocks (block holders and the document)
    blocks: list[list[str]] = field(default_factory=list)
    # Marker used by the previous sibling if it was a list
    last_list: tuple[bool, str] | None = None
    # The previous sibling was indented code
    last_indented: bool = False
    # Inline output (leaves and inline containers)
    out: StringBuilder = field(default_factory=StringBuilder)
    at_line_start: bool = True
    after_shortcut: bool = False
    # Emphasis or strikethrough delimiter chosen for this frame
    delimiter: str = ""
    # Lists: lines per item; tables: (is_header, cells) per row
    items: list[list[str]] = field(default_factory=list)
    rows: list[tuple[bool, list[str]]] = field(default_factory=list)
    cells: list[str] = field(default_factory=list)
    text: list[str] = field(default_factory=list)
    checked: bool | None = None


class MarkdownWriter:
    """Write events as canonical Markdown.

    Usage:
        >>> MarkdownWriter().write(events("Hello *world*"))
        'Hello *world*\\n'

    Raises:
        RenderError: If the event sequence is not balanced or puts an
            event where it cannot appear.

    """

    __slots__ = ()

    def write(self, events: Iterable[Event]) -> str:
        return _WriteRun().run(events)


class _WriteRun:
    __slots__ = ("_stack", "_leaf", "_definitions", "_guarded", "_html_tail")

    def __init__(self) -> None:
        self._stack: list[_Frame] = [_Frame(None)]
        self._leaf: _Frame | None = None
        # normalized label -> definition line
        self._definitions: dict[str, str] = {}
        self._guarded = False
        # Index of a document-level HTML block that runs to the end
        self._html_tail: int | None = None

    def run(self, events: Iterable[Event]) -> str:
        for index, event in enumerate(events):
            try:
                if isinstance(event, Start):
                    self._start(event)
                elif isinstance(event, End):
                    self._end(event)
                else:
                    self._leaf_event(event)
            except RenderError as error:
                raise RenderError(f"event {index}: {error}") from None
        if len(self._stack) > 1:
            raise RenderError(f"unclosed {self._stack[-1].tag.name} at end of events")

        document = self._stack[0]
        blocks = list(document.blocks)
        tail = [blocks.pop(self._html_tail)] if self._html_tail is not None else []
        if self._definitions:
            blocks.append(list(self._definitions.values()))
        # Footnotes and definitions would end up inside an unterminated HTML block
        blocks.extend(tail)
        lines = _join(blocks, tight=False)
        if not lines:
            return ""
        text = "\n".join(lines) + "\n"
        if self._guarded:
            text = text.replace(_GUARD_TOKEN, self._guard_definition())
        return text

    def _guard_definition(self) -> str:
        """A definition line whose label no written link uses."""
        label = _GUARD_LABEL
        suffix = 1
        while normalize_label(label) in self._definitions:
            suffix += 1
            label = f"{_GUARD_LABEL}-{suffix}"
        return f"[{label}]: #"

    # -------------------------------------------------------------------------
    # Start
    # -------------------------------------------------------------------------

    def _start(self, event: Start) -> None:
        tag = event.tag
        parent = self._stack[-1]
        frame = _Frame(tag, event)

        if tag in _INLINE_CONTAINERS:
            if self._leaf is None:
                raise RenderError(f"{tag.name} outside inline content")
            self._leaf.at_line_start = False
            if tag is Tag.EMPHASIS or tag is Tag.STRONG:
                frame.delimiter = self._emphasis_delimiter(tag)
            elif tag is Tag.STRIKETHROUGH:
                frame.delimiter = self._strikethrough_delimiter()
        elif tag is Tag.ITEM:
            if parent.tag is not Tag.LIST:
                raise RenderError("ITEM outside a LIST")
        elif tag is Tag.TABLE_HEAD or tag is Tag.TABLE_ROW:
            if parent.tag is not Tag.TABLE:
                raise RenderError(f"{tag.name} outside a TABLE")
        elif tag is Tag.TABLE_CELL:
            if parent.tag is not Tag.TABLE_HEAD and parent.tag is not Tag.TABLE_ROW:
                raise RenderError("TABLE_CELL outside a table row")
        elif tag is Tag.FOOTNOTE_DEFINITION:
            if parent.tag is not None:
                raise RenderError("FOOTNOTE_DEFINITION must be at document level")
        elif parent.tag is not None and parent.tag not in _BLOCK_HOLDERS:
            raise RenderError(f"{tag.name} inside {parent.tag.name}")

        if tag in _INLINE_LEAVES:
            self._leaf = frame
        self._stack.append(frame)

    def _emphasis_delimiter(self, tag: Tag) -> str:
        """Use ``*``, or ``_`` right after an opening ``*`` delimiter."""
        parent = self._stack[-1]
        char = "*"
        if parent.delimiter.startswith("*") and not parent.out:
            char = "_"
        return char * (1 if tag is Tag.EMPHASIS else 2)

    def _strikethrough_delimiter(self) -> str:
        """Alternate ``~~`` and ``~`` so nested runs never pair with each other."""
        for frame in reversed(self._stack):
            if frame.tag is Tag.STRIKETHROUGH:
                return "~" if frame.delimiter == "~~" else "~~"
        return "~~"

    # -------------------------------------------------------------------------
    # Leaf events
    # -------------------------------------------------------------------------

    def _leaf_event(self, event: Event) -> None:
        frame = self._stack[-1]

        if isinstance(event, TaskListMarker):
            if frame.tag is not Tag.ITEM:
                raise RenderError("TaskListMarker outside a list item")
            frame.checked = event.checked
            return
        if frame.tag is Tag.CODE_BLOCK and isinstance(event, Text):
            frame.text.append(event.text)
            return
        if frame.tag is Tag.HTML_BLOCK and isinstance(event, Html):
            frame.text.append(event.html)
            return

        leaf = self._leaf
        if leaf is None or (frame.tag not in _INLINE_LEAVES and frame.tag not in _INLINE_CONTAINERS):
            raise RenderError(f"{type(event).__name__} outside inline content")

        out = frame.out
        if isinstance(event, Text):
            text = escape_text(event.text, at_line_start=leaf.at_line_start)
            if leaf.after_shortcut and text[:1] in ("(", ":"):
                text = "\\" + text
            out.append(text)
        elif isinstance(event, Code):
            out.append(_code_span(event.code, in_table=leaf.tag is Tag.TABLE_CELL))
        elif isinstance(event, InlineHtml):
            out.append(_in_cell(event.html, leaf.tag is Tag.TABLE_CELL))
        elif isinstance(event, FootnoteReference):
            out.append(f"[^{event.label}]")
        elif isinstance(event, SoftBreak):
            self._protect_trailing_space(out)
            out.append("\n")
        elif isinstance(event, HardBreak):
            self._protect_trailing_space(out)
            out.append("\\\n")
        else:
            raise RenderError(f"{type(event).__name__} inside inline content")

        leaf.after_shortcut = False
        leaf.at_line_start = isinstance(event, (SoftBreak, HardBreak))

    def _protect_trailing_space(self, out: StringBuilder) -> None:
        """Spaces before a line end would be stripped: write them as entities."""
        trailing = out.take_trailing(" \t")
        out.append("".join(_SPACE_ENTITIES[c] for c in trailing))

    # -------------------------------------------------------------------------
    # End
    # -------------------------------------------------------------------------

    def _end(self, event: End) -> None:
        if len(self._stack) == 1:
            raise RenderError(f"End({event.tag.name}) without a matching Start")
        frame = self._stack.pop()
        if frame.tag is not event.tag:
            raise RenderError(f"End({event.tag.name}) closes {frame.tag.name}")
        parent = self._stack[-1]
        tag = event.tag

        if tag in _INLINE_CONTAINERS:
            self._end_inline(frame, parent)
        elif tag is Tag.PARAGRAPH:
            self._leaf = None
            lines = self._inline_lines(frame)
            if parent.tag is Tag.ITEM and parent.checked is not None and not parent.blocks:
                lines[0] = ("[x] " if parent.checked else "[ ] ") + lines[0]
            if classify_html_block_start(lines[0], in_paragraph=False) == 7:
                # Type 7 cannot interrupt a paragraph, so a definition line keeps it one
                lines.insert(0, _GUARD_TOKEN)
                self._guarded = True
            self._add_block(parent, lines)
        elif tag is Tag.HEADING:
            self._leaf = None
            self._add_block(parent, self._heading_lines(frame))
        elif tag is Tag.CODE_BLOCK:
            lines = self._code_lines(frame)
            indented = lines[0].startswith(_CODE_INDENT)
            if indented and parent.last_indented:
                # Adjacent indented blocks would merge; a definition line parts them
                self._add_block(parent, [_GUARD_TOKEN])
                self._guarded = True
            self._add_block(parent, lines, indented=indented)
        elif tag is Tag.HTML_BLOCK:
            self._add_block(parent, "".join(frame.text).split("\n"))
        elif tag is Tag.THEMATIC_BREAK:
            self._add_block(parent, ["___"])
        elif tag is Tag.BLOCK_QUOTE:
            lines = _join(frame.blocks, tight=False)
            self._add_block(parent, [f"> {line}" if line else ">" for line in lines] or [">"])
        elif tag is Tag.ITEM:
            tight = bool(parent.start.get("tight", True)) if parent.start else True
            parent.items.append(_join(frame.blocks, tight=tight))
        elif tag is Tag.LIST:
            self._end_list(frame, parent)
        elif tag is Tag.TABLE_CELL:
            self._leaf = None
            self._protect_trailing_space(frame.out)
            parent.cells.append(frame.out.build())
        elif tag is Tag.TABLE_HEAD or tag is Tag.TABLE_ROW:
            parent.rows.append((tag is Tag.TABLE_HEAD, frame.cells))
        elif tag is Tag.TABLE:
            self._add_block(parent, self._table_lines(frame))
        elif tag is Tag.FOOTNOTE_DEFINITION:
            label = frame.start.get("label", "") if frame.start else ""
            lines = _join(frame.blocks, tight=False)
            self._add_block(parent, _prefix(lines, f"[^{label}]: ", _FOOTNOTE_INDENT))

        if parent.tag is None and tag is not Tag.FOOTNOTE_DEFINITION:
            runs_to_end = tag is Tag.HTML_BLOCK and _runs_to_end(parent.blocks[-1])
            self._html_tail = len(parent.blocks) - 1 if runs_to_end else None

    def _add_block(
        self,
        parent: _Frame,
        lines: list[str],
        list_marker: tuple[bool, str] | None = None,
        *,
        indented: bool = False,
    ) -> None:
        parent.blocks.append(lines)
        parent.last_list = list_marker
        parent.last_indented = indented

    def _end_inline(self, frame: _Frame, parent: _Frame) -> None:
        content = frame.out.build()
        tag = frame.tag
        start = frame.start
        assert start is not None
        leaf = self._leaf
        assert leaf is not None

        if tag is Tag.EMPHASIS or tag is Tag.STRONG:
            parent.out.append(f"{frame.delimiter}{content}{frame.delimiter}")
        elif tag is Tag.STRIKETHROUGH:
            parent.out.append(f"{frame.delimiter}{content}{frame.delimiter}")
        else:
            parent.out.append(self._link_text(tag, start, content, in_table=leaf.tag is Tag.TABLE_CELL))
            leaf.after_shortcut = start.get("link_type") is LinkType.SHORTCUT
            return
        leaf.after_shortcut = False

    def _link_text(self, tag: Tag, start: Start, content: str, *, in_table: bool) -> str:
        """Write a link or image.

        Shortcut and collapsed links repeat their label verbatim as the link
        text: the label is the source of that text, and escaping the text
        could change the label it matches.
        """
        link_type = start.get("link_type", LinkType.INLINE)
        url = start.get("url", "")
        title = start.get("title")
        label = start.get("label", "")
        bang = "!" if tag is Tag.IMAGE else ""

        if link_type is LinkType.AUTOLINK:
            return _in_cell(f"<{url}>", in_table)
        if link_type is LinkType.EMAIL:
            return _in_cell(f"<{url.removeprefix('mailto:')}>", in_table)
        if label and link_type in (LinkType.REFERENCE, LinkType.COLLAPSED, LinkType.SHORTCUT):
            key = normalize_label(label)
            if key not in self._definitions:
                self._definitions[key] = f"[{label}]: {_destination(url)}{_title(title)}"
            written_label = _in_cell(label, in_table)
            if link_type is LinkType.REFERENCE:
                return f"{bang}[{content}][{written_label}]"
            if link_type is LinkType.COLLAPSED:
                return f"{bang}[{written_label}][]"
            return f"{bang}[{written_label}]"
        target = _in_cell(_destination(url) + _title(title), in_table)
        return f"{bang}[{content}]({target})"

    def _inline_lines(self, frame: _Frame) -> list[str]:
        self._protect_trailing_space(frame.out)
        return frame.out.build().split("\n")

    def _heading_lines(self, frame: _Frame) -> list[str]:
        level = frame.start.get("level", 1) if frame.start else 1
        lines = self._inline_lines(frame)
        if len(lines) > 1:
            if level <= 2:
                return [*lines, "=" * 3 if level == 1 else "-" * 3]
            logger.debug("Multi-line level %d heading written on one line", level)
            lines = [" ".join(line.removesuffix("\\") for line in lines)]
        text = lines[0]
        return ["#" * level + (f" {text}" if text else "")]

    def _code_lines(self, frame: _Frame) -> list[str]:
        start = frame.start
        literal = "".join(frame.text)
        fenced = start.get("fenced", True) if start else True
        info = start.get("info") if start else None
        body = literal.removesuffix("\n").split("\n") if literal else []

        if not fenced and body and body[0].strip(" \t"):
            return [_CODE_INDENT + line if line else "" for line in body]

        info = info or ""
        char = "~" if "`" in info else "`"
        fence = char * max(_MIN_FENCE, _longest_run(literal, char) + 1)
        info = info.replace("\\", "\\\\").replace("&", "\\&")
        return [fence + info, *body, fence]

    def _end_list(self, frame: _Frame, parent: _Frame) -> None:
        start = frame.start
        assert start is not None
        ordered = bool(start.get("ordered", False))
        first_number = int(start.get("start", 1) or 0)
        tight = bool(start.get("tight", True))

        if ordered:
            char = ")" if parent.last_list == (True, ".") else "."
        else:
            depth = sum(1 for ancestor in self._stack if ancestor.tag is Tag.LIST)
            bullet = "*" if depth % 2 else "-"
            char = "+" if parent.last_list == (False, bullet) else bullet

        lines: list[str] = []
        for i, item in enumerate(frame.items):
            marker = f"{first_number + i}{char}" if ordered else char
            if i and not tight:
                lines.append("")
            lines.extend(_prefix(item, marker + " ", " " * (len(marker) + 1)))
        self._add_block(parent, lines, (ordered, char))

    def _table_lines(self, frame: _Frame) -> list[str]:
        alignments = frame.start.get("alignments", ()) if frame.start else ()
        rows = frame.rows
        columns = max([len(alignments), *(len(cells) for _, cells in rows)])
        widths = [_MIN_TABLE_COLUMN] * columns
        for _, cells in rows:
            for i, cell in enumerate(cells):
                widths[i] = max(widths[i], display_width(cell))

        def align_of(i: int) -> str | None:
            return alignments[i] if i < len(alignments) else None

        def pad(cell: str, i: int) -> str:
            gap = widths[i] - display_width(cell)
            align = align_of(i)
            if align == "right":
                return " " * gap + cell
            if align == "center":
                left = gap // 2
                return " " * left + cell + " " * (gap - left)
            return cell + " " * gap

        def row_line(cells: list[str]) -> str:
            return "| " + " | ".join(pad(cell, i) for i, cell in enumerate(cells)) + " |"

        delimiter_cells: list[str] = []
        for i in range(len(alignments)):
            width = widths[i]
            align = align_of(i)
            if align == "left":
                delimiter_cells.append(":" + "-" * (width - 1))
            elif align == "right":
                delimiter_cells.append("-" * (width - 1) + ":")
            elif align == "center":
                delimiter_cells.append(":" + "-" * (width - 2) + ":")
            else:
                delimiter_cells.append("-" * width)

        lines: list[str] = []
        for is_header, cells in rows:
            lines.append(row_line(cells))
            if is_header:
                lines.append("| " + " | ".join(delimiter_cells) + " |")
        return lines


def render_markdown(events: Iterable[Event]) -> str:
    """Write ``events`` as canonical Markdown."""
    return MarkdownWriter().write(events)
