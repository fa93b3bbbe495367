"""Rebuild a Document from an event sequence.

The inverse of huellas.emitter: any well-nested event sequence (from a
parse, from a filter over a parse, or written by hand) becomes a typed
tree again. The builder keeps a stack of open frames and never recurses.

Rebuilt nodes carry SourceLocation.unknown(). The ReferenceTable of the
result is rebuilt too: footnote definitions are defined in stream order,
footnote references are marked in stream order (which reproduces the
original numbering), and reference-style links define their labels.

Example:
    >>> doc = parse("Hello *world*")
    >>> rebuilt = build_document(iter_events(doc))
    >>> list(iter_events(rebuilt)) == list(iter_events(doc))
    True

"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from huellas import nodes
from huellas.errors import EventStreamError
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
from huellas.location import SourceLocation
from huellas.references import LinkDefinition, ReferenceTable

_REFERENCE_LINK_TYPES = frozenset(
    {nodes.LinkType.REFERENCE, nodes.LinkType.COLLAPSED, nodes.LinkType.SHORTCUT}
)

# Containers that hold only one kind of child
_CHILD_TAGS: dict[Tag, frozenset[Tag]] = {
    Tag.LIST: frozenset({Tag.ITEM}),
    Tag.TABLE: frozenset({Tag.TABLE_HEAD, Tag.TABLE_ROW}),
    Tag.TABLE_HEAD: frozenset({Tag.TABLE_CELL}),
    Tag.TABLE_ROW: frozenset({Tag.TABLE_CELL}),
}

# Tags whose frame collects inline nodes
_INLINE_HOLDERS = frozenset(
    {
        Tag.PARAGRAPH,
        Tag.HEADING,
        Tag.TABLE_CELL,
        Tag.EMPHASIS,
        Tag.STRONG,
        Tag.STRIKETHROUGH,
        Tag.LINK,
        Tag.IMAGE,
    }
)


@dataclass(slots=True)
class _Frame:
    """An open Start event and what has been collected inside it."""

    tag: Tag
    start: Start
    index: int
    children: list[Any] = field(default_factory=list)
    text: list[str] = field(default_factory=list)
    checked: bool | None = None


@dataclass(frozen=True, slots=True)
class BuildContext:
    """Where the builder stands when it offers events to a hook.

    Attributes:
        depth: Number of open tags (0 at document level)
        parent_tag: Innermost open tag, or None at document level
        parent_collects_inlines: The innermost open tag holds inline nodes
        event_index: Position of the offered event in the stream
    """

    depth: int
    parent_tag: Tag | None
    parent_collects_inlines: bool
    event_index: int


# Called with the whole stream and the current position; returns the
# number of events claimed and the node that replaces them, or None
type BuildHook = Callable[[Sequence[Event], int, BuildContext], tuple[int, nodes.Node] | None]


def build_document(events: Iterable[Event], *, hook: BuildHook | None = None) -> nodes.Document:
    """Build a Document from ``events``.

    Args:
        events: Well-nested event sequence
        hook: Offered every position before the builder handles the
            event there. A hook that returns ``(count, node)`` replaces
            the next ``count`` events with ``node``, usually a CustomBlock
            or CustomInline. The node lands in the innermost open tag, so
            a claim must leave the stream balanced.

    Raises:
        EventStreamError: If an End does not match the innermost Start,
            an event appears where it cannot, the stream ends with tags
            still open, or a hook claims no events or places a node where
            it cannot go.

    Example:
        >>> def admonitions(stream, index, context):
        ...     event = stream[index]
        ...     if isinstance(event, Html) and event.html.startswith("<aside"):
        ...         return 1, Aside(SourceLocation.unknown(), event.html)
        ...     return None
        >>> doc = build_document(events(source), hook=admonitions)

    """
    return _Builder().build(events, hook)


def combine_hooks(*hooks: BuildHook) -> BuildHook:
    """Return a hook that offers each position to ``hooks`` in order.

    The first hook to claim the events wins.
    """

    def combined(stream: Sequence[Event], index: int, context: BuildContext) -> tuple[int, nodes.Node] | None:
        for hook in hooks:
            claim = hook(stream, index, context)
            if claim is not None:
                return claim
        return None

    return combined


def _needs_parent(tag: Tag) -> bool:
    """True for tags that only exist inside a list or a table."""
    return tag in (Tag.ITEM, Tag.TABLE_HEAD, Tag.TABLE_ROW, Tag.TABLE_CELL)


class _Builder:
    __slots__ = ("_references", "_location", "_stack", "_body", "_footnotes")

    def __init__(self) -> None:
        self._references = ReferenceTable()
        self._location = SourceLocation.unknown()
        self._stack: list[_Frame] = []
        self._body: list[nodes.Block] = []
        self._footnotes: list[nodes.FootnoteDefinition] = []

    def build(self, events: Iterable[Event], hook: BuildHook | None) -> nodes.Document:
        index = -1
        if hook is None:
            for index, event in enumerate(events):
                self._event(event, index)
        else:
            stream = list(events)
            index = 0
            while index < len(stream):
                claim = hook(stream, index, self._context(index))
                if claim is None:
                    self._event(stream[index], index)
                    index += 1
                    continue
                count, node = claim
                if count < 1:
                    raise EventStreamError("build hook claimed no events", index)
                self._attach(node, index)
                index += count
            index = len(stream) - 1
        if self._stack:
            frame = self._stack[-1]
            raise EventStreamError(f"unclosed {frame.tag.name} opened at event {frame.index}", index + 1)

        for definition in self._footnotes:
            self._references.define_footnote(definition.label, definition)
        return nodes.Document(self._location, tuple(self._body), references=self._references)

    def _event(self, event: Event, index: int) -> None:
        if isinstance(event, Start):
            self._stack.append(_Frame(event.tag, event, index))
        elif isinstance(event, End):
            self._close(event, index)
        else:
            self._leaf(event, index)

    def _context(self, index: int) -> BuildContext:
        parent = self._stack[-1].tag if self._stack else None
        return BuildContext(len(self._stack), parent, parent in _INLINE_HOLDERS, index)

    def _attach(self, node: nodes.Node, index: int) -> None:
        """Place a node claimed by a build hook in the innermost open tag."""
        name = type(node).__name__
        inline = isinstance(node, nodes.CustomInline)
        if not self._stack:
            if inline:
                raise EventStreamError(f"{name} at document level", index)
            self._body.append(node)
            return
        parent = self._stack[-1]
        if parent.tag in (Tag.CODE_BLOCK, Tag.HTML_BLOCK) or parent.tag in _CHILD_TAGS:
            raise EventStreamError(f"{name} inside {parent.tag.name}", index)
        if inline and parent.tag not in _INLINE_HOLDERS:
            raise EventStreamError(f"{name} directly inside {parent.tag.name}", index)
        if not inline and parent.tag in _INLINE_HOLDERS:
            raise EventStreamError(f"{name} inside inline content", index)
        parent.children.append(node)

    # -------------------------------------------------------------------------
    # Leaf events
    # -------------------------------------------------------------------------

    def _leaf(self, event: Event, index: int) -> None:
        frame = self._stack[-1] if self._stack else None
        if frame is None:
            raise EventStreamError(f"{type(event).__name__} outside any block", index)

        if isinstance(event, TaskListMarker):
            if frame.tag is not Tag.ITEM or frame.children:
                raise EventStreamError("TaskListMarker must open a list item", index)
            frame.checked = event.checked
            return
        if frame.tag is Tag.CODE_BLOCK:
            if not isinstance(event, Text):
                raise EventStreamError(f"{type(event).__name__} inside a code block", index)
            frame.text.append(event.text)
            return
        if frame.tag is Tag.HTML_BLOCK:
            if not isinstance(event, Html):
                raise EventStreamError(f"{type(event).__name__} inside an HTML block", index)
            frame.text.append(event.html)
            return
        if frame.tag not in _INLINE_HOLDERS:
            raise EventStreamError(f"{type(event).__name__} directly inside {frame.tag.name}", index)

        location = self._location
        node: nodes.Inline
        if isinstance(event, Text):
            node = nodes.Text(location, event.text)
        elif isinstance(event, Code):
            node = nodes.CodeSpan(location, event.code)
        elif isinstance(event, InlineHtml):
            node = nodes.HtmlInline(location, event.html)
        elif isinstance(event, SoftBreak):
            node = nodes.SoftBreak(location)
        elif isinstance(event, HardBreak):
            node = nodes.LineBreak(location)
        elif isinstance(event, FootnoteReference):
            self._references.mark_referenced(event.label)
            node = nodes.FootnoteRef(location, event.label, event.number)
        else:
            raise EventStreamError(f"{type(event).__name__} inside inline content", index)
        frame.children.append(node)

    # -------------------------------------------------------------------------
    # Closing containers
    # -------------------------------------------------------------------------

    def _close(self, event: End, index: int) -> None:
        if not self._stack:
            raise EventStreamError(f"End({event.tag.name}) without a matching Start", index)
        frame = self._stack.pop()
        if frame.tag is not event.tag:
            raise EventStreamError(
                f"End({event.tag.name}) closes {frame.tag.name} opened at event {frame.index}",
                index,
            )
        node = self._make_node(frame)

        if frame.tag is Tag.FOOTNOTE_DEFINITION:
            if self._stack:
                raise EventStreamError("footnote definition inside another block", frame.index)
            self._footnotes.append(node)
        elif self._stack:
            parent = self._stack[-1]
            if parent.tag in (Tag.CODE_BLOCK, Tag.HTML_BLOCK):
                raise EventStreamError(f"{frame.tag.name} inside {parent.tag.name}", frame.index)
            allowed = _CHILD_TAGS.get(parent.tag)
            if (allowed is not None and frame.tag not in allowed) or (
                allowed is None and _needs_parent(frame.tag)
            ):
                raise EventStreamError(f"{frame.tag.name} inside {parent.tag.name}", frame.index)
            if frame.tag.is_inline and parent.tag not in _INLINE_HOLDERS:
                raise EventStreamError(f"{frame.tag.name} directly inside {parent.tag.name}", frame.index)
            if not frame.tag.is_inline and parent.tag in _INLINE_HOLDERS:
                raise EventStreamError(f"{frame.tag.name} inside inline content", frame.index)
            parent.children.append(node)
        elif frame.tag.is_inline or _needs_parent(frame.tag):
            raise EventStreamError(f"{frame.tag.name} at document level", frame.index)
        else:
            self._body.append(node)

    def _make_node(self, frame: _Frame) -> Any:
        location = self._location
        start = frame.start
        children = tuple(frame.children)
        tag = frame.tag

        if tag is Tag.PARAGRAPH:
            return nodes.Paragraph(location, children)
        if tag is Tag.HEADING:
            return nodes.Heading(location, start.get("level", 1), children)
        if tag is Tag.BLOCK_QUOTE:
            return nodes.BlockQuote(location, children)
        if tag is Tag.LIST:
            return nodes.List(
                location,
                children,
                ordered=start.get("ordered", False),
                start=start.get("start", 1),
                tight=start.get("tight", True),
            )
        if tag is Tag.ITEM:
            return nodes.ListItem(location, children, checked=frame.checked)
        if tag is Tag.CODE_BLOCK:
            return nodes.CodeBlock(
                location,
                "".join(frame.text),
                start.get("info") or None,
                fenced=start.get("fenced", True),
            )
        if tag is Tag.HTML_BLOCK:
            return nodes.HtmlBlock(location, "".join(frame.text))
        if tag is Tag.THEMATIC_BREAK:
            return nodes.ThematicBreak(location)
        if tag is Tag.TABLE:
            if not children or not children[0].is_header:
                raise EventStreamError("table without a head row", frame.index)
            return nodes.Table(location, children[0], children[1:], start.get("alignments", ()))
        if tag is Tag.TABLE_HEAD or tag is Tag.TABLE_ROW:
            return nodes.TableRow(location, children, is_header=tag is Tag.TABLE_HEAD)
        if tag is Tag.TABLE_CELL:
            return nodes.TableCell(location, children, align=start.get("align"))
        if tag is Tag.FOOTNOTE_DEFINITION:
            return nodes.FootnoteDefinition(location, start.get("label", ""), children)
        if tag is Tag.EMPHASIS:
            return nodes.Emphasis(location, children)
        if tag is Tag.STRONG:
            return nodes.Strong(location, children)
        if tag is Tag.STRIKETHROUGH:
            return nodes.Strikethrough(location, children)

        # LINK or IMAGE
        link_type = start.get("link_type", nodes.LinkType.INLINE)
        url = start.get("url", "")
        title = start.get("title")
        label = start.get("label", "")
        if link_type in _REFERENCE_LINK_TYPES and label:
            self._references.define_link(label, LinkDefinition(label, url, title))
        cls = nodes.Link if tag is Tag.LINK else nodes.Image
        return cls(location, url, title, children, link_type, label)


__all__ = ["BuildContext", "BuildHook", "build_document", "combine_hooks"]
