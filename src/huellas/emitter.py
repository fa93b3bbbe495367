"""Event stream emitter.

Walks a finished Document depth first and yields one flat sequence of
events. The walk keeps its own stack of child iterators, so arbitrarily
deep nesting (block or inline) never touches the interpreter's recursion
limit.

After the body, footnote definitions are emitted once each, in
first-reference order. Definitions never referenced are dropped, or
appended in definition order when the policy is "append".

Thread Safety:
The generator only reads the Document, which is immutable. Each call
returns an independent generator.

"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING

from huellas import nodes
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

if TYPE_CHECKING:
    from huellas.config import UnreferencedFootnotePolicy

type _Item = nodes.Node | Event


def iter_events(
    document: nodes.Document,
    *,
    unreferenced_footnotes: UnreferencedFootnotePolicy = "drop",
) -> Iterator[Event]:
    """Yield the events of ``document``, footnotes last.

    Args:
        document: Parsed (or rebuilt) document
        unreferenced_footnotes: "drop" or "append"

    Yields:
        Events in document order
    """
    yield from _walk(document.children)

    references = document.references
    for key in references.referenced_labels():
        definition = references.resolve_footnote(key)
        if definition is not None:
            number = references.footnote_number(key)
            yield from _footnote_events(definition, number)

    if unreferenced_footnotes == "append":
        for key in references.unreferenced_labels():
            definition = references.resolve_footnote(key)
            if definition is not None:
                yield from _footnote_events(definition, None)


def _footnote_events(definition: nodes.FootnoteDefinition, number: int | None) -> Iterator[Event]:
    yield Start(Tag.FOOTNOTE_DEFINITION, (("label", definition.label), ("number", number)))
    yield from _walk(definition.children)
    yield End(Tag.FOOTNOTE_DEFINITION)


def _walk(roots: Sequence[nodes.Node]) -> Iterator[Event]:
    """Depth-first walk over ``roots`` with an explicit stack."""
    stack: list[Iterator[_Item]] = [iter(roots)]
    while stack:
        item = next(stack[-1], None)
        if item is None:
            stack.pop()
            continue
        if not isinstance(item, nodes.Node):
            yield item
            continue
        opening, inner = _expand(item)
        yield from opening
        if inner:
            stack.append(iter(inner))


def _expand(node: nodes.Node) -> tuple[Iterable[Event], Sequence[_Item]]:
    """Split a node into the events emitted now and the items that follow.

    The second element lists the node's children followed by its End
    event, so the End comes out after everything nested inside.
    """
    match node:
        case nodes.Text(content=content):
            return (Text(content),), ()
        case nodes.SoftBreak():
            return (SoftBreak(),), ()
        case nodes.LineBreak():
            return (HardBreak(),), ()
        case nodes.CodeSpan(code=code):
            return (Code(code),), ()
        case nodes.HtmlInline(html=html):
            return (InlineHtml(html),), ()
        case nodes.FootnoteRef(label=label, number=number):
            return (FootnoteReference(label, number),), ()
        case nodes.Emphasis(children=children):
            return _container(Tag.EMPHASIS, (), children)
        case nodes.Strong(children=children):
            return _container(Tag.STRONG, (), children)
        case nodes.Strikethrough(children=children):
            return _container(Tag.STRIKETHROUGH, (), children)
        case nodes.Link() | nodes.Image():
            tag = Tag.LINK if isinstance(node, nodes.Link) else Tag.IMAGE
            attrs = (
                ("link_type", node.link_type),
                ("url", node.url),
                ("title", node.title),
                ("label", node.label),
            )
            return _container(tag, attrs, node.children)
        case nodes.Paragraph(children=children):
            return _container(Tag.PARAGRAPH, (), children)
        case nodes.Heading(level=level, children=children):
            return _container(Tag.HEADING, (("level", level),), children)
        case nodes.BlockQuote(children=children):
            return _container(Tag.BLOCK_QUOTE, (), children)
        case nodes.List(items=items, ordered=ordered, start=start, tight=tight):
            attrs = (("ordered", ordered), ("start", start), ("tight", tight))
            return _container(Tag.LIST, attrs, items)
        case nodes.ListItem(children=children, checked=checked):
            opening: tuple[Event, ...] = (Start(Tag.ITEM),)
            if checked is not None:
                opening += (TaskListMarker(checked),)
            return opening, (*children, End(Tag.ITEM))
        case nodes.CodeBlock(literal=literal, info=info, fenced=fenced):
            start = Start(Tag.CODE_BLOCK, (("info", info), ("fenced", fenced)))
            body = (Text(literal),) if literal else ()
            return (start, *body, End(Tag.CODE_BLOCK)), ()
        case nodes.HtmlBlock(html=html):
            return (Start(Tag.HTML_BLOCK), Html(html), End(Tag.HTML_BLOCK)), ()
        case nodes.ThematicBreak():
            return (Start(Tag.THEMATIC_BREAK), End(Tag.THEMATIC_BREAK)), ()
        case nodes.Table(head=head, body=body, alignments=alignments):
            return _container(Tag.TABLE, (("alignments", alignments),), (head, *body))
        case nodes.TableRow(cells=cells, is_header=is_header):
            return _container(Tag.TABLE_HEAD if is_header else Tag.TABLE_ROW, (), cells)
        case nodes.TableCell(children=children, align=align):
            return _container(Tag.TABLE_CELL, (("align", align),), children)
        case nodes.FootnoteDefinition(label=label, children=children):
            return _container(Tag.FOOTNOTE_DEFINITION, (("label", label), ("number", None)), children)
        case nodes.CustomBlock() | nodes.CustomInline():
            return tuple(node.to_events()), ()
        case _:
            raise TypeError(f"cannot emit events for {type(node).__name__}")


def _container(
    tag: Tag, attrs: tuple, children: Sequence[nodes.Node]
) -> tuple[Iterable[Event], Sequence[_Item]]:
    return (Start(tag, attrs),), (*children, End(tag))
