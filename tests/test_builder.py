"""Tests for rebuilding a Document from events."""

import pytest

from huellas import EventStreamError, build_document, events, iter_events, parse
from huellas.events import (
    Code,
    End,
    FootnoteReference,
    Html,
    SoftBreak,
    Start,
    Tag,
    TaskListMarker,
    Text,
)
from huellas.location import SourceLocation
from huellas.nodes import CodeBlock, Emphasis, Heading, Link, LinkType, List, Paragraph, Table


class TestRebuild:
    @pytest.mark.parametrize(
        "source",
        [
            "# Title\n\nHello *world* and **more**",
            "> quote\n>\n> - a\n> - b",
            "1. one\n2. two\n\n   para",
            "```py\ncode\n```\n\n    indented",
            "| a | b |\n|:--|--:|\n| 1 | 2 |",
            "[ref] and [full][ref]\n\n[ref]: /url 'Title'",
            "x[^a] y[^b]\n\n[^b]: B\n\n[^a]: A *em*",
            "- [x] done\n- [ ] todo",
            "<div>\nraw\n</div>\n\n***",
            "~~gone~~ `code` <https://x.org>",
        ],
    )
    def test_round_trip(self, source: str) -> None:
        doc = parse(source)
        rebuilt = build_document(iter_events(doc))
        assert list(iter_events(rebuilt)) == list(iter_events(doc))

    def test_locations_unknown(self) -> None:
        doc = build_document(events("para"))
        assert doc.location == SourceLocation.unknown()
        assert doc.children[0].location == SourceLocation.unknown()

    def test_hand_written_events(self) -> None:
        doc = build_document(
            [
                Start(Tag.HEADING, (("level", 3),)),
                Text("Hi"),
                End(Tag.HEADING),
                Start(Tag.PARAGRAPH),
                Start(Tag.EMPHASIS),
                Text("a"),
                End(Tag.EMPHASIS),
                SoftBreak(),
                Code("b"),
                End(Tag.PARAGRAPH),
            ]
        )
        heading, paragraph = doc.children
        assert isinstance(heading, Heading)
        assert heading.level == 3
        assert isinstance(paragraph, Paragraph)
        assert isinstance(paragraph.children[0], Emphasis)

    def test_missing_attrs_use_defaults(self) -> None:
        doc = build_document(
            [Start(Tag.LIST), Start(Tag.ITEM), End(Tag.ITEM), End(Tag.LIST)]
        )
        lst = doc.children[0]
        assert isinstance(lst, List)
        assert not lst.ordered
        assert lst.tight

    def test_code_text_concatenated(self) -> None:
        doc = build_document(
            [Start(Tag.CODE_BLOCK), Text("a\n"), Text("b\n"), End(Tag.CODE_BLOCK)]
        )
        assert doc.children[0] == CodeBlock(SourceLocation.unknown(), "a\nb\n")

    def test_table(self) -> None:
        doc = build_document(events("| a |\n| - |\n| 1 |"))
        table = doc.children[0]
        assert isinstance(table, Table)
        assert table.head.is_header
        assert len(table.body) == 1

    def test_reference_links_define_labels(self) -> None:
        doc = build_document(events("[x]\n\n[x]: /target"))
        link = doc.children[0].children[0]
        assert isinstance(link, Link)
        assert link.link_type is LinkType.SHORTCUT
        assert doc.references.resolve_link("x").url == "/target"

    def test_footnotes_rebuilt_into_reference_table(self) -> None:
        doc = build_document(events("x[^n]\n\n[^n]: body"))
        assert len(doc.children) == 1
        assert doc.references.resolve_footnote("n") is not None
        assert doc.references.footnote_number("n") == 1


class TestMalformedStreams:
    @pytest.mark.parametrize(
        ("stream", "message"),
        [
            ([End(Tag.PARAGRAPH)], "without a matching Start"),
            ([Start(Tag.PARAGRAPH), End(Tag.HEADING)], "closes PARAGRAPH"),
            ([Start(Tag.PARAGRAPH)], "unclosed PARAGRAPH"),
            ([Text("loose")], "outside any block"),
            (
                [Start(Tag.LIST), Start(Tag.ITEM), Start(Tag.PARAGRAPH), End(Tag.PARAGRAPH), TaskListMarker(True)],
                "TaskListMarker",
            ),
            ([Start(Tag.CODE_BLOCK), Code("x"), End(Tag.CODE_BLOCK)], "inside a code block"),
            ([Start(Tag.HTML_BLOCK), Text("x"), End(Tag.HTML_BLOCK)], "inside an HTML block"),
            ([Start(Tag.BLOCK_QUOTE), Text("x"), End(Tag.BLOCK_QUOTE)], "directly inside BLOCK_QUOTE"),
            (
                [
                    Start(Tag.BLOCK_QUOTE),
                    Start(Tag.FOOTNOTE_DEFINITION),
                    End(Tag.FOOTNOTE_DEFINITION),
                    End(Tag.BLOCK_QUOTE),
                ],
                "footnote definition inside another block",
            ),
            ([Start(Tag.TABLE), End(Tag.TABLE)], "table without a head row"),
            ([Start(Tag.ITEM), End(Tag.ITEM)], "ITEM at document level"),
            ([Start(Tag.EMPHASIS), End(Tag.EMPHASIS)], "EMPHASIS at document level"),
            (
                [Start(Tag.PARAGRAPH), Start(Tag.BLOCK_QUOTE), End(Tag.BLOCK_QUOTE), End(Tag.PARAGRAPH)],
                "inside inline content",
            ),
            ([Start(Tag.LIST), Start(Tag.PARAGRAPH), End(Tag.PARAGRAPH), End(Tag.LIST)], "PARAGRAPH inside LIST"),
            ([Start(Tag.PARAGRAPH), Html("<x>"), End(Tag.PARAGRAPH)], "Html inside inline content"),
        ],
    )
    def test_rejected(self, stream: list, message: str) -> None:
        with pytest.raises(EventStreamError, match=message):
            build_document(stream)

    def test_error_carries_index(self) -> None:
        with pytest.raises(EventStreamError) as info:
            build_document([Start(Tag.PARAGRAPH), Text("a"), End(Tag.HEADING)])
        assert info.value.index == 2
        assert str(info.value).startswith("event 2: ")

    def test_unclosed_index_is_stream_length(self) -> None:
        with pytest.raises(EventStreamError) as info:
            build_document([Start(Tag.BLOCK_QUOTE), Start(Tag.PARAGRAPH), End(Tag.PARAGRAPH)])
        assert info.value.index == 3

    def test_footnote_reference_marks_number(self) -> None:
        doc = build_document(
            [Start(Tag.PARAGRAPH), FootnoteReference("a", 1), End(Tag.PARAGRAPH)]
        )
        assert doc.references.footnote_number("a") == 1
