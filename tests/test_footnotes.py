"""Tests for footnote definitions, references, numbering and emission."""

from huellas import Markdown, ParseConfig, ReferenceTable, events, parse
from huellas.events import End, FootnoteReference, Start, Tag
from huellas.nodes import FootnoteRef, Paragraph, Text
from huellas.parsing.blocks.link_ref import parse_reference_definitions


def definitions(stream) -> list[tuple[str, int | None]]:
    """(label, number) of every emitted footnote definition."""
    return [
        (e.get("label"), e.get("number"))
        for e in stream
        if isinstance(e, Start) and e.tag is Tag.FOOTNOTE_DEFINITION
    ]


class TestDefinitions:
    def test_definition_leaves_the_tree(self, md: Markdown) -> None:
        doc = md.parse("text[^n]\n\n[^n]: the note")
        assert len(doc.children) == 1
        definition = doc.references.resolve_footnote("n")
        assert definition is not None
        assert isinstance(definition.children[0], Paragraph)
        assert definition.children[0].children[0].content == "the note"

    def test_multiple_paragraphs(self, md: Markdown) -> None:
        doc = md.parse("x[^n]\n\n[^n]: first\n\n    second\n\nafter")
        definition = doc.references.resolve_footnote("n")
        assert len(definition.children) == 2
        assert len(doc.children) == 2

    def test_lazy_continuation(self, md: Markdown) -> None:
        doc = md.parse("x[^n]\n\n[^n]: a\nb")
        definition = doc.references.resolve_footnote("n")
        assert len(definition.children) == 1
        assert len(doc.children) == 1

    def test_duplicate_first_wins(self, md: Markdown) -> None:
        doc = md.parse("x[^n]\n\n[^n]: one\n\n[^n]: two")
        text = doc.references.resolve_footnote("n").children[0].children[0]
        assert text.content == "one"

    def test_interrupts_paragraph(self, md: Markdown) -> None:
        doc = md.parse("text\n[^n]: x")
        assert doc.references.resolve_footnote("n") is not None
        assert len(doc.children) == 1
        assert doc.children[0].children[0].content == "text"

    def test_after_link_definition(self) -> None:
        stream = list(events("See[^n].\n\n[x]: /u\n[^n]: note\n"))
        assert FootnoteReference("n", 1) in stream
        assert definitions(stream) == [("n", 1)]
        assert not any(isinstance(e, Start) and e.tag is Tag.LINK for e in stream)

    def test_caret_label_is_never_a_link_definition(self) -> None:
        table = ReferenceTable()
        assert parse_reference_definitions("[^n]: /u", table, footnotes_enabled=True) == 0
        assert table.resolve_link("^n") is None
        assert parse_reference_definitions("[^n]: /u", table) == 8
        assert table.resolve_link("^n") is not None

    def test_disabled(self, commonmark: Markdown) -> None:
        doc = commonmark.parse("x[^n]\n\n[^n]: body")
        assert doc.references.resolve_footnote("n") is None


class TestReferences:
    def test_two_references_share_a_number(self, md: Markdown) -> None:
        doc = md.parse("a[^n] b[^n]\n\n[^n]: note")
        refs = [c for c in doc.children[0].children if isinstance(c, FootnoteRef)]
        assert [(r.label, r.number) for r in refs] == [("n", 1), ("n", 1)]
        assert doc.references.reference_count("n") == 2

    def test_numbered_by_first_reference(self, md: Markdown) -> None:
        doc = md.parse("x[^b] y[^a]\n\n[^a]: A\n\n[^b]: B")
        refs = [c for c in doc.children[0].children if isinstance(c, FootnoteRef)]
        assert [(r.label, r.number) for r in refs] == [("b", 1), ("a", 2)]

    def test_label_matching_ignores_case(self, md: Markdown) -> None:
        doc = md.parse("x[^NOTE]\n\n[^note]: body")
        (ref,) = [c for c in doc.children[0].children if isinstance(c, FootnoteRef)]
        assert ref.label == "note"

    def test_undefined_reference_is_text(self, md: Markdown) -> None:
        doc = md.parse("x[^missing]")
        assert [type(c) for c in doc.children[0].children] == [Text]


class TestEmission:
    def test_single_definition_for_two_references(self) -> None:
        stream = list(events("a[^n] b[^n]\n\n[^n]: note"))
        assert definitions(stream) == [("n", 1)]
        assert stream.count(FootnoteReference("n", 1)) == 2
        assert stream[-1] == End(Tag.FOOTNOTE_DEFINITION)

    def test_definitions_follow_body_in_reference_order(self) -> None:
        stream = list(events("x[^b] y[^a]\n\n[^a]: A\n\n[^b]: B"))
        assert definitions(stream) == [("b", 1), ("a", 2)]
        first_definition = next(
            i for i, e in enumerate(stream) if isinstance(e, Start) and e.tag is Tag.FOOTNOTE_DEFINITION
        )
        assert stream[first_definition - 1] == End(Tag.PARAGRAPH)

    def test_mutual_references_emit_each_once(self) -> None:
        source = "x[^a]\n\n[^a]: see[^b]\n\n[^b]: back[^a]"
        stream = list(events(source))
        assert definitions(stream) == [("a", 1), ("b", 2)]
        assert FootnoteReference("a", 1) in stream
        assert FootnoteReference("b", 2) in stream

    def test_reference_from_inside_a_footnote(self) -> None:
        stream = list(events("x[^a]\n\n[^a]: see[^c]\n\n[^c]: deep"))
        assert definitions(stream) == [("a", 1), ("c", 2)]

    def test_unreferenced_dropped_by_default(self) -> None:
        source = "x\n\n[^u]: unused"
        assert definitions(events(source)) == []
        assert parse(source).references.unreferenced_labels() == ["u"]

    def test_unreferenced_appended(self) -> None:
        source = "x[^r]\n\n[^u]: unused\n\n[^r]: used"
        config = ParseConfig(unreferenced_footnotes="append")
        assert definitions(events(source, config=config)) == [("r", 1), ("u", None)]

    def test_markdown_class_follows_policy(self, append_footnotes: Markdown) -> None:
        assert definitions(append_footnotes.events("x\n\n[^u]: unused")) == [("u", None)]
        assert append_footnotes("x\n\n[^u]: unused") == "x\n\n[^u]: unused\n"

    def test_unreferenced_body_is_still_parsed(self) -> None:
        doc = parse("x\n\n[^u]: *unused*")
        body = doc.references.resolve_footnote("u")
        assert body is not None
        assert body.children[0].children[0].children[0].content == "unused"
