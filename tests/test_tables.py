"""Tests for GFM pipe tables and the ragged-row policies."""

import logging

import pytest

from huellas import Markdown, ParseConfig, parse
from huellas.nodes import CodeSpan, Emphasis, Paragraph, Table, Text


def cell_texts(row) -> list[str]:
    return ["".join(c.content for c in cell.children if isinstance(c, Text)) for cell in row.cells]


class TestTableStructure:
    def test_short_row_padded(self, md: Markdown) -> None:
        table = md.parse("| A | B |\n| --- | ---: |\n| x |").children[0]
        assert isinstance(table, Table)
        assert table.alignments == (None, "right")
        assert cell_texts(table.head) == ["A", "B"]
        assert table.head.is_header

        (row,) = table.body
        assert cell_texts(row) == ["x", ""]
        assert row.cells[1].align == "right"
        assert row.cells[0].align is None

    def test_alignments_on_every_cell(self, md: Markdown) -> None:
        table = md.parse("| a | b | c |\n|:--|:-:|--:|\n| 1 | 2 | 3 |").children[0]
        assert [cell.align for cell in table.head.cells] == ["left", "center", "right"]
        assert [cell.align for cell in table.body[0].cells] == ["left", "center", "right"]

    def test_without_outer_pipes(self, md: Markdown) -> None:
        table = md.parse("a | b\n--- | ---\n1 | 2").children[0]
        assert cell_texts(table.head) == ["a", "b"]
        assert cell_texts(table.body[0]) == ["1", "2"]

    def test_inline_content_in_cells(self, md: Markdown) -> None:
        table = md.parse("| *a* | `b` |\n| - | - |").children[0]
        assert isinstance(table.head.cells[0].children[0], Emphasis)
        assert isinstance(table.head.cells[1].children[0], CodeSpan)

    def test_escaped_pipe(self, md: Markdown) -> None:
        table = md.parse("| a \\| b |\n| - |").children[0]
        assert cell_texts(table.head) == ["a | b"]

    def test_header_only(self, md: Markdown) -> None:
        table = md.parse("| a |\n| - |").children[0]
        assert table.body == ()

    def test_blank_line_ends_table(self, md: Markdown) -> None:
        doc = md.parse("| a |\n| - |\n| 1 |\n\nafter")
        assert len(doc.children[0].body) == 1
        assert isinstance(doc.children[1], Paragraph)

    def test_paragraph_lines_before_header(self, md: Markdown) -> None:
        doc = md.parse("intro\n| a |\n| - |")
        assert isinstance(doc.children[0], Paragraph)
        assert doc.children[0].children[0].content == "intro"
        assert isinstance(doc.children[1], Table)
        assert doc.children[1].location.lineno == 2

    def test_table_location_starts_at_header(self, md: Markdown) -> None:
        table = md.parse("| a |\n| - |\n| 1 |").children[0]
        assert table.location.lineno == 1
        assert table.body[0].location.lineno == 3

    def test_in_blockquote(self, md: Markdown) -> None:
        quote = md.parse("> | a |\n> | - |\n> | 1 |").children[0]
        assert isinstance(quote.children[0], Table)

    def test_disabled(self, commonmark: Markdown) -> None:
        doc = commonmark.parse("| a |\n| - |")
        assert isinstance(doc.children[0], Paragraph)


class TestMalformedDelimiter:
    def test_cell_count_mismatch_stays_text(
        self, md: Markdown, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="huellas"):
            doc = md.parse("| a | b |\n| - |")
        assert len(doc.children) == 1
        assert isinstance(doc.children[0], Paragraph)
        assert any("kept as text" in r.getMessage() for r in caplog.records)

    def test_delimiter_without_header_is_not_a_table(self, md: Markdown) -> None:
        doc = md.parse("| - |")
        assert not isinstance(doc.children[0], Table)

    def test_indented_delimiter(self, md: Markdown) -> None:
        doc = md.parse("| a |\n    | - |")
        assert isinstance(doc.children[0], Paragraph)


class TestRaggedRows:
    source = "| a | b |\n| - | - |\n| 1 | 2 | 3 |\n| 4 |"

    def test_normalize(self) -> None:
        table = parse(self.source, config=ParseConfig(table_ragged_rows="normalize")).children[0]
        assert [cell_texts(row) for row in table.body] == [["1", "2"], ["4", ""]]

    def test_preserve(self) -> None:
        table = parse(self.source, config=ParseConfig(table_ragged_rows="preserve")).children[0]
        assert [cell_texts(row) for row in table.body] == [["1", "2", "3"], ["4"]]
        assert table.body[0].cells[2].align is None

    def test_reject(self) -> None:
        doc = parse(self.source, config=ParseConfig(table_ragged_rows="reject"))
        table = doc.children[0]
        assert isinstance(table, Table)
        assert table.body == ()
        paragraph = doc.children[1]
        assert isinstance(paragraph, Paragraph)
        assert paragraph.children[0].content == "| 1 | 2 | 3 |"

    def test_reject_keeps_matching_rows(self) -> None:
        doc = parse(
            "| a | b |\n| - | - |\n| 1 | 2 |\n| 3 |",
            config=ParseConfig(table_ragged_rows="reject"),
        )
        assert [cell_texts(row) for row in doc.children[0].body] == [["1", "2"]]
        assert isinstance(doc.children[1], Paragraph)
