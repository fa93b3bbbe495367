"""Tests for line splitting, the line cursor, and coarse line classification."""

from hypothesis import given, settings
from hypothesis import strategies as st

from huellas.lexer import Line, LineCursor, LineKind, classify, normalize_source, split_lines


class TestNormalizeSource:
    def test_line_endings(self) -> None:
        assert normalize_source("a\r\nb\rc\n") == "a\nb\nc\n"

    def test_nul(self) -> None:
        assert normalize_source("\x00") == "\ufffd"

    def test_untouched(self) -> None:
        source = "plain\ntext"
        assert normalize_source(source) is source


class TestSplitLines:
    def test_offsets(self) -> None:
        assert list(split_lines("ab\n\ncd")) == [
            Line("ab", 1, 0),
            Line("", 2, 3),
            Line("cd", 3, 4),
        ]

    def test_trailing_newline_adds_no_line(self) -> None:
        assert list(split_lines("a\n")) == [Line("a", 1, 0)]

    def test_empty(self) -> None:
        assert list(split_lines("")) == []

    @given(st.text(alphabet="ab \t\n", max_size=200))
    @settings(max_examples=100)
    def test_lines_point_into_source(self, source: str) -> None:
        for line in split_lines(source):
            assert source[line.offset : line.offset + len(line.text)] == line.text
            assert "\n" not in line.text


class TestLineCursor:
    def test_indent_counts_tabs_to_tab_stop(self) -> None:
        cursor = LineCursor(" \tx")
        cursor.find_next_nonspace()
        assert cursor.indent == 4
        assert cursor.indented

    def test_three_spaces_not_indented(self) -> None:
        cursor = LineCursor("   x")
        cursor.find_next_nonspace()
        assert cursor.indent == 3
        assert not cursor.indented
        assert cursor.peek_nonspace() == "x"

    def test_partially_consumed_tab(self) -> None:
        """Consuming two columns of a tab leaves the other two as spaces."""
        cursor = LineCursor("\tx")
        cursor.advance_columns(2)
        assert cursor.partially_consumed_tab
        assert cursor.offset == 0
        assert cursor.column == 2
        assert cursor.content_for_leaf() == "  x"

    def test_advance_counts_tab_as_one_character(self) -> None:
        cursor = LineCursor("\tx")
        cursor.advance(1)
        assert cursor.offset == 1
        assert cursor.column == 4
        assert cursor.rest() == "x"

    def test_blockquote_marker_with_space(self) -> None:
        cursor = LineCursor(">  a")
        assert cursor.try_consume_blockquote_marker()
        assert cursor.rest() == " a"

    def test_blockquote_marker_too_indented(self) -> None:
        cursor = LineCursor("    > a")
        assert not cursor.try_consume_blockquote_marker()
        assert cursor.offset == 0

    def test_skip_spaces(self) -> None:
        cursor = LineCursor("  \t rest")
        cursor.find_next_nonspace()
        cursor.skip_spaces()
        assert cursor.rest() == "rest"
        assert cursor.column == 5

    def test_blank(self) -> None:
        cursor = LineCursor(" \t ")
        cursor.find_next_nonspace()
        assert cursor.is_blank()
        assert cursor.peek_nonspace() == ""


class TestClassify:
    def test_kinds(self) -> None:
        cases = {
            "": LineKind.BLANK,
            "   ": LineKind.BLANK,
            "    code": LineKind.INDENTED_CODE,
            "\tcode": LineKind.INDENTED_CODE,
            "# Title": LineKind.ATX_HEADING,
            "===": LineKind.SETEXT_UNDERLINE,
            "  ---": LineKind.SETEXT_UNDERLINE,
            "#hashtag": LineKind.TEXT,
            "text": LineKind.TEXT,
        }
        for text, kind in cases.items():
            assert classify(LineCursor(text)) is kind, text

    def test_classify_relative_to_cursor(self) -> None:
        """Indentation counts from the cursor, not the start of the line."""
        cursor = LineCursor(">     code")
        assert cursor.try_consume_blockquote_marker()
        assert classify(cursor) is LineKind.INDENTED_CODE
