"""Tests for the text helpers, character classes and StringBuilder."""

import pytest

from huellas.parsing.charsets import is_unicode_punctuation, is_unicode_whitespace
from huellas.stringbuilder import StringBuilder
from huellas.utils.logger import get_logger
from huellas.utils.text import decode_entity, display_width, is_escapable, unescape_string


class TestDecodeEntity:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("&amp;", ("&", 5)),
            ("&copy; x", ("©", 6)),
            ("&#35;", ("#", 5)),
            ("&#X41;", ("A", 6)),
            ("&#0;", ("\ufffd", 4)),
            ("&#xD800;", ("\ufffd", 8)),
        ],
    )
    def test_valid(self, text: str, expected: tuple[str, int]) -> None:
        assert decode_entity(text, 0) == expected

    @pytest.mark.parametrize("text", ["&bogus;", "&amp", "&#;", "&#12345678;", "&#xg;", "& x", "x"])
    def test_invalid(self, text: str) -> None:
        assert decode_entity(text, 0) is None

    def test_offset(self) -> None:
        assert decode_entity("a &lt; b", 2) == ("<", 6)


class TestUnescape:
    def test_escapes_and_entities(self) -> None:
        assert unescape_string("\\*a\\* &amp; \\q") == "*a* & \\q"

    def test_plain_text_returned_as_is(self) -> None:
        text = "plain"
        assert unescape_string(text) is text

    def test_escapable(self) -> None:
        assert is_escapable("*")
        assert not is_escapable("a")
        assert not is_escapable("é")


class TestCharClasses:
    def test_punctuation(self) -> None:
        assert is_unicode_punctuation("!")
        assert is_unicode_punctuation("«")
        assert is_unicode_punctuation("$")
        assert not is_unicode_punctuation("a")
        assert not is_unicode_punctuation("")

    def test_whitespace(self) -> None:
        assert is_unicode_whitespace(" ")
        assert is_unicode_whitespace("\u3000")
        assert is_unicode_whitespace("")
        assert not is_unicode_whitespace("a")


class TestDisplayWidth:
    @pytest.mark.parametrize(
        ("text", "width"),
        [("abc", 3), ("日本", 4), ("é", 1), ("", 0), ("a\u200bb", 2)],
    )
    def test_width(self, text: str, width: int) -> None:
        assert display_width(text) == width


class TestStringBuilder:
    def test_build(self) -> None:
        sb = StringBuilder()
        sb.append("a").append("").append("b")
        assert sb.build() == "ab"
        assert sb

    def test_empty(self) -> None:
        sb = StringBuilder()
        assert not sb
        assert sb.build() == ""
        assert sb.take_trailing(" ") == ""

    def test_take_trailing_across_parts(self) -> None:
        sb = StringBuilder()
        sb.append("word ").append("  ").append("\t")
        assert sb.take_trailing(" \t") == "   \t"
        assert sb.build() == "word"


class TestLogger:
    def test_prefix_added(self) -> None:
        assert get_logger("mymodule").name == "huellas.mymodule"

    def test_package_names_kept(self) -> None:
        assert get_logger("huellas.parser").name == "huellas.parser"
        assert get_logger("huellas").name == "huellas"
