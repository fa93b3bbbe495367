"""Tests for the canonical Markdown writer."""

import logging

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from huellas import Markdown, ParseConfig, RenderError, events, render_markdown, to_markdown
from huellas.events import End, Start, Tag, Text
from huellas.renderers import MarkdownWriter, escape_text

# Block and inline markup without the characters behind the known writer
# limitations: emphasis flanking (* _ and entities) and footnotes, which are
# turned off
ROUND_TRIP_SOURCE = st.lists(
    st.sampled_from(
        list("ab \t\n>-+#=`~|[]()!<>:.\\1234567890x\"'") + ["```", "| - |", "[a]: /u\n", "    "]
    ),
    max_size=80,
).map("".join)


class TestEscapeText:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("a*b", "a\\*b"),
            ("snake_case", "snake\\_case"),
            ("[x](y)", "\\[x\\](y)"),
            ("a & b", "a \\& b"),
            ("- x", "- x"),
            ("a\nb", "a&#10;b"),
        ],
    )
    def test_inline(self, text: str, expected: str) -> None:
        assert escape_text(text) == expected

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("- x", "\\- x"),
            ("> x", "\\> x"),
            ("+ x", "\\+ x"),
            ("12) x", "12\\) x"),
            ("3. x", "3\\. x"),
            ("  x", "&#32;&#32;x"),
            ("\tx", "&#9;x"),
            ("plain", "plain"),
        ],
    )
    def test_line_start(self, text: str, expected: str) -> None:
        assert escape_text(text, at_line_start=True) == expected


class TestCanonicalOutput:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("# Title", "# Title\n"),
            ("Title\n=====", "# Title\n"),
            ("Sub\n---", "## Sub\n"),
            ("*a* and __b__", "*a* and **b**\n"),
            ("***a***", "*__a__*\n"),
            ("* a\n* b", "- a\n- b\n"),
            ("- a\n\n- b", "- a\n\n- b\n"),
            ("- a\n* b", "- a\n\n+ b\n"),
            ("1) a\n2) b", "1. a\n2. b\n"),
            ("3. a", "3. a\n"),
            ("1. a\n1) b", "1. a\n\n1) b\n"),
            ("- a\n  - b", "- a\n  * b\n"),
            ("- a\n  - b\n    - c", "- a\n  * b\n    - c\n"),
            ("- + * a", "- * - a\n"),
            ("[x]: /u\n<a>", "[html]: #\n<a>\n"),
            ("[a_b!]\n\n[a_b!]: /u", "[a_b!]\n\n[a_b!]: /u\n"),
            ("~~x~a~x~~", "~~x~a~x~~\n"),
            ("> quote\n>\n> more", "> quote\n>\n> more\n"),
            ("```py\ncode\n```", "```py\ncode\n```\n"),
            ("~~~\n```\n~~~", "````\n```\n````\n"),
            ("    indented", "    indented\n"),
            ("***", "___\n"),
            ("a  \nb", "a\\\nb\n"),
            ("a\nb", "a\nb\n"),
            ("\\*literal\\*", "\\*literal\\*\n"),
            ("\\# not a heading", "\\# not a heading\n"),
            ("1\\. not a list", "1\\. not a list\n"),
            ('[a](/u "t")', '[a](/u "t")\n'),
            ("[a](<my url>)", "[a](<my url>)\n"),
            ("![alt](/i.png)", "![alt](/i.png)\n"),
            ("<https://x.org>", "<https://x.org>\n"),
            ("<me@x.org>", "<me@x.org>\n"),
            ("[x][r]\n\n[r]: /u", "[x][r]\n\n[r]: /u\n"),
            ("[r][]\n\n[r]: /u 'T'", '[r][]\n\n[r]: /u "T"\n'),
            ("`a`", "`a`\n"),
            ("`` a`b ``", "``a`b``\n"),
            ("~~x~~", "~~x~~\n"),
            ("<b>x</b>", "<b>x</b>\n"),
            ("- [x] done\n- [ ] todo", "- [x] done\n- [ ] todo\n"),
            ("x[^n]\n\n[^n]: body", "x[^n]\n\n[^n]: body\n"),
            ("<div>\nraw\n</div>", "<div>\nraw\n</div>\n"),
        ],
    )
    def test_output(self, md: Markdown, source: str, expected: str) -> None:
        assert md(source) == expected

    def test_table_padded_and_aligned(self, md: Markdown) -> None:
        source = "| a | b | long |\n|:-|-:|:-:|\n| 1 | 2 | 3 |"
        assert md(source) == (
            "| a   |   b | long |\n"
            "| :-- | --: | :--: |\n"
            "| 1   |   2 |  3   |\n"
        )

    def test_wide_characters_count_twice(self, md: Markdown) -> None:
        lines = md("| 日本 |\n| - |\n| x |").splitlines()
        assert lines == ["| 日本 |", "| ---- |", "| x    |"]

    def test_pipe_in_table_code(self, md: Markdown) -> None:
        assert md("| `a\\|b` |\n| - |").splitlines()[0] == "| `a\\|b` |"

    def test_footnote_continuation_indent(self, md: Markdown) -> None:
        source = "x[^n]\n\n[^n]: one\n\n    two"
        assert md(source) == "x[^n]\n\n[^n]: one\n\n    two\n"

    def test_long_fence(self, md: Markdown) -> None:
        assert md("`````\n````\n`````") == "`````\n````\n`````\n"

    def test_multiline_heading_flattened(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        stream = [
            Start(Tag.HEADING, (("level", 3),)),
            *list(events("a\nb"))[1:-1],
            End(Tag.HEADING),
        ]
        with caplog.at_level(logging.DEBUG, logger="huellas"):
            assert render_markdown(stream) == "### a b\n"
        assert any("Multi-line" in r.getMessage() for r in caplog.records)

    def test_setext_for_multiline_level_two(self) -> None:
        stream = [
            Start(Tag.HEADING, (("level", 2),)),
            *list(events("a\nb"))[1:-1],
            End(Tag.HEADING),
        ]
        assert render_markdown(stream) == "a\nb\n---\n"

    def test_empty_document(self) -> None:
        assert render_markdown([]) == ""

    def test_writer_is_reusable(self) -> None:
        writer = MarkdownWriter()
        assert writer.write(events("*a*")) == "*a*\n"
        assert writer.write(events("*a*")) == "*a*\n"

    def test_guard_label_avoids_written_labels(self, md: Markdown) -> None:
        output = md("[html]\n\n[html]: /h\n\n[x]: /u\n<a>")
        assert output == "[html]\n\n[html-2]: #\n<a>\n\n[html]: /h\n"

    def test_adjacent_indented_code_stays_apart(self) -> None:
        stream = list(events("    a")) + list(events("    b"))
        output = render_markdown(stream)
        assert output == "    a\n\n[html]: #\n\n    b\n"
        assert list(events(output)) == stream

    def test_unclosed_html_block_written_last(self, md: Markdown) -> None:
        output = md("[r]\n\n[r]: /u\n\n<!-- open")
        assert output == "[r]\n\n[r]: /u\n\n<!-- open\n"


class TestRoundTrip:
    @pytest.mark.parametrize(
        "source",
        [
            "# Heading\n\nText with *emphasis* and **strong**.",
            "- one\n- two\n\n1. three\n2. four",
            "> quoted\n> > nested\n\nafter",
            "```python\nprint('hi')\n```",
            "| a | b |\n|:--|:-:|\n| 1 | 2 |\n| 3 | 4 |",
            '[inline](https://example.org "Title") and ![img](/i.png)',
            "[ref] and [full][ref]\n\n[ref]: /target",
            "Footnote[^1] here.\n\n[^1]: The *note*.",
            "- [x] done\n- [ ] open",
            "***\n\n~~struck~~ text",
            "line  \nbreak and `code`",
            "- outer\n  - inner\n    - innermost",
            "\\*not emphasis\\* and \\# not heading",
            "<div>\n<b>html</b>\n</div>",
            "    indented code\n    block",
            "a *b **c** d* e",
            "1986\\. A great year",
            "&amp; &copy; &#35;",
            "- + *",
            "[x]: /u\n<a>",
            "[html]\n\n[html]: /h\n\n[x]: /u\n<a>",
            "[a_b!] and [c\\*d][]\n\n[a_b!]: /u\n[c\\*d]: /v",
            "| [a](/x\\|y) | <http://x\\|y> |\n| - | - |",
            "~~x~a~x~~",
            "x[^n] [r]\n\n[r]: /u\n\n[^n]: note\n\n<!-- open",
        ],
    )
    def test_events_survive(self, md: Markdown, source: str) -> None:
        assert list(md.events(md(source))) == list(md.events(source))

    def test_idempotent(self, md: Markdown) -> None:
        source = "Title\n===\n\n* a\n* b\n\n> q\n\n1) x"
        once = md(source)
        assert md(once) == once

    @given(
        st.text(
            alphabet=st.characters(blacklist_categories=("Cs", "Cc")),
            min_size=1,
            max_size=60,
        )
    )
    @settings(max_examples=200)
    def test_any_text_survives(self, text: str) -> None:
        stream = [Start(Tag.PARAGRAPH), Text(text), End(Tag.PARAGRAPH)]
        assert list(events(render_markdown(stream))) == stream

    @given(
        st.lists(
            st.tuples(
                st.sampled_from(["", "# ", "- ", "> ", "1. "]),
                st.lists(
                    st.tuples(
                        st.sampled_from(["", "*", "**", "`", "~~"]),
                        st.text(alphabet="abcxyz", min_size=1, max_size=6),
                    ),
                    min_size=1,
                    max_size=5,
                ),
            ),
            min_size=1,
            max_size=5,
        )
    )
    @settings(max_examples=100)
    def test_generated_documents_survive(self, blocks: list) -> None:
        parts = []
        for prefix, words in blocks:
            line = " ".join(f"{wrap}{word}{wrap[::-1]}" for wrap, word in words)
            parts.append(prefix + line)
        source = "\n\n".join(parts)
        assert list(events(to_markdown(source))) == list(events(source))

    @given(ROUND_TRIP_SOURCE)
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_markdownish_documents_survive(self, source: str) -> None:
        config = ParseConfig(footnotes_enabled=False)
        stream = list(events(source, config=config))
        assert list(events(to_markdown(stream), config=config)) == stream


class TestRenderErrors:
    @pytest.mark.parametrize(
        ("stream", "message"),
        [
            ([End(Tag.PARAGRAPH)], "without a matching Start"),
            ([Start(Tag.PARAGRAPH), End(Tag.HEADING)], "closes PARAGRAPH"),
            ([Start(Tag.PARAGRAPH)], "unclosed PARAGRAPH"),
            ([Text("x")], "outside inline content"),
            ([Start(Tag.ITEM)], "ITEM outside a LIST"),
            ([Start(Tag.EMPHASIS)], "EMPHASIS outside inline content"),
            ([Start(Tag.TABLE_CELL)], "TABLE_CELL outside a table row"),
            ([Start(Tag.TABLE_ROW)], "TABLE_ROW outside a TABLE"),
            ([Start(Tag.PARAGRAPH), Start(Tag.BLOCK_QUOTE)], "BLOCK_QUOTE inside PARAGRAPH"),
            (
                [Start(Tag.BLOCK_QUOTE), Start(Tag.FOOTNOTE_DEFINITION)],
                "must be at document level",
            ),
        ],
    )
    def test_rejected(self, stream: list, message: str) -> None:
        with pytest.raises(RenderError, match=message):
            render_markdown(stream)

    def test_message_names_event_index(self) -> None:
        with pytest.raises(RenderError, match=r"^event 1: "):
            render_markdown([Start(Tag.PARAGRAPH), End(Tag.HEADING)])
