"""Property-based tests: parsing is total and the event stream is well formed."""

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from huellas import Document, ParseConfig, build_document, events, iter_events, parse
from huellas.events import End, Start

# Characters that drive most block and inline constructs
MARKDOWN_ALPHABET = st.sampled_from(
    list("ab \t\n>-*+_#=`~|[]()!<>&\\:^.1234567890x\"'") + ["[^a]", "[^a]: ", "```", "| - |", "&amp;"]
)

markdownish = st.lists(MARKDOWN_ALPHABET, max_size=120).map("".join)


def assert_balanced(stream: list) -> None:
    depth: list = []
    for event in stream:
        if isinstance(event, Start):
            depth.append(event.tag)
        elif isinstance(event, End):
            assert depth.pop() is event.tag
    assert not depth


class TestParseIsTotal:
    @given(st.text(max_size=300))
    @settings(max_examples=300, suppress_health_check=[HealthCheck.too_slow])
    def test_any_text(self, source: str) -> None:
        assert isinstance(parse(source), Document)

    @given(markdownish)
    @settings(max_examples=300)
    def test_markdownish_text(self, source: str) -> None:
        assert isinstance(parse(source), Document)

    @given(markdownish, st.sampled_from(["normalize", "preserve", "reject"]), st.integers(1, 5))
    @settings(max_examples=150)
    def test_every_config(self, source: str, ragged: str, depth: int) -> None:
        config = ParseConfig(
            table_ragged_rows=ragged,  # type: ignore[arg-type]
            max_nesting_depth=depth,
            unreferenced_footnotes="append",
        )
        assert_balanced(list(events(source, config=config)))


class TestStreamIsWellFormed:
    @given(markdownish)
    @settings(max_examples=300)
    def test_balanced(self, source: str) -> None:
        assert_balanced(list(events(source)))

    @given(markdownish)
    @settings(max_examples=200)
    def test_builder_accepts_every_parsed_stream(self, source: str) -> None:
        # Footnote bodies that are never emitted can still number other
        # footnotes, which a rebuilt document cannot know about
        doc = parse(source, config=ParseConfig(footnotes_enabled=False))
        rebuilt = build_document(iter_events(doc))
        assert list(iter_events(rebuilt)) == list(iter_events(doc))

    @given(markdownish)
    @settings(max_examples=200)
    def test_deterministic(self, source: str) -> None:
        assert list(events(source)) == list(events(source))
