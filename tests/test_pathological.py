"""Inputs that make naive Markdown parsers go quadratic.

Each case must parse in well under the bound on any machine; the bound is
generous so only super-linear behavior trips it.
"""

import time

import pytest

from huellas import events, parse
from huellas.events import Start, Tag
from huellas.parsing.inline.links import MAX_DESTINATION_PARENS, scan_link_destination

REPEATS = 20_000
BOUND_SECONDS = 5.0


@pytest.mark.parametrize(
    "unit",
    ["[a](", "[](", "[^a](", "![a](", "*a", "a_", "~a~~"],
)
def test_repeated_unit_is_linear(unit: str) -> None:
    source = unit * REPEATS
    started = time.perf_counter()
    parse(source)
    assert time.perf_counter() - started < BOUND_SECONDS


def test_event_stream_of_unclosed_links() -> None:
    started = time.perf_counter()
    stream = list(events("[a](" * REPEATS))
    assert time.perf_counter() - started < BOUND_SECONDS
    assert not any(isinstance(event, Start) and event.tag is Tag.LINK for event in stream)


class TestDestinationNesting:
    def test_nesting_at_limit_accepted(self) -> None:
        text = "(" * MAX_DESTINATION_PARENS + ")" * MAX_DESTINATION_PARENS
        assert scan_link_destination(text, 0) == (text, len(text))

    def test_nesting_past_limit_refused(self) -> None:
        depth = MAX_DESTINATION_PARENS + 1
        assert scan_link_destination("(" * depth + ")" * depth, 0) is None

    def test_scan_stops_at_limit(self) -> None:
        # Without the cap the scan would walk every later opener
        assert scan_link_destination("[a](" * REPEATS, 0) is None
