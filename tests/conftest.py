"""Shared fixtures for the Huellas test suite."""

import pytest

from huellas import Markdown, ParseConfig, reset_parse_config


@pytest.fixture
def md() -> Markdown:
    """Markdown processor with every GFM extension enabled."""
    return Markdown()


@pytest.fixture
def commonmark() -> Markdown:
    """Markdown processor restricted to CommonMark."""
    return Markdown(tables=False, strikethrough=False, task_lists=False, footnotes=False)


@pytest.fixture
def append_footnotes() -> Markdown:
    """Markdown processor that keeps unreferenced footnotes."""
    return Markdown(config=ParseConfig(unreferenced_footnotes="append"))


@pytest.fixture(autouse=True)
def _isolated_config():
    """Every test starts and ends with the default ambient config."""
    reset_parse_config()
    yield
    reset_parse_config()
