"""Tests for ParseConfig validation and the ContextVar config layer."""

from threading import Thread

import pytest

from huellas import (
    ConfigError,
    Markdown,
    ParseConfig,
    Parser,
    get_parse_config,
    parse,
    parse_config_context,
    reset_parse_config,
    set_parse_config,
)
from huellas.nodes import Paragraph, Table


class TestParseConfigDataclass:
    """ParseConfig frozen dataclass behavior."""

    def test_default_values(self) -> None:
        """Defaults enable the GFM extensions."""
        config = ParseConfig()
        assert config.tables_enabled is True
        assert config.strikethrough_enabled is True
        assert config.task_lists_enabled is True
        assert config.footnotes_enabled is True
        assert config.max_nesting_depth == 64
        assert config.table_ragged_rows == "normalize"
        assert config.unreferenced_footnotes == "drop"

    def test_immutability(self) -> None:
        config = ParseConfig()
        with pytest.raises(AttributeError):
            config.tables_enabled = False  # type: ignore[misc]

    def test_hashable(self) -> None:
        assert hash(ParseConfig()) == hash(ParseConfig())


class TestValidation:
    @pytest.mark.parametrize("depth", [0, -1, 10_001])
    def test_depth_out_of_range(self, depth: int) -> None:
        with pytest.raises(ConfigError) as info:
            ParseConfig(max_nesting_depth=depth)
        assert info.value.field_name == "max_nesting_depth"

    @pytest.mark.parametrize("depth", [True, 2.5, "8"])
    def test_depth_wrong_type(self, depth: object) -> None:
        with pytest.raises(ConfigError):
            ParseConfig(max_nesting_depth=depth)  # type: ignore[arg-type]

    def test_unknown_ragged_policy(self) -> None:
        with pytest.raises(ConfigError, match="table_ragged_rows"):
            ParseConfig(table_ragged_rows="pad")  # type: ignore[arg-type]

    def test_unknown_footnote_policy(self) -> None:
        with pytest.raises(ConfigError, match="unreferenced_footnotes"):
            ParseConfig(unreferenced_footnotes="keep")  # type: ignore[arg-type]

    def test_error_message_names_field(self) -> None:
        with pytest.raises(ConfigError, match=r"^ParseConfig\.max_nesting_depth: "):
            ParseConfig(max_nesting_depth=0)


class TestFromDict:
    def test_known_keys(self) -> None:
        config = ParseConfig.from_dict({"tables_enabled": False, "max_nesting_depth": 8})
        assert config.tables_enabled is False
        assert config.max_nesting_depth == 8

    def test_unknown_keys_ignored(self) -> None:
        config = ParseConfig.from_dict({"unknown_key": 1})
        assert config == ParseConfig()

    def test_values_still_validated(self) -> None:
        with pytest.raises(ConfigError):
            ParseConfig.from_dict({"table_ragged_rows": "nope"})


class TestContextVar:
    def test_default_config(self) -> None:
        assert get_parse_config() == ParseConfig()

    def test_set_and_reset(self) -> None:
        config = ParseConfig(tables_enabled=False)
        set_parse_config(config)
        assert get_parse_config() is config
        reset_parse_config()
        assert get_parse_config() == ParseConfig()

    def test_context_manager_restores(self) -> None:
        outer = ParseConfig(footnotes_enabled=False)
        set_parse_config(outer)
        with parse_config_context(ParseConfig(tables_enabled=False)):
            assert get_parse_config().tables_enabled is False
        assert get_parse_config() is outer

    def test_context_manager_restores_on_error(self) -> None:
        with pytest.raises(RuntimeError), parse_config_context(ParseConfig(tables_enabled=False)):
            raise RuntimeError("boom")
        assert get_parse_config() == ParseConfig()

    def test_parse_reads_ambient_config(self) -> None:
        source = "| a |\n| - |"
        assert isinstance(parse(source).children[0], Table)
        with parse_config_context(ParseConfig(tables_enabled=False)):
            assert isinstance(parse(source).children[0], Paragraph)

    def test_parser_resolves_config_once(self) -> None:
        with parse_config_context(ParseConfig(tables_enabled=False)):
            parser = Parser()
        assert parser.config.tables_enabled is False
        assert isinstance(parser.parse("| a |\n| - |").children[0], Paragraph)

    def test_markdown_ignores_ambient_config(self) -> None:
        md = Markdown()
        with parse_config_context(ParseConfig(tables_enabled=False)):
            assert isinstance(md.parse("| a |\n| - |").children[0], Table)


class TestThreadIsolation:
    def test_threads_do_not_share_config(self) -> None:
        results: dict[str, bool] = {}

        def worker(name: str, tables: bool) -> None:
            with parse_config_context(ParseConfig(tables_enabled=tables)):
                doc = parse("| a |\n| - |")
                results[name] = isinstance(doc.children[0], Table)

        threads = [
            Thread(target=worker, args=(f"t{i}", i % 2 == 0)) for i in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results == {f"t{i}": i % 2 == 0 for i in range(8)}
        assert get_parse_config() == ParseConfig()

    def test_concurrent_parses_are_isolated(self, md: Markdown) -> None:
        sources = [f"[x]\n\n[x]: /url{i}" for i in range(8)]
        urls: dict[int, str] = {}

        def worker(i: int) -> None:
            doc = md.parse(sources[i])
            urls[i] = doc.children[0].children[0].url

        threads = [Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert urls == {i: f"/url{i}" for i in range(8)}
