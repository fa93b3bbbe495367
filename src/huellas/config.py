"""ContextVar-based parse configuration for Huellas.

Provides thread-local configuration using Python's ContextVars (PEP 567).
A Markdown instance builds its config once; the top-level ``parse()`` reads
the ambient config when none is passed. Either way, a parse call resolves
the config exactly once and hands it down the pipeline explicitly, so
concurrent parses never share mutable state.

Thread Safety:
    ContextVars are thread-local by design. Each thread has independent storage,
    so no locks are needed and race conditions are impossible.

Usage:
    # Explicit
    doc = parse(source, config=ParseConfig(tables_enabled=False))

    # Ambient, via the context manager
    with parse_config_context(ParseConfig(max_nesting_depth=16)):
        doc = parse(source)

"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Literal

from huellas.errors import ConfigError

type RaggedRowPolicy = Literal["normalize", "preserve", "reject"]
type UnreferencedFootnotePolicy = Literal["drop", "append"]

_RAGGED_ROW_POLICIES = frozenset({"normalize", "preserve", "reject"})
_UNREFERENCED_POLICIES = frozenset({"drop", "append"})

# Python's default recursion limit is far above this; the block tree is
# frozen iteratively, so the cap only bounds container work per line.
MAX_NESTING_DEPTH_LIMIT = 10_000


@dataclass(frozen=True, slots=True)
class ParseConfig:
    """Immutable parse configuration.

    Frozen dataclass ensures thread-safety (immutable after creation).

    Note: source_file is intentionally excluded: it is per-call state,
    not configuration.

    Attributes:
        tables_enabled: Enable GFM pipe tables
        strikethrough_enabled: Enable ~strike~ and ~~strike~~
        task_lists_enabled: Enable - [ ] / - [x] list items
        footnotes_enabled: Enable [^label] references and [^label]: definitions
        max_nesting_depth: Maximum number of open containers (block quotes,
            lists, list items, footnote definitions). Markers beyond the cap
            are kept as literal paragraph text.
        table_ragged_rows: What to do with body rows whose cell count differs
            from the header: "normalize" pads short rows and truncates long
            ones, "preserve" keeps cells as written, "reject" ends the table
            at the first ragged row.
        unreferenced_footnotes: "drop" leaves never-referenced footnote
            definitions out of the event stream; "append" emits them after
            the referenced ones, in definition order.

    """

    tables_enabled: bool = True
    strikethrough_enabled: bool = True
    task_lists_enabled: bool = True
    footnotes_enabled: bool = True
    max_nesting_depth: int = 64
    table_ragged_rows: RaggedRowPolicy = "normalize"
    unreferenced_footnotes: UnreferencedFootnotePolicy = "drop"

    def __post_init__(self) -> None:
        """Validate ranges and policy names."""
        if not isinstance(self.max_nesting_depth, int) or isinstance(
            self.max_nesting_depth, bool
        ):
            raise ConfigError("max_nesting_depth", "must be an int")
        if not 1 <= self.max_nesting_depth <= MAX_NESTING_DEPTH_LIMIT:
            raise ConfigError(
                "max_nesting_depth",
                f"must be between 1 and {MAX_NESTING_DEPTH_LIMIT}, "
                f"got {self.max_nesting_depth}",
            )
        if self.table_ragged_rows not in _RAGGED_ROW_POLICIES:
            raise ConfigError(
                "table_ragged_rows",
                f"unknown policy {self.table_ragged_rows!r}; "
                f"expected one of {sorted(_RAGGED_ROW_POLICIES)}",
            )
        if self.unreferenced_footnotes not in _UNREFERENCED_POLICIES:
            raise ConfigError(
                "unreferenced_footnotes",
                f"unknown policy {self.unreferenced_footnotes!r}; "
                f"expected one of {sorted(_UNREFERENCED_POLICIES)}",
            )

    @classmethod
    def from_dict(cls, config_dict: dict) -> ParseConfig:
        """Create ParseConfig from dictionary.

        Only includes keys that are valid ParseConfig fields; unknown keys
        are silently ignored.

        Args:
            config_dict: Dictionary with config values. Keys should match
                ParseConfig attribute names.

        Returns:
            New ParseConfig instance with values from dict.

        Example:
            >>> config = ParseConfig.from_dict({
            ...     "tables_enabled": False,
            ...     "unknown_key": "ignored",
            ... })
            >>> config.tables_enabled
            False

        """
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in config_dict.items() if k in valid_fields}
        return cls(**filtered)


# Module-level default config (reused, never recreated)
_DEFAULT_CONFIG: ParseConfig = ParseConfig()

_parse_config: ContextVar[ParseConfig] = ContextVar(
    "huellas_parse_config",
    default=_DEFAULT_CONFIG,
)


def get_parse_config() -> ParseConfig:
    """Get current parse configuration (thread-local).

    Returns:
        The active ParseConfig for this thread/context.
    """
    return _parse_config.get()


def set_parse_config(config: ParseConfig) -> None:
    """Set parse configuration for current context.

    Args:
        config: ParseConfig instance to use for this context.
    """
    _parse_config.set(config)


def reset_parse_config() -> None:
    """Reset to default configuration.

    Reuses the module-level _DEFAULT_CONFIG singleton, avoiding allocation.
    """
    _parse_config.set(_DEFAULT_CONFIG)


@contextmanager
def parse_config_context(config: ParseConfig) -> Iterator[None]:
    """Context manager for temporary config changes.

    Args:
        config: ParseConfig to use within the context.

    Yields:
        None

    Example:
        >>> with parse_config_context(ParseConfig(tables_enabled=False)):
        ...     doc = parse("| a |\\n| - |")
        >>> # Automatically reset to previous config

    Thread Safety:
        Only affects the current thread's context. Properly restores previous
        config even if an exception is raised.

    """
    previous = _parse_config.get()
    _parse_config.set(config)
    try:
        yield
    finally:
        _parse_config.set(previous)


__all__ = [
    "ParseConfig",
    "RaggedRowPolicy",
    "UnreferencedFootnotePolicy",
    "get_parse_config",
    "set_parse_config",
    "reset_parse_config",
    "parse_config_context",
]
