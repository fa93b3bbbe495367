"""
Huellas: Markdown to event streams and back

A CommonMark + GFM parser that turns Markdown into a typed tree and a flat,
balanced stream of Start/End and leaf events. Features an explicit
container stack (no recursion on deep input), footnotes resolved in
first-reference order, and a canonical Markdown writer whose output parses
back to the same events. Zero runtime dependencies.

Quick Start:
    >>> from huellas import parse, events
    >>> doc = parse("# Hello, World!")
    >>> doc.children[0].level
    1

    >>> [type(e).__name__ for e in events("*hi*")]
    ['Start', 'Start', 'Text', 'End', 'End']

    >>> # Or use the high-level Markdown class
    >>> from huellas import Markdown
    >>> md = Markdown()
    >>> md("Title\\n=====")
    '# Title\\n'

Configuration:
    >>> from huellas import ParseConfig, parse_config_context
    >>> with parse_config_context(ParseConfig(tables_enabled=False)):
    ...     doc = parse("| a |\\n| - |")

Installation:
    pip install huellas
"""

from collections.abc import Iterable, Iterator

from huellas.builder import BuildContext, BuildHook, build_document, combine_hooks
from huellas.config import (
    ParseConfig,
    get_parse_config,
    parse_config_context,
    reset_parse_config,
    set_parse_config,
)
from huellas.emitter import iter_events
from huellas.errors import ConfigError, EventStreamError, HuellasError, RenderError
from huellas.events import End, Event, Start, Tag
from huellas.location import InlineSpan, SourceLocation
from huellas.nodes import (
    Block,
    BlockQuote,
    CodeBlock,
    CodeSpan,
    CustomBlock,
    CustomInline,
    Document,
    Emphasis,
    FootnoteDefinition,
    FootnoteRef,
    Heading,
    HtmlBlock,
    HtmlInline,
    Image,
    Inline,
    LineBreak,
    Link,
    LinkType,
    List,
    ListItem,
    Paragraph,
    SoftBreak,
    Strikethrough,
    Strong,
    Table,
    TableCell,
    TableRow,
    Text,
    ThematicBreak,
)
from huellas.parser import Parser
from huellas.references import LinkDefinition, ReferenceTable, normalize_label
from huellas.renderers.markdown import MarkdownWriter, render_markdown

__version__ = "0.1.0"


def parse(
    source: str,
    *,
    config: ParseConfig | None = None,
    source_file: str | None = None,
) -> Document:
    """Parse Markdown source into a typed tree.

    Args:
        source: Markdown source text
        config: Parse configuration (the ambient ParseConfig if None)
        source_file: Optional source file path, copied into locations

    Returns:
        Document root node. Never raises for any input.

    Example:
        >>> doc = parse("# Hello **World**")
        >>> doc.children[0]
        Heading(..., level=1, ...)
    """
    return Parser(config, source_file=source_file).parse(source)


def events(source: str, *, config: ParseConfig | None = None) -> Iterator[Event]:
    """Parse ``source`` and return its event stream.

    The stream is a generator: it is consumed once, and footnote
    definitions come after the body. Unreferenced footnotes follow
    ``config.unreferenced_footnotes``.

    Example:
        >>> list(events("hi"))
        [Start(tag=<Tag.PARAGRAPH: ...>, attrs=()), Text(text='hi'), End(tag=<Tag.PARAGRAPH: ...>)]
    """
    parser = Parser(config)
    return iter_events(
        parser.parse(source),
        unreferenced_footnotes=parser.config.unreferenced_footnotes,
    )


def to_markdown(
    source_or_events: str | Iterable[Event],
    *,
    config: ParseConfig | None = None,
) -> str:
    """Write canonical Markdown.

    Args:
        source_or_events: Markdown source (parsed first) or an event sequence
        config: Parse configuration used when a source string is given

    Raises:
        RenderError: If an event sequence is malformed

    Example:
        >>> to_markdown("* a\\n* b")
        '- a\\n- b\\n'
    """
    if isinstance(source_or_events, str):
        source_or_events = events(source_or_events, config=config)
    return render_markdown(source_or_events)


class Markdown:
    """High-level Markdown processor with a fixed configuration.

    Usage:
        >>> md = Markdown()
        >>> md("Hello  \\nworld")
        'Hello\\\\\\nworld\\n'

        >>> # Access the tree
        >>> doc = md.parse("# Heading")
        >>> doc.children[0].level
        1

        >>> # Restrict to CommonMark
        >>> md = Markdown(tables=False, strikethrough=False, task_lists=False, footnotes=False)

    Thread Safety:
        The configuration is frozen at construction and every call builds
        its own parse state. Safe to share across threads.

    """

    __slots__ = ("_config", "_writer")

    def __init__(
        self,
        *,
        tables: bool = True,
        strikethrough: bool = True,
        task_lists: bool = True,
        footnotes: bool = True,
        config: ParseConfig | None = None,
    ) -> None:
        """Initialize Markdown processor.

        Args:
            tables: Enable GFM pipe tables
            strikethrough: Enable ~strike~
            task_lists: Enable - [ ] / - [x] items
            footnotes: Enable [^label] footnotes
            config: Full ParseConfig; overrides the flags above when given
        """
        if config is None:
            config = ParseConfig(
                tables_enabled=tables,
                strikethrough_enabled=strikethrough,
                task_lists_enabled=task_lists,
                footnotes_enabled=footnotes,
            )
        self._config = config
        self._writer = MarkdownWriter()

    @property
    def config(self) -> ParseConfig:
        return self._config

    def __call__(self, source: str) -> str:
        """Parse ``source`` and write it back as canonical Markdown."""
        return self._writer.write(self.events(source))

    def parse(self, source: str, *, source_file: str | None = None) -> Document:
        """Parse ``source`` into a Document."""
        return Parser(self._config, source_file=source_file).parse(source)

    def events(self, source: str) -> Iterator[Event]:
        """Parse ``source`` and return its event stream."""
        return iter_events(
            self.parse(source),
            unreferenced_footnotes=self._config.unreferenced_footnotes,
        )

    def parse_many(
        self,
        sources: Iterable[str],
        *,
        source_files: Iterable[str | None] | None = None,
    ) -> list[Document]:
        """Parse several sources with the same configuration.

        Args:
            sources: Markdown sources
            source_files: Optional paths, one per source

        Returns:
            One Document per source, in order
        """
        parser_files = iter(source_files) if source_files is not None else None
        documents: list[Document] = []
        for source in sources:
            source_file = next(parser_files, None) if parser_files is not None else None
            documents.append(self.parse(source, source_file=source_file))
        return documents


__all__ = [
    # Core API
    "parse",
    "events",
    "to_markdown",
    "build_document",
    "combine_hooks",
    "BuildContext",
    "BuildHook",
    "iter_events",
    "Markdown",
    "Parser",
    "MarkdownWriter",
    "render_markdown",
    # Configuration
    "ParseConfig",
    "get_parse_config",
    "set_parse_config",
    "reset_parse_config",
    "parse_config_context",
    # Errors
    "HuellasError",
    "ConfigError",
    "EventStreamError",
    "RenderError",
    # Events
    "Event",
    "Tag",
    "Start",
    "End",
    # References
    "ReferenceTable",
    "LinkDefinition",
    "normalize_label",
    # Locations
    "SourceLocation",
    "InlineSpan",
    # Nodes
    "Block",
    "BlockQuote",
    "CodeBlock",
    "CodeSpan",
    "CustomBlock",
    "CustomInline",
    "Document",
    "Emphasis",
    "FootnoteDefinition",
    "FootnoteRef",
    "Heading",
    "HtmlBlock",
    "HtmlInline",
    "Image",
    "Inline",
    "LineBreak",
    "Link",
    "LinkType",
    "List",
    "ListItem",
    "Paragraph",
    "SoftBreak",
    "Strikethrough",
    "Strong",
    "Table",
    "TableCell",
    "TableRow",
    "Text",
    "ThematicBreak",
]
