"""Source location tracking for AST nodes and inline spans.

Provides SourceLocation (where a node starts and ends in the source) and
InlineSpan (the raw text of a leaf block awaiting inline parsing).

Thread Safety:
Both classes are frozen (immutable) and safe to share across threads.

"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Source location for debugging and tooling.

    All line and column positions are 1-indexed. Offsets are absolute
    character positions in the normalized source buffer.

    Attributes:
        lineno: Starting line number (1-indexed)
        col_offset: Starting column (1-indexed)
        offset: Absolute start offset in source
        end_offset: Absolute end offset in source
        end_lineno: Ending line number (optional)
        source_file: Source file path (optional)

    Examples:
            >>> loc = SourceLocation(lineno=3, col_offset=1)
            >>> str(loc)
            '3:1'

            >>> loc = SourceLocation(1, 1, source_file="notes.md")
            >>> str(loc)
            'notes.md:1:1'

    """

    lineno: int
    col_offset: int
    offset: int = 0
    end_offset: int = 0
    end_lineno: int | None = None
    source_file: str | None = None

    def __str__(self) -> str:
        """Format location as "file:line:col" or "line:col"."""
        if self.source_file:
            return f"{self.source_file}:{self.lineno}:{self.col_offset}"
        return f"{self.lineno}:{self.col_offset}"

    def span_to(self, end_lineno: int, end_offset: int) -> SourceLocation:
        """Return a copy of this location extended to the given end.

        Args:
            end_lineno: Last line covered (1-indexed)
            end_offset: Absolute end offset

        Returns:
            New SourceLocation with this start and the given end
        """
        return SourceLocation(
            lineno=self.lineno,
            col_offset=self.col_offset,
            offset=self.offset,
            end_offset=end_offset,
            end_lineno=end_lineno,
            source_file=self.source_file,
        )

    @classmethod
    def unknown(cls) -> SourceLocation:
        """Create a placeholder location.

        Used for nodes rebuilt from an event stream, which carries no
        source positions.
        """
        return cls(lineno=0, col_offset=0)


@dataclass(frozen=True, slots=True)
class InlineSpan:
    """Raw text of a leaf block plus the source range it came from.

    The block parser attaches one InlineSpan to every paragraph, heading
    and table cell; the inline parser consumes it and produces the leaf's
    inline children. Lines inside containers are not contiguous in the
    source, so ``start``/``end`` bound the span rather than slice it.
    """

    text: str
    start: int
    end: int
