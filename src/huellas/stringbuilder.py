"""StringBuilder for O(n) string accumulation.

The Markdown writer collects inline output piece by piece; appending to a
list and joining once keeps that linear. The writer also needs to look at
and trim the tail of what it has written (trailing whitespace before a
line break must be protected), which the builder supports without joining.

Thread Safety:
StringBuilder instances are local to one write call.

"""

from __future__ import annotations


class StringBuilder:
    """Efficient string accumulator.

    Usage:
            >>> sb = StringBuilder()
            >>> _ = sb.append("*").append("hi").append("*")
            >>> sb.build()
            '*hi*'

    """

    __slots__ = ("_parts",)

    def __init__(self) -> None:
        self._parts: list[str] = []

    def append(self, s: str) -> StringBuilder:
        """Append a string (empty strings are skipped)."""
        if s:
            self._parts.append(s)
        return self

    def build(self) -> str:
        """Join all parts into the final string."""
        return "".join(self._parts)

    def take_trailing(self, chars: str) -> str:
        """Remove and return the run of ``chars`` at the end of the buffer."""
        taken: list[str] = []
        parts = self._parts
        while parts:
            last = parts[-1]
            kept = last.rstrip(chars)
            if kept:
                if len(kept) != len(last):
                    taken.append(last[len(kept) :])
                    parts[-1] = kept
                break
            taken.append(last)
            parts.pop()
        return "".join(reversed(taken))

    def __bool__(self) -> bool:
        """Return True if anything has been appended."""
        return bool(self._parts)
