"""Character sets for O(1) classification.

All sets are frozensets for:
- O(1) membership testing (vs O(n) for strings)
- Immutability (thread-safe)
- Module-level caching (no per-call allocation)

Reference: CommonMark 0.31.2 specification

Usage:
    from huellas.parsing.charsets import ASCII_PUNCTUATION

    if char in ASCII_PUNCTUATION:  # O(1) lookup
        ...
"""

import unicodedata

# CommonMark: ASCII punctuation characters
# https://spec.commonmark.org/0.31.2/#ascii-punctuation-character
ASCII_PUNCTUATION: frozenset[str] = frozenset("!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~")


def is_unicode_punctuation(char: str) -> bool:
    """Check if character is Unicode punctuation or symbol (P* or S* category).

    CommonMark uses Unicode punctuation categories for flanking rules.
    This includes ASCII punctuation as a subset.

    """
    if not char:
        return False
    if char in ASCII_PUNCTUATION:
        return True
    cat = unicodedata.category(char)
    return cat.startswith("P") or cat.startswith("S")


# CommonMark: ASCII whitespace for basic checks
WHITESPACE: frozenset[str] = frozenset(" \t\n\r\f\v")

# Space and tab only: the characters that count toward indentation
SPACE_OR_TAB: frozenset[str] = frozenset(" \t")


def is_unicode_whitespace(char: str) -> bool:
    """Check if character is Unicode whitespace.

    CommonMark uses Unicode whitespace for emphasis flanking rules.
    Includes ASCII whitespace and Unicode category Zs (space separator).
    Also treats empty string as whitespace (start and end of the text
    count as whitespace for flanking).

    """
    if not char:
        return True
    if char in WHITESPACE:
        return True
    return unicodedata.category(char) == "Zs"


# Inline characters that end a plain text run and trigger dispatch
INLINE_SPECIAL: frozenset[str] = frozenset("\n`[]\\!<&*_~")

# List marker characters
UNORDERED_LIST_MARKERS: frozenset[str] = frozenset("-*+")

# Ordered list delimiters (1. and 1))
ORDERED_LIST_DELIMITERS: frozenset[str] = frozenset(".)")

# Thematic break characters
THEMATIC_BREAK_CHARS: frozenset[str] = frozenset("-*_")

# Digits for ordered list detection
DIGITS: frozenset[str] = frozenset("0123456789")

# Hex digits for entity references
HEX_DIGITS: frozenset[str] = frozenset("0123456789abcdefABCDEF")

# First characters that may start a block other than a paragraph.
# Lines starting with anything else skip the block-start scan.
BLOCK_START_CHARS: frozenset[str] = frozenset("#`~>-+*_=<[|:0123456789")
