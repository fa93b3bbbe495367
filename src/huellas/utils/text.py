"""Text helpers: entity decoding, escape processing, display width.

These are shared by the block parser (fence info strings, reference
definitions), the inline parser (entities, link destinations) and the
Markdown writer (table column widths).
"""

from __future__ import annotations

import re
import unicodedata
from html.entities import html5

from huellas.parsing.charsets import ASCII_PUNCTUATION, DIGITS, HEX_DIGITS

# Named entity names are at most 31 characters after the leading letter
_MAX_ENTITY_NAME = 32

_ESCAPE_OR_ENTITY = re.compile(
    r"\\[!\"#$%&'()*+,\-./:;<=>?@\[\\\]^_`{|}~]"
    r"|&(?:#[xX][0-9a-fA-F]{1,6}|#[0-9]{1,7}|[A-Za-z][A-Za-z0-9]{1,31});"
)


def _codepoint_to_char(codepoint: int) -> str:
    """Decode a numeric reference, mapping invalid code points to U+FFFD."""
    if codepoint == 0 or codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
        return "\ufffd"
    return chr(codepoint)


def decode_entity(text: str, pos: int) -> tuple[str, int] | None:
    """Try to decode an entity or numeric character reference at ``pos``.

    CommonMark 6.2: Entity and numeric character references.
    Supports:
    - Named entities: &amp; &nbsp; &copy; etc. (HTML5 list, ``;`` required)
    - Decimal: &#digits; (1-7 digits)
    - Hexadecimal: &#xhex; or &#Xhex; (1-6 hex digits)

    Returns:
        Tuple of (decoded_text, position_after_semicolon), or None when the
        text at ``pos`` is not a valid reference.
    """
    text_len = len(text)
    if pos >= text_len or text[pos] != "&":
        return None

    end = pos + 1
    if end < text_len and text[end] == "#":
        end += 1
        if end < text_len and text[end] in "xX":
            end += 1
            digits = HEX_DIGITS
            base = 16
            max_len = 6
        else:
            digits = DIGITS
            base = 10
            max_len = 7
        start = end
        while end < text_len and text[end] in digits:
            end += 1
        if not 1 <= end - start <= max_len:
            return None
        if end >= text_len or text[end] != ";":
            return None
        return _codepoint_to_char(int(text[start:end], base)), end + 1

    if end >= text_len or not text[end].isascii() or not text[end].isalpha():
        return None
    max_end = min(pos + 1 + _MAX_ENTITY_NAME, text_len)
    while end < max_end and text[end].isascii() and text[end].isalnum():
        end += 1
    if end >= text_len or text[end] != ";":
        return None
    decoded = html5.get(text[pos + 1 : end + 1])
    if decoded is None:
        return None
    return decoded, end + 1


def _unescape_match(match: re.Match[str]) -> str:
    token = match.group(0)
    if token[0] == "\\":
        return token[1]
    decoded = decode_entity(token, 0)
    return decoded[0] if decoded is not None else token


def unescape_string(text: str) -> str:
    """Process backslash escapes and entity references in ``text``.

    Used for link destinations, link titles and fence info strings, where
    CommonMark applies both kinds of unescaping.
    """
    if "\\" not in text and "&" not in text:
        return text
    return _ESCAPE_OR_ENTITY.sub(_unescape_match, text)


def is_escapable(char: str) -> bool:
    """Return True if a backslash before ``char`` is an escape."""
    return char in ASCII_PUNCTUATION


def display_width(text: str) -> int:
    """Return the terminal display width of ``text``.

    Wide and fullwidth East Asian characters count as two columns,
    combining marks and zero-width format characters as none.
    """
    width = 0
    for char in text:
        if unicodedata.combining(char) or unicodedata.category(char) in ("Mn", "Me", "Cf"):
            continue
        width += 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1
    return width
