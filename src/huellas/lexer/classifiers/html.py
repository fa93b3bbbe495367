"""HTML block start/end classifiers and the shared raw-HTML patterns.

CommonMark 4.6 defines seven kinds of HTML block start conditions. Types
1-5 end at a line containing a specific end marker; types 6 and 7 end at a
blank line. Type 7 (any complete open or close tag alone on its line) may
not interrupt a paragraph.
"""

from __future__ import annotations

import re

# CommonMark HTML block type 1 tags (case-insensitive)
HTML_BLOCK_TYPE1_TAGS = frozenset({"pre", "script", "style", "textarea"})

# CommonMark HTML block type 6 tags (case-insensitive)
# These are "block-level" HTML tags that end on blank line
HTML_BLOCK_TYPE6_TAGS = frozenset(
    {
        "address", "article", "aside", "base", "basefont", "blockquote",
        "body", "caption", "center", "col", "colgroup", "dd", "details",
        "dialog", "dir", "div", "dl", "dt", "fieldset", "figcaption",
        "figure", "footer", "form", "frame", "frameset", "h1", "h2", "h3",
        "h4", "h5", "h6", "head", "header", "hr", "html", "iframe",
        "legend", "li", "link", "main", "menu", "menuitem", "nav",
        "noframes", "ol", "optgroup", "option", "p", "param", "search",
        "section", "summary", "table", "tbody", "td", "tfoot", "th",
        "thead", "title", "tr", "track", "ul",
    }
)  # fmt: skip

_TAG_NAME = r"[A-Za-z][A-Za-z0-9-]*"
_ATTRIBUTE_NAME = r"[a-zA-Z_:][a-zA-Z0-9:._-]*"
_ATTRIBUTE_VALUE = r"(?:[^\"'=<>`\x00-\x20]+|'[^']*'|\"[^\"]*\")"
_ATTRIBUTE = rf"(?:\s+{_ATTRIBUTE_NAME}(?:\s*=\s*{_ATTRIBUTE_VALUE})?)"
OPEN_TAG = rf"<{_TAG_NAME}{_ATTRIBUTE}*\s*/?>"
CLOSE_TAG = rf"</{_TAG_NAME}\s*>"
_COMMENT = r"<!-->|<!--->|<!--[\s\S]*?-->"
_PROCESSING_INSTRUCTION = r"<\?[\s\S]*?\?>"
_DECLARATION = r"<![A-Za-z]+[^>]*>"
_CDATA = r"<!\[CDATA\[[\s\S]*?\]\]>"

# Any raw inline HTML construct, anchored at the match position
HTML_TAG_RE = re.compile(
    rf"(?:{OPEN_TAG}|{CLOSE_TAG}|{_COMMENT}|{_PROCESSING_INSTRUCTION}|{_DECLARATION}|{_CDATA})"
)

_TYPE7_START_RE = re.compile(rf"(?:{OPEN_TAG}|{CLOSE_TAG})[ \t]*$")
_TAG_NAME_RE = re.compile(r"</?([A-Za-z][A-Za-z0-9-]*)")

_END_CONDITIONS: dict[int, re.Pattern[str]] = {
    1: re.compile(r"</(?:script|pre|textarea|style)>", re.IGNORECASE),
    2: re.compile(r"-->"),
    3: re.compile(r"\?>"),
    4: re.compile(r">"),
    5: re.compile(r"\]\]>"),
}


def _type1_or_6(content: str) -> int | None:
    match = _TAG_NAME_RE.match(content)
    if match is None:
        return None
    name = match.group(1).lower()
    after = content[match.end() :]
    closing = content.startswith("</")
    if not closing and name in HTML_BLOCK_TYPE1_TAGS:
        if not after or after[0] in " \t>":
            return 1
    if name in HTML_BLOCK_TYPE6_TAGS:
        if not after or after[0] in " \t>" or after.startswith("/>"):
            return 6
    return None


def classify_html_block_start(content: str, *, in_paragraph: bool) -> int | None:
    """Return the HTML block type (1-7) that ``content`` starts, or None.

    Args:
        content: Line content with leading indentation stripped
        in_paragraph: True when the line would otherwise continue a
            paragraph; type 7 cannot interrupt one.
    """
    if not content.startswith("<"):
        return None
    if content.startswith("<!--"):
        return 2
    if content.startswith("<?"):
        return 3
    if content.startswith("<![CDATA["):
        return 5
    if len(content) > 2 and content[1] == "!" and content[2].isascii() and content[2].isalpha():
        return 4
    block_type = _type1_or_6(content)
    if block_type is not None:
        return block_type
    if not in_paragraph and _TYPE7_START_RE.match(content):
        return 7
    return None


def html_block_ends(block_type: int, line: str) -> bool:
    """Check whether ``line`` satisfies the end condition of types 1-5.

    Types 6 and 7 end at a blank line, which the block parser handles.
    """
    pattern = _END_CONDITIONS.get(block_type)
    return pattern is not None and pattern.search(line) is not None
