"""Block-level construct classifiers for the Huellas block parser.

Each classifier is a pure function: it reads the remainder of a line
(leading indentation already stripped) and returns a small immutable
result, or None when the line does not start that construct.
"""

from huellas.lexer.classifiers.fence import FenceOpen, classify_fence_open, is_fence_close
from huellas.lexer.classifiers.footnote import FootnoteMarker, classify_footnote_definition
from huellas.lexer.classifiers.heading import (
    AtxHeading,
    classify_atx_heading,
    classify_setext_underline,
)
from huellas.lexer.classifiers.html import classify_html_block_start, html_block_ends
from huellas.lexer.classifiers.list import ListMarker, classify_list_marker, lists_match
from huellas.lexer.classifiers.table import classify_table_delimiter, split_table_row
from huellas.lexer.classifiers.thematic import is_thematic_break

__all__ = [
    "AtxHeading",
    "FenceOpen",
    "FootnoteMarker",
    "ListMarker",
    "classify_atx_heading",
    "classify_fence_open",
    "classify_footnote_definition",
    "classify_html_block_start",
    "classify_list_marker",
    "classify_setext_underline",
    "classify_table_delimiter",
    "html_block_ends",
    "is_fence_close",
    "is_thematic_break",
    "lists_match",
    "split_table_row",
]
