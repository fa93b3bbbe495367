"""Line scanning for Huellas.

The block parser never indexes raw source directly: it walks each Line
with a LineCursor and asks the classifiers what the remainder starts.
"""

from huellas.lexer.lines import (
    CODE_INDENT,
    Line,
    LineCursor,
    LineKind,
    classify,
    normalize_source,
    split_lines,
)

__all__ = [
    "CODE_INDENT",
    "Line",
    "LineCursor",
    "LineKind",
    "classify",
    "normalize_source",
    "split_lines",
]
