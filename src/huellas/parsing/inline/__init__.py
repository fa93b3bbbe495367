"""Inline parsing for Huellas.

The InlineParser combines three mixins over one piece chain:
- `EmphasisMixin`: delimiter runs, flanking, emphasis/strong/strikethrough matching
- `LinkParsingMixin`: brackets, links, images, footnote references
- `SpecialInlineMixin`: escapes, code spans, entities, autolinks, raw HTML
"""

from huellas.parsing.inline.core import InlineParser

__all__ = ["InlineParser"]
