"""Block parsing for Huellas.

BlockParser composes the construct mixins over one container stack:
- `LeafBlockMixin`: headings, code, HTML blocks, thematic breaks, paragraphs
- `ListParsingMixin`: list items and list tightness
- `TableParsingMixin`: GFM pipe tables
- `FootnoteParsingMixin`: footnote definitions
"""

from huellas.parsing.blocks.core import BlockParser, BlockTree

__all__ = ["BlockParser", "BlockTree"]
