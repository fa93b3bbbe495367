"""Huellas renderers.

Renderers turn event sequences into output formats.

Available Renderers:
- MarkdownWriter: Writes canonical Markdown that parses back to the
  same events

Thread Safety:
All per-write state lives in an object local to each write() call.
Safe for concurrent use from multiple threads.

"""

from huellas.renderers.markdown import MarkdownWriter, escape_text, render_markdown

__all__ = ["MarkdownWriter", "escape_text", "render_markdown"]
