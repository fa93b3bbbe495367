"""Utility helpers shared across the parser and the writer."""

from huellas.utils.logger import get_logger
from huellas.utils.text import decode_entity, display_width, unescape_string

__all__ = ["decode_entity", "display_width", "get_logger", "unescape_string"]
