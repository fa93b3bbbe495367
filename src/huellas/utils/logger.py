"""Minimal logging utilities for Huellas.

Provides a simple get_logger function that wraps the standard library logging.
Huellas never configures handlers; applications decide where records go.

Example:
    >>> from huellas.utils.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("nesting cap reached at line %d", 12)
"""

from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Returns a standard library logger with the "huellas." prefix.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger instance

    Example:
        >>> logger = get_logger("mymodule")
        >>> logger.name
        'huellas.mymodule'
    """
    if not (name == "huellas" or name.startswith("huellas.")):
        name = f"huellas.{name}"
    return logging.getLogger(name)
