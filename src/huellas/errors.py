"""Exception classes for Huellas.

Parsing Markdown never raises: every input has a defined parse. The
exceptions below report misuse of the API (bad configuration, malformed
event sequences handed to the builder or the writer).
"""

from __future__ import annotations


class HuellasError(Exception):
    """Base exception for all Huellas errors.

    Subclass this for specific error categories.
    """

    pass


class ConfigError(HuellasError):
    """Invalid parse configuration value.

    Raised by ParseConfig when a field is out of range or names an
    unknown policy.
    """

    def __init__(self, field_name: str, message: str) -> None:
        """Initialize config error.

        Args:
            field_name: Name of the offending ParseConfig field
            message: Description of the problem
        """
        self.field_name = field_name
        super().__init__(f"ParseConfig.{field_name}: {message}")


class EventStreamError(HuellasError):
    """Malformed event sequence.

    Raised when an End event does not close the innermost open Start,
    or when the sequence ends with tags still open.
    """

    def __init__(self, message: str, index: int | None = None) -> None:
        """Initialize event stream error with optional position.

        Args:
            message: Error description
            index: Zero-based position of the offending event (optional)
        """
        self.message = message
        self.index = index

        location = f"event {index}: " if index is not None else ""
        super().__init__(f"{location}{message}")


class RenderError(HuellasError):
    """Error during Markdown writing.

    Raised when the writer receives an event sequence it cannot
    lay out (unbalanced tags, inline events outside a block).
    """

    pass
