from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class SourceUnavailableError(RuntimeError):
    """Raised when the input file cannot be opened or read."""


class RecordError(ValueError):
    """
    Base class for failures scoped to a single input record.

    `index` is the zero-based position of the record among the top-level
    values of the input, or None when the position is unknown.
    """

    def __init__(self, reason: str, *, index: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.index = index


class RecordMalformedError(RecordError):
    """Raised on JSON syntax errors or raw-record schema violations."""


class IdentityMissingError(RecordError):
    """Raised when a record carries none of the identity candidate fields."""


class EventTypeUnrecognizedError(RecordError):
    """Raised when the raw event type is not one of the known kinds."""

    def __init__(self, event_type: str, *, index: int | None = None) -> None:
        super().__init__(f"unrecognized event type: {event_type!r}", index=index)
        self.event_type = event_type


class IdentityNotEmailShapedError(RecordError):
    """Raised when the resolved identity does not look like an email address."""

    def __init__(self, identity: str, *, index: int | None = None) -> None:
        super().__init__(f"identity is not email-shaped: {identity!r}", index=index)
        self.identity = identity
