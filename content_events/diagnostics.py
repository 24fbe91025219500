from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, Callable, TextIO

from .errors import (
    EventTypeUnrecognizedError,
    IdentityMissingError,
    IdentityNotEmailShapedError,
    RecordError,
    RecordMalformedError,
)

RejectFn = Callable[[RecordError], None]


def describe_rejection(error: RecordError) -> str:
    if error.index is None:
        return error.reason
    return f"record {error.index}: {error.reason}"


def format_rejection(error: RecordError) -> str:
    return f"deserialization error: {describe_rejection(error)}"


class StderrReporter:
    """
    Writes one `deserialization error: ...` line per rejected record.

    Email-shape rejections are skipped here; IdentityFilter logs those itself
    when debug is enabled.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def __call__(self, error: RecordError) -> None:
        if isinstance(error, IdentityNotEmailShapedError):
            return
        print(format_rejection(error), file=self._stream or sys.stderr)


@dataclass
class PipelineStats:
    """Per-run counters. Every input record ends up in exactly one bucket."""

    emitted: int = 0
    malformed: int = 0
    identity_missing: int = 0
    unknown_event_type: int = 0
    rejected_email: int = 0

    @property
    def rejected(self) -> int:
        return (
            self.malformed
            + self.identity_missing
            + self.unknown_event_type
            + self.rejected_email
        )

    @property
    def records(self) -> int:
        return self.emitted + self.rejected

    def count_rejection(self, error: RecordError) -> None:
        if isinstance(error, RecordMalformedError):
            self.malformed += 1
        elif isinstance(error, IdentityMissingError):
            self.identity_missing += 1
        elif isinstance(error, EventTypeUnrecognizedError):
            self.unknown_event_type += 1
        elif isinstance(error, IdentityNotEmailShapedError):
            self.rejected_email += 1
        else:
            self.malformed += 1

    def as_dict(self) -> dict[str, Any]:
        return {
            "records": self.records,
            "emitted": self.emitted,
            "rejected": self.rejected,
            "malformed": self.malformed,
            "identity_missing": self.identity_missing,
            "unknown_event_type": self.unknown_event_type,
            "rejected_email": self.rejected_email,
        }
