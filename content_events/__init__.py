from __future__ import annotations

from .config import config_sha256, load_config, resolve_environment
from .config_schema import PipelineConfig
from .diagnostics import PipelineStats
from .errors import (
    ConfigError,
    EventTypeUnrecognizedError,
    IdentityMissingError,
    IdentityNotEmailShapedError,
    RecordError,
    RecordMalformedError,
    SourceUnavailableError,
)
from .event import Event, EventKind
from .pipeline import EventStream, iter_events, load_events

__all__ = [
    "ConfigError",
    "Event",
    "EventKind",
    "EventStream",
    "EventTypeUnrecognizedError",
    "IdentityMissingError",
    "IdentityNotEmailShapedError",
    "PipelineConfig",
    "PipelineStats",
    "RecordError",
    "RecordMalformedError",
    "SourceUnavailableError",
    "config_sha256",
    "iter_events",
    "load_config",
    "load_events",
    "resolve_environment",
]
