from __future__ import annotations

from typing import Mapping

from .errors import EventTypeUnrecognizedError
from .event import Event, EventKind
from .identity import resolve_identity
from .raw_schema import RawRecord

# Exact, case-sensitive.
EVENT_KINDS: Mapping[str, EventKind] = {
    "Started Content Piece": EventKind.STARTED,
    "End Read Content": EventKind.FINISHED,
}


def event_kind_from_type(event_type: str, *, index: int | None = None) -> EventKind:
    try:
        return EVENT_KINDS[event_type]
    except KeyError:
        raise EventTypeUnrecognizedError(event_type, index=index) from None


def normalize_record(raw: RawRecord, *, index: int | None = None) -> Event:
    """
    Build the canonical Event for a validated raw record.

    The identity is resolved before the event type is mapped, so a record that
    fails both checks is reported as missing its identity.
    """
    user_id = resolve_identity(raw.properties, index=index)
    kind = event_kind_from_type(raw.event_type, index=index)
    return Event(
        event=kind,
        user_id=user_id,
        post_id=raw.properties.post_id,
        time=raw.properties.time,
    )
