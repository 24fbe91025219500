from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    STARTED = "started"
    FINISHED = "finished"


@dataclass(frozen=True)
class Event:
    """A normalized reading event; user_id is always email-shaped."""

    event: EventKind
    user_id: str
    post_id: str
    time: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.event.value,
            "user_id": self.user_id,
            "post_id": self.post_id,
            "time": self.time,
        }
