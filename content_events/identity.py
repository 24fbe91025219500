from __future__ import annotations

import re
import sys
from typing import Callable

from .errors import IdentityMissingError
from .event import Event
from .raw_schema import RawProperties

LogFn = Callable[[str], None]

# Shape check only: not RFC 5321, not unicode-aware.
EMAIL_RE = re.compile(
    r"[A-Za-z0-9._-]+@(?:[A-Za-z0-9-]+\.){1,3}[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+){0,2}"
)


def resolve_identity(properties: RawProperties, *, index: int | None = None) -> str:
    """
    Return the first present identity candidate.

    Priority is `user_id`, then the legacy distinct-id-before-identity field, then
    `distinct_id`. Once a candidate is chosen the others are never consulted,
    even if the chosen value later fails the email filter.
    """
    for candidate in properties.identity_candidates():
        if candidate is not None:
            return candidate
    raise IdentityMissingError("no user id found", index=index)


def is_email_shaped(value: str) -> bool:
    return EMAIL_RE.fullmatch(value or "") is not None


def format_email_rejection(identity: str) -> str:
    return f"[DATA] [REJECT EMAIL] '{identity}'"


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


class IdentityFilter:
    """
    Keeps only events whose user_id looks like an email address.

    Upstream mixes internal identifiers with real user emails. With `debug=True`
    every rejected identity is written to `log` (stderr by default).
    """

    def __init__(self, *, debug: bool = False, log: LogFn | None = None) -> None:
        self._debug = bool(debug)
        self._log = log or _eprint

    def accepts(self, event: Event) -> bool:
        if is_email_shaped(event.user_id):
            return True
        if self._debug:
            self._log(format_email_rejection(event.user_id))
        return False
