"""Request-scoped correlation ids for the leaderboard web app.

Every request gets an id, taken from a well-formed ``X-Request-ID`` header or
generated. The id lives in a ContextVar; lookup workers run inside a copy of
the submitting context (see ``UserFetcher.fetch_users``), so the log lines of
every per-user lookup carry the id of the page or API call that started it.
"""

from __future__ import annotations

import logging
import re
from contextvars import ContextVar
from typing import Optional
from uuid import uuid4

NO_REQUEST = "-"

# Header values end up verbatim in log lines and response headers.
_ACCEPTED_REQ_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

_REQ_ID: ContextVar[str] = ContextVar("leaderboard_req_id", default=NO_REQUEST)


def new_req_id() -> str:
    return uuid4().hex[:12]


def resolve_req_id(header_value: Optional[str]) -> str:
    """Return the caller's id if it is safe to echo, otherwise a fresh one."""
    candidate = (header_value or "").strip()
    if _ACCEPTED_REQ_ID.match(candidate):
        return candidate
    return new_req_id()


def set_req_id(req_id: str) -> None:
    _REQ_ID.set(req_id)


def get_req_id() -> str:
    return _REQ_ID.get()


def clear_req_id() -> None:
    _REQ_ID.set(NO_REQUEST)


class RequestIdFilter(logging.Filter):
    """Stamp `req_id` on every record; records outside a request get ``-``."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 - required by logging.Filter
        record.req_id = get_req_id()
        return True
