"""Gateway-level constants shared across modules."""
from __future__ import annotations

DEFAULT_MESSAGE = "No message"
TOO_MANY_REQUESTS = "Too Many Requests"


class NotifyStatus:
    OK = "ok"
    ERROR = "error"
