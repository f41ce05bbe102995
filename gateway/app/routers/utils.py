from __future__ import annotations

from fastapi import Request

UNKNOWN_IDENTITY = "unknown"


def trust_forwarded_for(request: Request) -> bool:
    """Read trust_forwarded_for from app.state.settings; off when settings are missing."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        return False
    return bool(getattr(settings, "trust_forwarded_for", False))


def client_identity(request: Request) -> str:
    """Rate-limit key: first X-Forwarded-For hop when trusted, else the socket peer address."""
    if trust_forwarded_for(request):
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    return request.client.host if request.client else UNKNOWN_IDENTITY


__all__ = [
    "client_identity",
    "trust_forwarded_for",
]
