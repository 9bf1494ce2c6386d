"""Client identity resolution for rate limiting."""

from __future__ import annotations

from fastapi import Request

ANONYMOUS_IDENTITY = "anonymous"


def identity_from_forwarded_for(header_value: str | None) -> str:
    """First address in an X-Forwarded-For chain, else ``"anonymous"``."""
    if not header_value:
        return ANONYMOUS_IDENTITY
    first = header_value.split(",")[0].strip()
    return first or ANONYMOUS_IDENTITY


def resolve_identity(request: Request) -> str:
    """FastAPI dependency returning the caller's rate-limit identity.

    The service runs behind a proxy, so only the forwarded chain is trusted;
    callers without it share the anonymous bucket.
    """
    return identity_from_forwarded_for(request.headers.get("x-forwarded-for"))
