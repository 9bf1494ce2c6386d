"""HTTP middleware for request ID propagation and response hardening.

- ``request_id_middleware`` accepts an incoming X-Request-ID header or
  generates a UUID, stores it in contextvars for log correlation, echoes it
  back and adds a request duration header.
- ``security_headers_middleware`` stamps the browser security headers on
  every response.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from feedback_api.core.config import settings
from feedback_api.core.logging import clear_request_id, set_request_id

SECURITY_HEADERS: dict[str, str] = {
    "X-DNS-Prefetch-Control": "on",
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
    "X-XSS-Protection": "1; mode=block",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data:; "
        "connect-src 'self'; "
        "frame-ancestors 'self'"
    ),
}


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate a correlation id through the request lifecycle.

    If the client provides the configured request id header (default
    ``X-Request-ID``) that value is used, otherwise a new UUID is generated.
    The id is cleared from contextvars once the handler returns.

    Side Effects:
        - Adds the request id header to the response
        - Adds X-Request-Duration-ms header to the response
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def security_headers_middleware(request: Request, call_next) -> Response:
    response: Response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response
