"""HTTP middleware for request correlation and access logging.

Every request/response pair carries a request id (accepted from the client
or generated), stored in contextvars so adapter and service logs emitted
while handling the request are correlated.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from discovery_core.core.config import settings
from discovery_core.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

_QUIET_PATHS = frozenset({"/health"})


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate the request id and log one access line per request.

    The id is echoed in the configured header (LOG_REQUEST_ID_HEADER) and the
    total handling time in ``X-Request-Duration-ms``.
    """
    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        if request.url.path not in _QUIET_PATHS:
            logger.info(
                "http.request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                },
            )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
