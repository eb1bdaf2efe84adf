"""Request context middleware.

Binds a ``RequestContext`` for the lifetime of each request so every
structured log line carries the request id, and logs one line per request.
"""

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ecoconsole_core.observability.logging import (
    RequestContext,
    get_logger,
    reset_request_context,
    set_request_context,
)

REQUEST_ID_HEADER = "X-Request-ID"

# Paths not worth a log line
QUIET_PATHS = {"/healthz"}

logger = get_logger("ecoconsole_core.requests")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware that binds request context and logs request completion."""

    async def dispatch(self, request: Request, call_next):
        """Process the request."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        context = RequestContext(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        token = set_request_context(context)
        start_time = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            logger.error("request failed", exc_info=True)
            raise
        finally:
            reset_request_context(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        if request.url.path not in QUIET_PATHS:
            logger.info(
                "request completed",
                context=context,
                status_code=response.status_code,
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )
        return response
