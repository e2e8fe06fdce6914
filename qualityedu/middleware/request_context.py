"""Request context middleware: request ids, timing, and the completion log line.

The request id is kept in a ContextVar (core/logging.py) rather than a
thread-local because concurrent requests share the event loop thread.
The handler filter installed by setup_logging copies it onto every
LogRecord, so any module's log lines carry it without passing it around.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from qualityedu.core.logging import request_id_var

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign or echo X-Request-ID, time the request, log one summary line.

    Runs outermost, so the identity installed further in is read back from
    ``request.state`` after the response is produced.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        identity = getattr(request.state, "identity", None)
        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "user_id": identity.subject if identity else "-",
                "role": identity.role if identity else "-",
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
