"""Request identity resolver.

Turns an ``Authorization: Bearer <token>`` header into an ``Identity`` on
``request.state.identity``.  It never rejects a request: a missing,
malformed, tampered or expired token just leaves the request anonymous,
and the route guards in api/dependencies.py decide whether that is
acceptable.  The transition is one-way per request; an identity that is
already installed is not replaced.
"""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from qualityedu.core.errors import TokenError
from qualityedu.core.logging import user_id_var
from qualityedu.core.metrics import IDENTITY_RESOLUTIONS
from qualityedu.models.identity import Identity, role_for_principal_type
from qualityedu.services.token_service import TokenCodec, token_codec

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class IdentityMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, codec: TokenCodec | None = None) -> None:
        super().__init__(app)
        self._codec = codec or token_codec

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        header = request.headers.get("authorization")
        if not header or not header.startswith(BEARER_PREFIX):
            IDENTITY_RESOLUTIONS.labels(outcome="anonymous").inc()
            return await call_next(request)

        try:
            claims = self._codec.decode(header[len(BEARER_PREFIX):].strip())
        except TokenError as e:
            IDENTITY_RESOLUTIONS.labels(outcome="rejected").inc()
            logger.warning("Bearer token ignored (%s): %s", e.code, e.message)
            return await call_next(request)

        if getattr(request.state, "identity", None) is None:
            identity = Identity(
                subject=claims.subject,
                role=role_for_principal_type(claims.principal_type),
                principal_id=claims.principal_id,
            )
            request.state.identity = identity
            user_id_var.set(identity.subject)
            IDENTITY_RESOLUTIONS.labels(outcome="authenticated").inc()
            logger.debug("Identity resolved subject=%s role=%s", identity.subject, identity.role)

        return await call_next(request)
