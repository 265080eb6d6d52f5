"""Shared-secret gate in front of the diagnostic endpoints."""

from __future__ import annotations

import hmac
import logging

from fastapi import Request, Response
from starlette.middleware.base import (
    BaseHTTPMiddleware,
    RequestResponseEndpoint,
)
from starlette.responses import JSONResponse

from codecoach.constants import (
    API_KEY_HEADER,
    AUTH_EXEMPT_PATHS,
    AUTH_EXEMPT_PREFIXES,
)

logger = logging.getLogger(__name__)


def requires_key(path: str) -> bool:
    """Health probes and the API docs stay reachable without a key."""
    if path in AUTH_EXEMPT_PATHS:
        return False
    return not path.startswith(AUTH_EXEMPT_PREFIXES)


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Reject requests whose key does not match ``Settings.api_key``.

    An empty ``api_key`` leaves the service open, which is how the
    editor front-end runs against a local instance.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        configured: str = request.app.state.typed.settings.api_key
        if not configured or not requires_key(request.url.path):
            return await call_next(request)

        sent = request.headers.get(API_KEY_HEADER, "")
        if hmac.compare_digest(sent.encode(), configured.encode()):
            return await call_next(request)

        logger.warning(
            "event=api_key_rejected path=%s key_sent=%s",
            request.url.path,
            bool(sent),
        )
        return JSONResponse(
            status_code=401,
            content={
                "success": False,
                "error": f"missing or invalid {API_KEY_HEADER} header",
            },
        )
