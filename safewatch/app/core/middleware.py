"""
Per-request correlation and access logging.

Every response carries ``X-Request-ID`` (echoed from the request when the
client sent one) and ``X-Process-Time``. While the request is in flight its
id and caller identity are bound to the logging context, so registry log
lines can be traced back to the HTTP call that caused them.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from safewatch.app.core.config import settings
from safewatch.app.core.logging_config import RequestContext, bind_request, unbind_request

logger = logging.getLogger(__name__)

# Documentation routes are served but not access-logged
_UNLOGGED_PREFIXES = ("/docs", "/redoc", "/openapi", "/favicon")


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind request context, time the call, log one line per request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        context = RequestContext(
            request_id=request.headers.get("X-Request-ID") or uuid.uuid4().hex[:16],
            caller=request.headers.get(settings.CALLER_HEADER, "anonymous"),
            method=request.method,
            path=request.url.path,
        )
        token = bind_request(context)
        started = time.perf_counter()
        try:
            try:
                response = await call_next(request)
            except Exception:
                self._access_log(context, 500, _elapsed_ms(started))
                raise

            duration_ms = _elapsed_ms(started)
            response.headers["X-Request-ID"] = context.request_id
            response.headers["X-Process-Time"] = f"{duration_ms:.1f}ms"
            if not context.path.startswith(_UNLOGGED_PREFIXES):
                self._access_log(context, response.status_code, duration_ms)
            return response
        finally:
            unbind_request(token)

    @staticmethod
    def _access_log(context: RequestContext, status_code: int, duration_ms: float) -> None:
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(
            level,
            "%s %s → %d (%.1fms) [%s]",
            context.method, context.path, status_code, duration_ms, context.caller,
            extra={"duration_ms": round(duration_ms, 1), "status_code": status_code},
        )
