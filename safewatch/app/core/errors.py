"""
Centralised error handling — exception hierarchy + FastAPI handlers.

Provides:
    • Registry exception classes, one per failure kind
    • Consistent JSON error response format
    • Logging of rejected operations and unhandled errors

Every registry operation runs all of its checks before it mutates
anything, so raising one of these leaves the registry untouched.

Usage:
    from safewatch.app.core.errors import (
        RegistryError,
        ValidationError,
        NotFoundError,
        ConflictError,
        InvalidStateError,
        AuthorizationError,
        register_error_handlers,
    )

    raise NotFoundError("Alert", alert_id=7)
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from safewatch.app.core.config import settings

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class RegistryError(Exception):
    """Base exception for all registry failures."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class ValidationError(RegistryError):
    """Malformed input: empty strings, out-of-range numbers (422)."""

    def __init__(self, message: str, *, field: Optional[str] = None, **details: Any):
        d = {**details}
        if field:
            d["field"] = field
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_ERROR",
            details=d,
        )


class NotFoundError(RegistryError):
    """Unknown alert / neighborhood id or unregistered identity (404)."""

    def __init__(self, resource: str, **identifiers: Any):
        details = {"resource": resource, **identifiers}
        super().__init__(
            message=f"{resource} not found",
            status_code=404,
            error_code="NOT_FOUND",
            details=details,
        )


class ConflictError(RegistryError):
    """Duplicate registration, response or verification (409)."""

    def __init__(self, message: str, **details: Any):
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONFLICT",
            details=details,
        )


class InvalidStateError(RegistryError):
    """Operation not allowed in the record's current state (409)."""

    def __init__(self, message: str, **details: Any):
        super().__init__(
            message=message,
            status_code=409,
            error_code="INVALID_STATE",
            details=details,
        )


class AuthorizationError(RegistryError):
    """Caller lacks the required role, ownership or reputation (403)."""

    def __init__(self, message: str, *, caller: Optional[str] = None, **details: Any):
        d = {**details}
        if caller is not None:
            d["caller"] = caller
        super().__init__(
            message=message,
            status_code=403,
            error_code="FORBIDDEN",
            details=d,
        )


# ═══════════════════════════════════════════════════════════════════════════
# Error Response Builder
# ═══════════════════════════════════════════════════════════════════════════

def _build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: Dict[str, Any] = {
        "error": {
            "code": error_code,
            "message": message,
            "status": status_code,
        }
    }

    if details:
        body["error"]["details"] = details

    # Include request path in non-production
    if request and not settings.is_production:
        body["error"]["path"] = str(request.url.path)
        body["error"]["method"] = request.method

    return JSONResponse(status_code=status_code, content=body)


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(RegistryError)
    async def handle_registry_error(request: Request, exc: RegistryError):
        logger.warning(
            "Rejected [%s]: %s | details=%s",
            exc.error_code, exc.message, exc.details,
        )
        return _build_error_response(
            exc.status_code, exc.error_code, exc.message,
            exc.details, request,
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.critical(
            "Unhandled exception: %s\n%s",
            exc, traceback.format_exc(),
        )
        message = str(exc) if settings.DEBUG else "Internal server error"
        details = (
            {"traceback": traceback.format_exc().split("\n")}
            if settings.DEBUG else None
        )
        return _build_error_response(
            500, "INTERNAL_ERROR", message, details, request,
        )
