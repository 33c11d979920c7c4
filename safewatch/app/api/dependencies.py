"""
Shared FastAPI dependencies: the registry instance and the caller identity.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header

from safewatch.app.core.config import settings
from safewatch.app.core.errors import AuthorizationError
from safewatch.app.registry.service import Registry, get_registry


def registry_dependency() -> Registry:
    """Overridable in tests via ``app.dependency_overrides``."""
    return get_registry()


def get_caller(
    caller: Optional[str] = Header(None, alias=settings.CALLER_HEADER),
) -> str:
    """Identity of the principal making the request."""
    if not caller:
        raise AuthorizationError(
            f"Missing caller identity header '{settings.CALLER_HEADER}'",
        )
    return caller
