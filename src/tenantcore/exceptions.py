"""Unified exception hierarchy for tenantcore.

All errors raised by the library inherit from TenantCoreError. This module provides:
- Base exception hierarchy with stable error codes
- ErrorRegistry for mapping codes back to exception classes

Usage:
    from tenantcore.exceptions import (
        TenantCoreError,
        ValidationError,
        InvalidCredentialError,
    )

Forms never see these across the guard boundary: ``tenantcore.auth`` turns
ValidationError and InvalidCredentialError into ``AuthResult`` values, and
guard denial is a state, not an exception.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "TenantCoreError",
    "ValidationError",
    "InvalidCredentialError",
    "OrphanedSessionError",
    "ConfigurationError",
    "AccessDeniedError",
    "StorageError",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
]

logger = logging.getLogger(__name__)


# ---- Exception Hierarchy ----------------------------------------------------


class TenantCoreError(Exception):
    """Base exception for tenantcore.

    Attributes:
        code: Stable error code string (e.g. "VALIDATION_ERROR").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ValidationError(TenantCoreError):
    """Malformed or policy-violating input.

    ``field`` names the offending input so the calling form can highlight it.
    """

    code: str = "VALIDATION_ERROR"
    message: str = "Invalid input"

    def __init__(self, message: str | None = None, *, field: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, field=field, **kwargs)
        self.field = field


class InvalidCredentialError(TenantCoreError):
    """Secret mismatch or unknown tenant.

    Both causes share one message and one code so callers cannot tell
    whether a tenant exists.
    """

    code: str = "INVALID_CREDENTIALS"
    message: str = "Invalid business or secret"


class OrphanedSessionError(TenantCoreError):
    """Persisted session points at a tenant or user that no longer resolves.

    Handled inside the session manager by discarding the session.
    """

    code: str = "ORPHANED_SESSION"
    message: str = "Stored session no longer resolves"


class ConfigurationError(TenantCoreError):
    """Invalid or missing configuration (e.g. an unmapped role)."""

    code: str = "CONFIGURATION_ERROR"


class AccessDeniedError(TenantCoreError):
    """Actor lacks the capability required for a registry mutation."""

    code: str = "PERMISSION_DENIED"
    message: str = "Not allowed"


class StorageError(TenantCoreError):
    """Storage write failed or storage is unavailable."""

    code: str = "STORAGE_ERROR"


# ---- Error Registry ----------------------------------------------------------

_E = TypeVar("_E", bound=type[TenantCoreError])


class ErrorRegistry:
    """Registry for mapping stable error codes to exception classes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[TenantCoreError]] = {}

    def register(self, code: str, error_cls: type[TenantCoreError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[TenantCoreError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[TenantCoreError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("BRANCH_LIMIT")
        class BranchLimitError(TenantCoreError):
            code = "BRANCH_LIMIT"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


error_registry.register("INTERNAL_ERROR", TenantCoreError)
error_registry.register("VALIDATION_ERROR", ValidationError)
error_registry.register("INVALID_CREDENTIALS", InvalidCredentialError)
error_registry.register("ORPHANED_SESSION", OrphanedSessionError)
error_registry.register("CONFIGURATION_ERROR", ConfigurationError)
error_registry.register("PERMISSION_DENIED", AccessDeniedError)
error_registry.register("STORAGE_ERROR", StorageError)
