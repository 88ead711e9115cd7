"""
Service-layer exceptions mapped to HTTP responses by app.api.error_handling.

Every error carries an HTTP status_code, a stable error_code, a human message
and an optional list of field-level errors.
"""

from typing import List, Optional


class ServiceError(Exception):
    """Base class for errors the API reports to clients."""

    status_code: int = 400
    error_code: str = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        errors: Optional[List] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.errors = errors or []


class ValidationError(ServiceError):
    """Malformed or missing input (400)."""
    status_code = 400
    error_code = "validation_error"


class AuthenticationError(ServiceError):
    """Bad credentials or an invalid, expired or superseded token (401)."""
    status_code = 401
    error_code = "unauthorized"


class ForbiddenError(ServiceError):
    """Authenticated, but the role or ownership does not allow it (403)."""
    status_code = 403
    error_code = "forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    error_code = "not_found"


class ConflictError(ServiceError):
    """Duplicate identity or resource (409)."""
    status_code = 409
    error_code = "conflict"


class DependencyError(ServiceError):
    """An external collaborator (mail server, file storage) failed (500)."""
    status_code = 500
    error_code = "server_error"


class TokenConfigurationError(DependencyError):
    """Token signing secret is missing. Raised, never returned."""
    error_code = "configuration_error"


__all__ = [
    "ServiceError",
    "ValidationError",
    "AuthenticationError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "DependencyError",
    "TokenConfigurationError",
]
