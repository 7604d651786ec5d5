"""
Domain Error Taxonomy

Every business-rule failure raised by the services is a DomainError that
carries the HTTP status it maps to. The HTTP layer renders them into the
failure envelope; anything that is not a DomainError becomes a 500.
"""

from typing import Any, Optional


class DomainError(Exception):
    """Base class for expected, client-facing failures."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[list[dict[str, Any]]] = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors
        super().__init__(message)


class ValidationFailedError(DomainError):
    """Malformed or out-of-range input."""
    status_code = 400


class UnauthorizedError(DomainError):
    """Missing credentials or a failed login."""
    status_code = 401


class ForbiddenError(DomainError):
    """Credentials were presented but are not acceptable."""
    status_code = 403


class NotFoundError(DomainError):
    """Missing resource, or one the caller does not own."""
    status_code = 404


class ConflictError(DomainError):
    """Unique constraint violated, e.g. a duplicate email."""
    status_code = 409


class InvalidStateError(DomainError):
    """Mutation attempted on a reservation in a terminal status."""
    status_code = 400
