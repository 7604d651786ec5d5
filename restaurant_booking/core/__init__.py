"""
Core module initialization.
Exports configuration, logging and error types.
"""

from restaurant_booking.core.config import (
    get_settings,
    setup_logging,
    Settings,
    EnvironmentMode,
    StorageBackend,
)
from restaurant_booking.core.exceptions import (
    DomainError,
    ValidationFailedError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    InvalidStateError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "StorageBackend",
    "DomainError",
    "ValidationFailedError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "InvalidStateError",
]
