"""
Authentication Service

Registration, login and bearer-token resolution. Password hashing and
token signing are delegated to ``core.security``.
"""

import logging
from typing import Optional

import jwt

from restaurant_booking.core.config import Settings
from restaurant_booking.core.exceptions import (
    ConflictError,
    ForbiddenError,
    UnauthorizedError,
)
from restaurant_booking.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from restaurant_booking.services.storage import BaseStorage, UserRecord

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    """
    Issues and checks credentials against an injected storage backend.

    Example:
        >>> auth = AuthService(storage, settings)
        >>> user, token = await auth.register("Ada", "ada@example.com", "secret1")
        >>> (await auth.authenticate(token)).id == user.id
        True
    """

    def __init__(self, storage: BaseStorage, settings: Settings):
        self.storage = storage
        self.settings = settings

    def issue_token(self, user: UserRecord) -> str:
        return create_access_token(user.id, self.settings)

    async def register(self, name: str, email: str, password: str) -> tuple[UserRecord, str]:
        """
        Create an account and return it with a fresh token.

        Raises:
            ConflictError: If the email is already registered
        """
        email = email.strip().lower()

        if await self.storage.get_user_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        password_hash = hash_password(password, rounds=self.settings.bcrypt_rounds)
        user = await self.storage.create_user(name.strip(), email, password_hash)

        logger.info(f"User #{user.id} registered")
        return user, self.issue_token(user)

    async def login(self, email: str, password: str) -> tuple[UserRecord, str]:
        """
        Check credentials and return the user with a fresh token.

        Raises:
            UnauthorizedError: For an unknown email or a wrong password,
                with the same message in both cases
        """
        user = await self.storage.get_user_by_email(email.strip().lower())

        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Rejected login attempt")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        return user, self.issue_token(user)

    async def authenticate(self, token: Optional[str]) -> UserRecord:
        """
        Resolve a bearer token to its user.

        Raises:
            UnauthorizedError: If no token was sent or its user no longer exists
            ForbiddenError: If the token is malformed, expired or badly signed
        """
        if not token:
            raise UnauthorizedError("Access token required")

        try:
            payload = decode_access_token(token, self.settings)
            user_id = int(payload["sub"])
        except (jwt.PyJWTError, KeyError, TypeError, ValueError):
            raise ForbiddenError("Invalid or expired token")

        user = await self.storage.get_user_by_id(user_id)
        if user is None:
            raise UnauthorizedError("User not found")
        return user
