"""
FastAPI dependencies.

The storage backend lives on ``app.state`` (set by the lifespan handler or
by tests); services are built per request around it. ``get_current_user``
is the auth gateway: protected routes declare it and receive the caller's
UserRecord, or the request is rejected before the route body runs.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from restaurant_booking.core.config import Settings, get_settings
from restaurant_booking.services import (
    AuthService,
    ReservationService,
    RestaurantCatalogService,
)
from restaurant_booking.services.storage import BaseStorage, UserRecord

bearer_scheme = HTTPBearer(auto_error=False)


def get_storage(request: Request) -> BaseStorage:
    return request.app.state.storage


def get_auth_service(
    storage: BaseStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(storage, settings)


def get_catalog_service(storage: BaseStorage = Depends(get_storage)) -> RestaurantCatalogService:
    return RestaurantCatalogService(storage)


def get_reservation_service(storage: BaseStorage = Depends(get_storage)) -> ReservationService:
    return ReservationService(storage)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> UserRecord:
    """Resolve the ``Authorization: Bearer <token>`` header to a user."""
    token = credentials.credentials if credentials else None
    return await auth.authenticate(token)
