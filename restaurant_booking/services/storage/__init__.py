"""
Storage Factory

Builds the storage backend selected by STORAGE_BACKEND. The instance is
created once at application startup and injected into the services; it is
never kept in a module-level variable.

Usage:
    from restaurant_booking.services.storage import build_storage

    storage = await build_storage(settings)
    page = await storage.search_restaurants(RestaurantFilter(), PageRequest())

Backend Switching:
    - STORAGE_BACKEND=sql → SqlStorage (fails fast if the database is down)
    - STORAGE_BACKEND=memory → InMemoryStorage
    - STORAGE_BACKEND=auto → SqlStorage, or InMemoryStorage if unreachable
"""

import logging

from restaurant_booking.core.config import Settings, StorageBackend
from restaurant_booking.services.storage.base import (
    BaseStorage,
    Page,
    PageRequest,
    ReservationChanges,
    ReservationFilter,
    ReservationRecord,
    RestaurantFilter,
    RestaurantRecord,
    UserRecord,
)
from restaurant_booking.services.storage.memory import InMemoryStorage
from restaurant_booking.services.storage.sql import SqlStorage

logger = logging.getLogger(__name__)


async def build_storage(settings: Settings) -> BaseStorage:
    """
    Create and initialise the configured storage backend.

    Args:
        settings: Application settings

    Returns:
        BaseStorage: Ready-to-use storage (schema created, catalog seeded)
    """
    backend = settings.storage_backend

    if backend == StorageBackend.MEMORY:
        storage: BaseStorage = InMemoryStorage()
    else:
        storage = SqlStorage.from_settings(settings)
        if backend == StorageBackend.AUTO and not await storage.health_check():
            logger.warning("⚠️ Database not available, using in-memory storage")
            await storage.close()
            storage = InMemoryStorage()

    await storage.initialize(seed=settings.seed_sample_data)
    logger.info(f"✅ Storage backend: {storage.provider_name}")
    return storage


__all__ = [
    "build_storage",
    "BaseStorage",
    "InMemoryStorage",
    "SqlStorage",
    "Page",
    "PageRequest",
    "ReservationChanges",
    "ReservationFilter",
    "ReservationRecord",
    "RestaurantFilter",
    "RestaurantRecord",
    "UserRecord",
]
