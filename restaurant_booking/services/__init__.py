"""
                        Services Module

Business logic on top of an injected storage backend.

Services:
    - storage: SQL and in-memory persistence behind one interface
    - catalog: Restaurant search and lookups
    - reservations: Reservation lifecycle
    - auth: Registration, login and token resolution
"""

from restaurant_booking.services.auth import AuthService
from restaurant_booking.services.catalog import RestaurantCatalogService
from restaurant_booking.services.reservations import ReservationService

__all__ = ["AuthService", "RestaurantCatalogService", "ReservationService"]
