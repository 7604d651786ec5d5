"""
In-Memory Storage Implementation

Keeps users, restaurants and reservations in dictionaries owned by the
storage instance. Used when STORAGE_BACKEND=memory, as the fallback when
STORAGE_BACKEND=auto cannot reach the database, and by the test suite.

Behavior:
    - Same filtering, ordering and pagination rules as SqlStorage
    - Ids are assigned from per-instance counters starting at 1
    - State lives only as long as the instance
"""

import dataclasses
import datetime as dt
import itertools
import logging
from typing import Any, Iterable, Optional

from restaurant_booking.core.exceptions import ConflictError, NotFoundError
from restaurant_booking.models import ReservationStatus
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
from restaurant_booking.services.storage.seed import SAMPLE_RESTAURANTS

logger = logging.getLogger(__name__)


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _contains(haystack: Optional[str], needle: str) -> bool:
    return haystack is not None and needle.lower() in haystack.lower()


class InMemoryStorage(BaseStorage):
    """
    Process-local implementation of the storage interface.

    Example:
        >>> storage = InMemoryStorage()
        >>> await storage.initialize()
        >>> page = await storage.search_restaurants(RestaurantFilter(), PageRequest())
        >>> page.total
        6
    """

    def __init__(self):
        self._users: dict[int, UserRecord] = {}
        self._restaurants: dict[int, RestaurantRecord] = {}
        self._reservations: dict[int, ReservationRecord] = {}

        self._user_ids = itertools.count(1)
        self._restaurant_ids = itertools.count(1)
        self._reservation_ids = itertools.count(1)

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "memory"

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def initialize(self, seed: bool = True) -> None:
        if seed and not self._restaurants:
            count = await self.seed_restaurants(SAMPLE_RESTAURANTS)
            logger.info(f"✅ In-memory catalog seeded with {count} restaurants")

    async def close(self) -> None:
        pass

    async def health_check(self) -> bool:
        return True

    # =========================================================================
    # USERS
    # =========================================================================

    async def create_user(self, name: str, email: str, password_hash: str) -> UserRecord:
        if await self.get_user_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        now = _now()
        user = UserRecord(
            id=next(self._user_ids),
            name=name,
            email=email,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        self._users[user.id] = user
        return dataclasses.replace(user)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        wanted = email.lower()
        for user in self._users.values():
            if user.email.lower() == wanted:
                return dataclasses.replace(user)
        return None

    async def get_user_by_id(self, user_id: int) -> Optional[UserRecord]:
        user = self._users.get(user_id)
        return dataclasses.replace(user) if user else None

    # =========================================================================
    # RESTAURANTS
    # =========================================================================

    async def seed_restaurants(self, restaurants: Iterable[dict[str, Any]]) -> int:
        count = 0
        for data in restaurants:
            now = _now()
            record = RestaurantRecord(
                id=next(self._restaurant_ids),
                created_at=now,
                updated_at=now,
                **data,
            )
            self._restaurants[record.id] = record
            count += 1
        return count

    def _matches(self, restaurant: RestaurantRecord, criteria: RestaurantFilter) -> bool:
        if criteria.text and not (
            _contains(restaurant.name, criteria.text)
            or _contains(restaurant.location, criteria.text)
        ):
            return False
        if criteria.location and not _contains(restaurant.location, criteria.location):
            return False
        if criteria.cuisine and not _contains(restaurant.cuisine_type, criteria.cuisine):
            return False
        return True

    async def search_restaurants(
        self,
        criteria: RestaurantFilter,
        page: PageRequest,
    ) -> Page[RestaurantRecord]:
        matched = [r for r in self._restaurants.values() if self._matches(r, criteria)]
        matched.sort(key=lambda r: (-r.rating, r.name, r.id))

        items = matched[page.offset:page.offset + page.page_size]
        return Page(
            items=[dataclasses.replace(r) for r in items],
            total=len(matched),
            request=page,
        )

    async def get_restaurant(self, restaurant_id: int) -> Optional[RestaurantRecord]:
        restaurant = self._restaurants.get(restaurant_id)
        return dataclasses.replace(restaurant) if restaurant else None

    async def list_cuisines(self) -> list[str]:
        return sorted({r.cuisine_type for r in self._restaurants.values() if r.cuisine_type is not None})

    async def list_locations(self) -> list[str]:
        return sorted({r.location for r in self._restaurants.values()})

    # =========================================================================
    # RESERVATIONS
    # =========================================================================

    def _joined(self, reservation: ReservationRecord) -> ReservationRecord:
        restaurant = self._restaurants[reservation.restaurant_id]
        user = self._users[reservation.user_id]
        return dataclasses.replace(
            reservation,
            restaurant_name=restaurant.name,
            restaurant_location=restaurant.location,
            restaurant_image=restaurant.image_url,
            restaurant_rating=restaurant.rating,
            restaurant_description=restaurant.description,
            user_name=user.name,
            user_email=user.email,
        )

    async def create_reservation(
        self,
        user_id: int,
        restaurant_id: int,
        reservation_date: dt.date,
        reservation_time: dt.time,
        people_count: int,
        special_requests: Optional[str] = None,
    ) -> ReservationRecord:
        if user_id not in self._users:
            raise NotFoundError("User not found")
        if restaurant_id not in self._restaurants:
            raise NotFoundError("Restaurant not found")

        now = _now()
        reservation = ReservationRecord(
            id=next(self._reservation_ids),
            user_id=user_id,
            restaurant_id=restaurant_id,
            date=reservation_date,
            time=reservation_time,
            people_count=people_count,
            status=ReservationStatus.CONFIRMED,
            special_requests=special_requests,
            created_at=now,
            updated_at=now,
        )
        self._reservations[reservation.id] = reservation
        return self._joined(reservation)

    async def get_reservation(self, reservation_id: int, user_id: int) -> Optional[ReservationRecord]:
        reservation = self._reservations.get(reservation_id)
        if reservation is None or reservation.user_id != user_id:
            return None
        return self._joined(reservation)

    async def list_reservations(
        self,
        criteria: ReservationFilter,
        page: PageRequest,
    ) -> Page[ReservationRecord]:
        matched = [
            r for r in self._reservations.values()
            if r.user_id == criteria.user_id
            and (criteria.status is None or r.status == criteria.status)
        ]
        matched.sort(key=lambda r: (r.date, r.time, r.id), reverse=True)

        items = matched[page.offset:page.offset + page.page_size]
        return Page(
            items=[self._joined(r) for r in items],
            total=len(matched),
            request=page,
        )

    async def update_reservation(
        self,
        reservation_id: int,
        changes: ReservationChanges,
    ) -> ReservationRecord:
        reservation = self._reservations.get(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found")

        updated = dataclasses.replace(reservation, **changes.as_dict(), updated_at=_now())
        self._reservations[reservation_id] = updated
        return self._joined(updated)

    async def set_reservation_status(
        self,
        reservation_id: int,
        status: ReservationStatus,
    ) -> None:
        reservation = self._reservations.get(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found")

        self._reservations[reservation_id] = dataclasses.replace(
            reservation, status=status, updated_at=_now()
        )
