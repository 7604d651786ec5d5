"""
Reservation Lifecycle Service

Creates, reads, updates and cancels reservations on behalf of a user.

Rules:
    - A reservation is only visible to its owner; anyone else gets the same
      NotFound as for a missing id
    - New dates may not lie before today
    - cancelled and completed reservations are terminal
    - Cancelling keeps the record and only changes its status

Two reservations for the same restaurant, date and time are both accepted;
nothing here reserves a slot exclusively.
"""

import dataclasses
import datetime as dt
import logging
from typing import Callable, Optional

from restaurant_booking.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from restaurant_booking.models import ReservationStatus
from restaurant_booking.services.storage import (
    BaseStorage,
    Page,
    PageRequest,
    ReservationChanges,
    ReservationFilter,
    ReservationRecord,
)

logger = logging.getLogger(__name__)

MIN_PEOPLE = 1
MAX_PEOPLE = 20
MAX_SPECIAL_REQUESTS = 500


def parse_status(value: Optional[str]) -> Optional[ReservationStatus]:
    """Map a status query value to the enum; unknown values mean no filter."""
    if not value:
        return None
    try:
        return ReservationStatus(value)
    except ValueError:
        return None


class ReservationService:
    """
    Reservation lifecycle on top of an injected storage backend.

    Attributes:
        storage: Storage backend
        today: Returns the current calendar day; injectable for tests
    """

    def __init__(
        self,
        storage: BaseStorage,
        today: Callable[[], dt.date] = dt.date.today,
    ):
        self.storage = storage
        self.today = today

    # =========================================================================
    # VALIDATION HELPERS
    # =========================================================================

    def _check_people_count(self, people_count: int) -> None:
        if not MIN_PEOPLE <= people_count <= MAX_PEOPLE:
            raise ValidationFailedError(
                f"People count must be between {MIN_PEOPLE} and {MAX_PEOPLE}"
            )

    def _check_special_requests(self, special_requests: Optional[str]) -> None:
        if special_requests is not None and len(special_requests) > MAX_SPECIAL_REQUESTS:
            raise ValidationFailedError(
                f"Special requests must be less than {MAX_SPECIAL_REQUESTS} characters"
            )

    def _is_past(self, reservation_date: dt.date) -> bool:
        return reservation_date < self.today()

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def create(
        self,
        user_id: int,
        restaurant_id: int,
        reservation_date: dt.date,
        reservation_time: dt.time,
        people_count: int,
        special_requests: Optional[str] = None,
    ) -> ReservationRecord:
        """
        Book a table.

        Raises:
            NotFoundError: If the restaurant does not exist
            ValidationFailedError: If the date is in the past or a field is out of range
        """
        if await self.storage.get_restaurant(restaurant_id) is None:
            raise NotFoundError("Restaurant not found")

        if self._is_past(reservation_date):
            raise ValidationFailedError("Cannot make reservations for past dates")

        self._check_people_count(people_count)
        self._check_special_requests(special_requests)

        reservation = await self.storage.create_reservation(
            user_id=user_id,
            restaurant_id=restaurant_id,
            reservation_date=reservation_date,
            reservation_time=reservation_time,
            people_count=people_count,
            special_requests=special_requests or None,
        )
        logger.info(
            f"Reservation #{reservation.id} created by user {user_id} "
            f"for restaurant {restaurant_id} on {reservation_date} {reservation_time:%H:%M}"
        )
        return reservation

    async def list_for_user(
        self,
        user_id: int,
        status: Optional[str],
        page: PageRequest,
    ) -> Page[ReservationRecord]:
        """The user's reservations, most recent date and time first."""
        criteria = ReservationFilter(user_id=user_id, status=parse_status(status))
        return await self.storage.list_reservations(criteria, page)

    async def get_owned(self, user_id: int, reservation_id: int) -> ReservationRecord:
        """
        Raises:
            NotFoundError: If no reservation with this id belongs to the user
        """
        reservation = await self.storage.get_reservation(reservation_id, user_id)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        return reservation

    async def update(
        self,
        user_id: int,
        reservation_id: int,
        changes: ReservationChanges,
    ) -> ReservationRecord:
        """
        Apply a partial update.

        Raises:
            NotFoundError: If the user owns no such reservation
            InvalidStateError: If the reservation is cancelled or completed
            ValidationFailedError: If the new date is past, a field is out of
                range, or nothing was supplied
        """
        reservation = await self.get_owned(user_id, reservation_id)

        if reservation.is_terminal:
            raise InvalidStateError("Cannot modify cancelled or completed reservations")

        if "date" in changes.provided and changes.date is not None and self._is_past(changes.date):
            raise ValidationFailedError("Cannot modify reservation to a past date")

        if changes.is_empty:
            raise ValidationFailedError("No fields to update")

        if "people_count" in changes.provided:
            if changes.people_count is None:
                raise ValidationFailedError("People count cannot be empty")
            self._check_people_count(changes.people_count)
        for required in ("date", "time"):
            if required in changes.provided and getattr(changes, required) is None:
                raise ValidationFailedError(f"{required.capitalize()} cannot be empty")
        if "special_requests" in changes.provided:
            self._check_special_requests(changes.special_requests)
            changes = dataclasses.replace(
                changes, special_requests=changes.special_requests or None
            )

        updated = await self.storage.update_reservation(reservation_id, changes)
        logger.info(
            f"Reservation #{reservation_id} updated by user {user_id}: "
            f"{sorted(changes.provided)}"
        )
        return updated

    async def cancel(self, user_id: int, reservation_id: int) -> None:
        """
        Soft-cancel a reservation.

        Raises:
            NotFoundError: If the user owns no such reservation
            InvalidStateError: If it is already cancelled or completed
        """
        reservation = await self.get_owned(user_id, reservation_id)

        if reservation.status == ReservationStatus.CANCELLED:
            raise InvalidStateError("Reservation is already cancelled")
        if reservation.status == ReservationStatus.COMPLETED:
            raise InvalidStateError("Cannot cancel a completed reservation")

        await self.storage.set_reservation_status(reservation_id, ReservationStatus.CANCELLED)
        logger.info(f"Reservation #{reservation_id} cancelled by user {user_id}")
