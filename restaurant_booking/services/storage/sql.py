"""
SQL Storage Implementation

Persists everything through SQLAlchemy's async ORM. Every public method
opens its own session from the pooled engine with ``async with``, so the
connection goes back to the pool on every exit path.

Filter objects are translated into SQLAlchemy expressions in exactly one
place per entity (``_restaurant_conditions`` / ``_reservation_conditions``);
user input only ever reaches the database as bound parameters.
"""

import datetime as dt
import logging
from typing import Any, Iterable, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from restaurant_booking.core.config import Settings
from restaurant_booking.core.exceptions import ConflictError, NotFoundError
from restaurant_booking.database import create_engine, create_session_maker, init_db
from restaurant_booking.models import Reservation, ReservationStatus, Restaurant, User
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

LIKE_ESCAPE = "\\"

# Range of the INTEGER primary key columns
MIN_ID = -(2 ** 31)
MAX_ID = 2 ** 31 - 1


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _storable_id(*ids: int) -> bool:
    """False if any id lies outside the column range and so cannot exist."""
    return all(MIN_ID <= value <= MAX_ID for value in ids)


def _like_pattern(term: str) -> str:
    """Substring pattern in which ``%`` and ``_`` from the user match literally."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _restaurant_conditions(criteria: RestaurantFilter) -> list:
    conditions = []

    if criteria.text:
        pattern = _like_pattern(criteria.text)
        conditions.append(or_(
            Restaurant.name.ilike(pattern, escape=LIKE_ESCAPE),
            Restaurant.location.ilike(pattern, escape=LIKE_ESCAPE),
        ))
    if criteria.location:
        conditions.append(
            Restaurant.location.ilike(_like_pattern(criteria.location), escape=LIKE_ESCAPE)
        )
    if criteria.cuisine:
        conditions.append(
            Restaurant.cuisine_type.ilike(_like_pattern(criteria.cuisine), escape=LIKE_ESCAPE)
        )

    return conditions


def _reservation_conditions(criteria: ReservationFilter) -> list:
    conditions = [Reservation.user_id == criteria.user_id]
    if criteria.status is not None:
        conditions.append(Reservation.status == criteria.status)
    return conditions


def _to_user(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        name=user.name,
        email=user.email,
        password_hash=user.password,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _to_restaurant(restaurant: Restaurant) -> RestaurantRecord:
    return RestaurantRecord(
        id=restaurant.id,
        name=restaurant.name,
        location=restaurant.location,
        description=restaurant.description,
        image_url=restaurant.image_url,
        rating=restaurant.rating,
        price_range=restaurant.price_range,
        cuisine_type=restaurant.cuisine_type,
        created_at=restaurant.created_at,
        updated_at=restaurant.updated_at,
    )


def _to_reservation(reservation: Reservation, restaurant: Restaurant, user: User) -> ReservationRecord:
    return ReservationRecord(
        id=reservation.id,
        user_id=reservation.user_id,
        restaurant_id=reservation.restaurant_id,
        date=reservation.date,
        time=reservation.time,
        people_count=reservation.people_count,
        status=reservation.status,
        special_requests=reservation.special_requests,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
        restaurant_name=restaurant.name,
        restaurant_location=restaurant.location,
        restaurant_image=restaurant.image_url,
        restaurant_rating=restaurant.rating,
        restaurant_description=restaurant.description,
        user_name=user.name,
        user_email=user.email,
    )


def _joined_reservations():
    """SELECT reservation, restaurant, user with both joins applied."""
    return (
        select(Reservation, Restaurant, User)
        .join(Restaurant, Reservation.restaurant_id == Restaurant.id)
        .join(User, Reservation.user_id == User.id)
    )


class SqlStorage(BaseStorage):
    """
    Relational implementation of the storage interface.

    Attributes:
        engine: Pooled async engine
        session_maker: Factory for request-scoped sessions
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_maker = create_session_maker(engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqlStorage":
        """Build the engine from ``settings.database_url``."""
        return cls(create_engine(settings))

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "sql"

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def initialize(self, seed: bool = True) -> None:
        await init_db(self.engine)

        if not seed:
            return

        async with self.session_maker() as session:
            existing = await session.scalar(select(func.count(Restaurant.id)))

        if not existing:
            count = await self.seed_restaurants(SAMPLE_RESTAURANTS)
            logger.info(f"✅ Sample restaurant data inserted ({count} rows)")

    async def close(self) -> None:
        await self.engine.dispose()

    async def health_check(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(select(1))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database health check failed: {e}")
            return False

    # =========================================================================
    # USERS
    # =========================================================================

    async def create_user(self, name: str, email: str, password_hash: str) -> UserRecord:
        now = _now()
        user = User(
            name=name,
            email=email,
            password=password_hash,
            created_at=now,
            updated_at=now,
        )

        async with self.session_maker() as session:
            session.add(user)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise ConflictError("User with this email already exists")
            await session.refresh(user)
            return _to_user(user)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(User).where(func.lower(User.email) == email.lower())
            )
            user = result.scalar_one_or_none()
            return _to_user(user) if user else None

    async def get_user_by_id(self, user_id: int) -> Optional[UserRecord]:
        if not _storable_id(user_id):
            return None
        async with self.session_maker() as session:
            user = await session.get(User, user_id)
            return _to_user(user) if user else None

    # =========================================================================
    # RESTAURANTS
    # =========================================================================

    async def seed_restaurants(self, restaurants: Iterable[dict[str, Any]]) -> int:
        now = _now()
        rows = [Restaurant(created_at=now, updated_at=now, **data) for data in restaurants]

        async with self.session_maker() as session:
            session.add_all(rows)
            await session.commit()

        return len(rows)

    async def search_restaurants(
        self,
        criteria: RestaurantFilter,
        page: PageRequest,
    ) -> Page[RestaurantRecord]:
        conditions = _restaurant_conditions(criteria)

        count_query = select(func.count(Restaurant.id))
        query = select(Restaurant).order_by(
            Restaurant.rating.desc(),
            Restaurant.name.asc(),
            Restaurant.id.asc(),
        )
        if conditions:
            count_query = count_query.where(and_(*conditions))
            query = query.where(and_(*conditions))

        query = query.offset(page.offset).limit(page.page_size)

        async with self.session_maker() as session:
            total = await session.scalar(count_query) or 0
            result = await session.execute(query)
            restaurants = result.scalars().all()

        return Page(
            items=[_to_restaurant(r) for r in restaurants],
            total=total,
            request=page,
        )

    async def get_restaurant(self, restaurant_id: int) -> Optional[RestaurantRecord]:
        if not _storable_id(restaurant_id):
            return None
        async with self.session_maker() as session:
            restaurant = await session.get(Restaurant, restaurant_id)
            return _to_restaurant(restaurant) if restaurant else None

    async def list_cuisines(self) -> list[str]:
        query = (
            select(Restaurant.cuisine_type)
            .distinct()
            .where(Restaurant.cuisine_type.is_not(None))
            .order_by(Restaurant.cuisine_type)
        )
        async with self.session_maker() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def list_locations(self) -> list[str]:
        query = select(Restaurant.location).distinct().order_by(Restaurant.location)
        async with self.session_maker() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    # =========================================================================
    # RESERVATIONS
    # =========================================================================

    async def _fetch_joined(self, session, reservation_id: int) -> Optional[ReservationRecord]:
        result = await session.execute(
            _joined_reservations().where(Reservation.id == reservation_id)
        )
        row = result.one_or_none()
        return _to_reservation(*row) if row else None

    async def create_reservation(
        self,
        user_id: int,
        restaurant_id: int,
        reservation_date: dt.date,
        reservation_time: dt.time,
        people_count: int,
        special_requests: Optional[str] = None,
    ) -> ReservationRecord:
        if not _storable_id(user_id, restaurant_id):
            raise NotFoundError("Restaurant not found")

        now = _now()
        reservation = Reservation(
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

        async with self.session_maker() as session:
            session.add(reservation)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise NotFoundError("Restaurant not found")

            record = await self._fetch_joined(session, reservation.id)

        if record is None:
            raise NotFoundError("Restaurant not found")
        return record

    async def get_reservation(self, reservation_id: int, user_id: int) -> Optional[ReservationRecord]:
        if not _storable_id(reservation_id, user_id):
            return None
        query = _joined_reservations().where(
            Reservation.id == reservation_id,
            Reservation.user_id == user_id,
        )
        async with self.session_maker() as session:
            result = await session.execute(query)
            row = result.one_or_none()
            return _to_reservation(*row) if row else None

    async def list_reservations(
        self,
        criteria: ReservationFilter,
        page: PageRequest,
    ) -> Page[ReservationRecord]:
        conditions = and_(*_reservation_conditions(criteria))

        count_query = select(func.count(Reservation.id)).where(conditions)
        query = (
            _joined_reservations()
            .where(conditions)
            .order_by(Reservation.date.desc(), Reservation.time.desc(), Reservation.id.desc())
            .offset(page.offset)
            .limit(page.page_size)
        )

        async with self.session_maker() as session:
            total = await session.scalar(count_query) or 0
            result = await session.execute(query)
            rows = result.all()

        return Page(
            items=[_to_reservation(*row) for row in rows],
            total=total,
            request=page,
        )

    async def update_reservation(
        self,
        reservation_id: int,
        changes: ReservationChanges,
    ) -> ReservationRecord:
        if not _storable_id(reservation_id):
            raise NotFoundError("Reservation not found")

        values = changes.as_dict()
        values["updated_at"] = _now()

        async with self.session_maker() as session:
            await session.execute(
                update(Reservation)
                .where(Reservation.id == reservation_id)
                .values(**values)
            )
            await session.commit()
            record = await self._fetch_joined(session, reservation_id)

        if record is None:
            raise NotFoundError("Reservation not found")
        return record

    async def set_reservation_status(
        self,
        reservation_id: int,
        status: ReservationStatus,
    ) -> None:
        if not _storable_id(reservation_id):
            raise NotFoundError("Reservation not found")

        async with self.session_maker() as session:
            result = await session.execute(
                update(Reservation)
                .where(Reservation.id == reservation_id)
                .values(status=status, updated_at=_now())
            )
            await session.commit()

        if result.rowcount == 0:
            raise NotFoundError("Reservation not found")
