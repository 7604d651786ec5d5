"""
Storage Abstract Base Class

Defines the interface contract for all storage implementations.
Both SqlStorage and InMemoryStorage must implement these methods,
so the services behave identically whichever one was selected at startup.

Design Pattern: Strategy Pattern
    - The backend is chosen once, by configuration, and injected
    - Filters are passed as structured objects, never as query fragments
    - Records are plain dataclasses, independent of the ORM
"""

import datetime as dt
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, Optional, TypeVar

from restaurant_booking.models import TERMINAL_STATUSES, ReservationStatus


T = TypeVar("T")


def _iso(value: Optional[dt.datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# =============================================================================
# RECORDS
# =============================================================================

@dataclass
class UserRecord:
    """A stored user, including the password hash."""
    id: int
    name: str
    email: str
    password_hash: str
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    def to_public_dict(self) -> dict:
        """Fields that may be shown to the user (no password hash)."""
        return {"id": self.id, "name": self.name, "email": self.email}


@dataclass
class RestaurantRecord:
    """A catalog entry."""
    id: int
    name: str
    location: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    rating: float = 4.0
    price_range: str = "$$"
    cuisine_type: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "description": self.description,
            "image_url": self.image_url,
            "rating": self.rating,
            "price_range": self.price_range,
            "cuisine_type": self.cuisine_type,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class ReservationRecord:
    """
    A reservation joined with the display fields of its restaurant and user.

    Attributes:
        status: Current lifecycle status
        restaurant_*: Copied from the referenced restaurant
        user_name, user_email: Copied from the owning user
    """
    id: int
    user_id: int
    restaurant_id: int
    date: dt.date
    time: dt.time
    people_count: int
    status: ReservationStatus = ReservationStatus.CONFIRMED
    special_requests: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    restaurant_name: Optional[str] = None
    restaurant_location: Optional[str] = None
    restaurant_image: Optional[str] = None
    restaurant_rating: Optional[float] = None
    restaurant_description: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "restaurant_id": self.restaurant_id,
            "date": self.date.isoformat(),
            "time": self.time.strftime("%H:%M"),
            "people_count": self.people_count,
            "status": self.status.value,
            "special_requests": self.special_requests,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "restaurant_name": self.restaurant_name,
            "restaurant_location": self.restaurant_location,
            "restaurant_image": self.restaurant_image,
            "restaurant_rating": self.restaurant_rating,
            "restaurant_description": self.restaurant_description,
            "user_name": self.user_name,
            "user_email": self.user_email,
        }


# =============================================================================
# QUERY OBJECTS
# =============================================================================

@dataclass(frozen=True)
class PageRequest:
    """1-based page number and page size."""
    page: int = 1
    page_size: int = 10

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class Page(Generic[T]):
    """One page of results plus the size of the whole filtered set."""
    items: list[T]
    total: int
    request: PageRequest

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.request.page_size)

    def pagination(self) -> dict[str, int]:
        """The ``{page, limit, total, pages}`` envelope."""
        return {
            "page": self.request.page,
            "limit": self.request.page_size,
            "total": self.total,
            "pages": self.pages,
        }


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class RestaurantFilter:
    """
    Catalog search criteria. All provided criteria are ANDed.

    Attributes:
        text: Substring of the name or the location
        location: Substring of the location
        cuisine: Substring of the cuisine type
    """
    text: Optional[str] = None
    location: Optional[str] = None
    cuisine: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "text", _clean(self.text))
        object.__setattr__(self, "location", _clean(self.location))
        object.__setattr__(self, "cuisine", _clean(self.cuisine))


@dataclass(frozen=True)
class ReservationFilter:
    """Reservations of one user, optionally restricted to one status."""
    user_id: int
    status: Optional[ReservationStatus] = None


@dataclass
class ReservationChanges:
    """
    Partial update of a reservation.

    Only the names listed in ``provided`` are applied, which lets a caller
    clear ``special_requests`` by supplying it as None.
    """
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    people_count: Optional[int] = None
    special_requests: Optional[str] = None
    provided: frozenset[str] = field(default_factory=frozenset)

    UPDATABLE = ("date", "time", "people_count", "special_requests")

    @classmethod
    def from_values(cls, **values: Any) -> "ReservationChanges":
        """Build from keyword arguments; every argument counts as provided."""
        unknown = set(values) - set(cls.UPDATABLE)
        if unknown:
            raise ValueError(f"Not updatable: {sorted(unknown)}")
        return cls(**values, provided=frozenset(values))

    @property
    def is_empty(self) -> bool:
        return not self.provided

    def as_dict(self) -> dict[str, Any]:
        """The provided fields and their new values."""
        return {name: getattr(self, name) for name in self.UPDATABLE if name in self.provided}


# =============================================================================
# INTERFACE
# =============================================================================

class BaseStorage(ABC):
    """
    Abstract base class for storage backends.

    Every method is a self-contained unit of work: implementations acquire
    whatever resource they need (a pooled session, nothing at all) and
    release it before returning, on success or failure.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the backend name (e.g. "sql", "memory")."""
        pass

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @abstractmethod
    async def initialize(self, seed: bool = True) -> None:
        """
        Prepare the backend (schema creation) and, when ``seed`` is set and
        the catalog is empty, insert the sample restaurants.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release pooled resources."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True if the backend is reachable."""
        pass

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_user(self, name: str, email: str, password_hash: str) -> UserRecord:
        """
        Insert a user.

        Raises:
            ConflictError: If the email is already registered
        """
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: int) -> Optional[UserRecord]:
        pass

    # -------------------------------------------------------------------------
    # Restaurants
    # -------------------------------------------------------------------------

    @abstractmethod
    async def seed_restaurants(self, restaurants: Iterable[dict[str, Any]]) -> int:
        """Insert catalog entries; returns how many were inserted."""
        pass

    @abstractmethod
    async def search_restaurants(
        self,
        criteria: RestaurantFilter,
        page: PageRequest,
    ) -> Page[RestaurantRecord]:
        """
        Filter, order (rating desc, name asc) and paginate the catalog.
        ``total`` counts the filtered set before pagination.
        """
        pass

    @abstractmethod
    async def get_restaurant(self, restaurant_id: int) -> Optional[RestaurantRecord]:
        pass

    @abstractmethod
    async def list_cuisines(self) -> list[str]:
        """Sorted distinct cuisine types, nulls excluded."""
        pass

    @abstractmethod
    async def list_locations(self) -> list[str]:
        """Sorted distinct locations."""
        pass

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_reservation(
        self,
        user_id: int,
        restaurant_id: int,
        reservation_date: dt.date,
        reservation_time: dt.time,
        people_count: int,
        special_requests: Optional[str] = None,
    ) -> ReservationRecord:
        """Insert a confirmed reservation and return it joined."""
        pass

    @abstractmethod
    async def get_reservation(self, reservation_id: int, user_id: int) -> Optional[ReservationRecord]:
        """Return the reservation only if it belongs to ``user_id``."""
        pass

    @abstractmethod
    async def list_reservations(
        self,
        criteria: ReservationFilter,
        page: PageRequest,
    ) -> Page[ReservationRecord]:
        """Reservations ordered by date desc, time desc."""
        pass

    @abstractmethod
    async def update_reservation(
        self,
        reservation_id: int,
        changes: ReservationChanges,
    ) -> ReservationRecord:
        """Apply the provided fields, refresh ``updated_at``, return it joined."""
        pass

    @abstractmethod
    async def set_reservation_status(
        self,
        reservation_id: int,
        status: ReservationStatus,
    ) -> None:
        """Change the status and refresh ``updated_at``."""
        pass
