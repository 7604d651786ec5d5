"""
SQLAlchemy Database Models

Users, the restaurant catalog and reservations. Reservations reference
both users and restaurants through foreign keys and carry their lifecycle
status as a database enum.
"""

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from restaurant_booking.database import Base
import enum


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle. cancelled and completed are terminal."""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


TERMINAL_STATUSES = frozenset({ReservationStatus.CANCELLED, ReservationStatus.COMPLETED})


class User(Base):
    """Registered account. Email is unique and stored lower-cased."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    reservations = relationship("Reservation", back_populates="user", passive_deletes=True)

    def __repr__(self):
        return f"<User #{self.id} - {self.email}>"


class Restaurant(Base):
    """Catalog entry. Read-only from the API's point of view."""
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    rating = Column(Float, nullable=False, default=4.0)
    price_range = Column(String(10), nullable=False, default="$$")
    cuisine_type = Column(String(100), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    reservations = relationship("Reservation", back_populates="restaurant", passive_deletes=True)

    def __repr__(self):
        return f"<Restaurant #{self.id} - {self.name}>"


class Reservation(Base):
    """A table booked by a user at a restaurant."""
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    restaurant_id = Column(
        Integer,
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    people_count = Column(Integer, nullable=False)
    status = Column(
        Enum(
            ReservationStatus,
            name="reservation_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=ReservationStatus.CONFIRMED,
        nullable=False,
        index=True,
    )
    special_requests = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="reservations")
    restaurant = relationship("Restaurant", back_populates="reservations")

    def __repr__(self):
        return f"<Reservation #{self.id} - restaurant {self.restaurant_id} - {self.status.value}>"
