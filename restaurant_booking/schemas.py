"""
Pydantic Schemas for Request/Response Validation

Requests are validated here before any service runs; responses share the
``{success, message, data}`` envelope.
"""

import datetime as dt
import re
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator

from restaurant_booking.services.storage import ReservationChanges


T = TypeVar("T")

EMAIL_PATTERN = re.compile(r'^[\w\.\+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$')
DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')


def _parse_date(v):
    if isinstance(v, dt.date):
        return v
    if not isinstance(v, str) or not DATE_PATTERN.match(v):
        raise ValueError('Valid date is required (YYYY-MM-DD)')
    try:
        return dt.date.fromisoformat(v)
    except ValueError:
        raise ValueError('Valid date is required (YYYY-MM-DD)')


def _parse_time(v):
    if isinstance(v, dt.time):
        return v
    if not isinstance(v, str) or not TIME_PATTERN.match(v):
        raise ValueError('Valid time is required (HH:MM)')
    hours, minutes = v.split(':')
    return dt.time(int(hours), int(minutes))


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class RegisterRequest(BaseModel):
    """Request schema for creating an account."""
    name: str = Field(..., max_length=255, examples=["Jane Doe"])
    email: str = Field(..., max_length=255, examples=["jane@example.com"])
    password: str = Field(..., min_length=6, max_length=128, examples=["secret123"])

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError('Name must be at least 2 characters')
        return v

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError('Please provide a valid email')
        return v


class LoginRequest(BaseModel):
    """Request schema for logging in."""
    email: str = Field(..., max_length=255, examples=["jane@example.com"])
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError('Please provide a valid email')
        return v


class ReservationCreate(BaseModel):
    """Request schema for booking a table."""
    restaurant_id: int = Field(..., ge=1, examples=[1])
    date: dt.date = Field(..., examples=["2030-01-15"])
    time: dt.time = Field(..., examples=["19:30"])
    people_count: int = Field(..., ge=1, le=20, examples=[4])
    special_requests: Optional[str] = Field(None, max_length=500, examples=["Window seat"])

    @field_validator('date', mode='before')
    @classmethod
    def validate_date(cls, v):
        return _parse_date(v)

    @field_validator('time', mode='before')
    @classmethod
    def validate_time(cls, v):
        return _parse_time(v)


class ReservationUpdate(BaseModel):
    """Request schema for a partial update; omitted fields keep their value."""
    date: Optional[dt.date] = Field(None, examples=["2030-01-16"])
    time: Optional[dt.time] = Field(None, examples=["20:00"])
    people_count: Optional[int] = Field(None, ge=1, le=20, examples=[6])
    special_requests: Optional[str] = Field(None, max_length=500)

    @field_validator('date', mode='before')
    @classmethod
    def validate_date(cls, v):
        return None if v is None else _parse_date(v)

    @field_validator('time', mode='before')
    @classmethod
    def validate_time(cls, v):
        return None if v is None else _parse_time(v)

    def to_changes(self) -> ReservationChanges:
        """Only the fields present in the request body count as provided."""
        return ReservationChanges.from_values(
            **{name: getattr(self, name) for name in self.model_fields_set}
        )


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ApiResponse(BaseModel, Generic[T]):
    """Success envelope."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class FieldError(BaseModel):
    """One failed validation rule."""
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Failure envelope."""
    success: bool = False
    message: str
    errors: Optional[List[FieldError]] = None


class UserResponse(BaseModel):
    id: int
    name: str
    email: str


class AuthData(BaseModel):
    user: UserResponse
    token: str


class RestaurantResponse(BaseModel):
    """Response schema for a single restaurant."""
    id: int
    name: str
    location: str
    description: Optional[str]
    image_url: Optional[str]
    rating: float
    price_range: str
    cuisine_type: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class RestaurantData(BaseModel):
    restaurant: RestaurantResponse


class RestaurantListData(BaseModel):
    restaurants: List[RestaurantResponse]
    pagination: PaginationResponse


class CuisineListData(BaseModel):
    cuisines: List[str]


class LocationListData(BaseModel):
    locations: List[str]


class ReservationResponse(BaseModel):
    """Response schema for a reservation joined with restaurant and user fields."""
    id: int
    user_id: int
    restaurant_id: int
    date: str
    time: str
    people_count: int
    status: str
    special_requests: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]
    restaurant_name: Optional[str] = None
    restaurant_location: Optional[str] = None
    restaurant_image: Optional[str] = None
    restaurant_rating: Optional[float] = None
    restaurant_description: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None


class ReservationData(BaseModel):
    reservation: ReservationResponse


class ReservationListData(BaseModel):
    reservations: List[ReservationResponse]
    pagination: PaginationResponse


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    storage: str
    timestamp: dt.datetime
