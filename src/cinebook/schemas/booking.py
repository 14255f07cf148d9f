"""Pydantic schemas for booking data."""

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cinebook.models.enums import BookingStatus, PaymentMethod, PaymentStatus, ShowtimeStatus
from cinebook.schemas.common import Pagination
from cinebook.schemas.seat import SeatResponse


def _reject_duplicate_seats(seat_ids: list[uuid.UUID] | None) -> list[uuid.UUID] | None:
    if seat_ids is not None and len(set(seat_ids)) != len(seat_ids):
        raise ValueError("seat_ids must not contain duplicates")
    return seat_ids


class BookingCreate(BaseModel):
    """Request body for creating a booking."""

    user_id: uuid.UUID
    showtime_id: uuid.UUID
    seat_ids: list[uuid.UUID] = Field(min_length=1)
    total_price: float = Field(ge=0)
    payment_method: PaymentMethod
    payment_id: str | None = None
    noted: str = ""

    # Administrative creation may start a booking in another state
    payment_status: PaymentStatus = PaymentStatus.PENDING
    booking_status: BookingStatus = BookingStatus.CONFIRMED

    @field_validator("seat_ids")
    @classmethod
    def check_unique_seats(cls, value: list[uuid.UUID] | None) -> list[uuid.UUID] | None:
        return _reject_duplicate_seats(value)


class BookingUpdate(BaseModel):
    """Partial update. id and created_at are not updatable."""

    model_config = ConfigDict(extra="ignore")

    showtime_id: uuid.UUID | None = None
    seat_ids: list[uuid.UUID] | None = Field(default=None, min_length=1)
    total_price: float | None = Field(default=None, ge=0)
    payment_method: PaymentMethod | None = None
    payment_id: str | None = None
    payment_status: PaymentStatus | None = None
    booking_status: BookingStatus | None = None
    noted: str | None = None

    @field_validator("seat_ids")
    @classmethod
    def check_unique_seats(cls, value: list[uuid.UUID] | None) -> list[uuid.UUID] | None:
        return _reject_duplicate_seats(value)


class CancelRequest(BaseModel):
    reason: str | None = None


SortField = Literal["booking_date", "created_at", "total_price", "reference_code"]


class BookingFilters(BaseModel):
    """Typed listing filters; unset fields do not constrain the query."""

    booking_status: BookingStatus | None = None
    payment_status: PaymentStatus | None = None
    user_id: uuid.UUID | None = None
    showtime_id: uuid.UUID | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None
    include_deleted: bool = False


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    phone: str | None = None


class MovieSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    poster_url: str | None = None
    duration_minutes: int | None = None


class HallSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    hall_name: str
    screen_type: str


class ShowtimeSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    show_date: date
    start_time: datetime
    end_time: datetime
    status: ShowtimeStatus


class BookingResponse(BaseModel):
    """Booking fields without resolved references."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    reference_code: str
    user_id: uuid.UUID
    showtime_id: uuid.UUID
    seat_ids: list[uuid.UUID]
    seat_count: int
    total_price: float
    payment_method: PaymentMethod | None = None
    payment_id: str | None = None
    payment_status: PaymentStatus
    booking_status: BookingStatus
    booking_date: datetime
    expired_at: datetime | None = None
    noted: str
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class BookingDetail(BookingResponse):
    """
    Booking with its references resolved for display.

    Related records that no longer exist come back as null rather than
    dropping the booking.
    """

    user: UserSummary | None = None
    showtime: ShowtimeSummary | None = None
    movie: MovieSummary | None = None
    hall: HallSummary | None = None
    seats: list[SeatResponse] = Field(default_factory=list)


class BookingPage(BaseModel):
    bookings: list[BookingDetail]
    pagination: Pagination


class BookingAnalytics(BaseModel):
    total_bookings: int
    confirmed_bookings: int
    cancelled_bookings: int
    completed_bookings: int
    pending_payments: int
    total_revenue: float
