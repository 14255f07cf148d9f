"""Pydantic schemas for seat data."""

import uuid

from pydantic import BaseModel, ConfigDict

from cinebook.models.enums import SeatStatus, SeatType


class SeatResponse(BaseModel):
    """Seat response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    hall_id: uuid.UUID
    row: str
    seat_number: str
    seat_identifier: str
    seat_type: SeatType
    status: SeatStatus
    price: float


class SeatMapEntry(SeatResponse):
    """Seat with its occupancy for one showtime."""

    is_booked: bool
