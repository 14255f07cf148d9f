"""Pydantic schemas for showtime data."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, model_validator

from cinebook.models.enums import ShowtimeStatus


class ShowtimeCreate(BaseModel):
    """Request body for scheduling a showtime."""

    movie_id: uuid.UUID
    hall_id: uuid.UUID
    start_time: datetime
    end_time: datetime
    language: str = "Original"
    subtitle: str = "Original"

    @model_validator(mode="after")
    def check_window(self) -> "ShowtimeCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ShowtimeUpdate(BaseModel):
    """Partial update; timing or hall changes are re-checked for overlaps."""

    movie_id: uuid.UUID | None = None
    hall_id: uuid.UUID | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: ShowtimeStatus | None = None
    language: str | None = None
    subtitle: str | None = None


class ShowtimeResponse(BaseModel):
    """Showtime response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    movie_id: uuid.UUID
    hall_id: uuid.UUID
    start_time: datetime
    end_time: datetime
    show_date: date
    status: ShowtimeStatus
    language: str
    subtitle: str
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ShowtimeFilters(BaseModel):
    """Typed filters for listing showtimes."""

    hall_id: uuid.UUID | None = None
    movie_id: uuid.UUID | None = None
    show_date: date | None = None
    status: ShowtimeStatus | None = None
    include_deleted: bool = False
