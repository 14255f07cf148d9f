"""Pydantic schemas for API requests and responses."""

from cinebook.schemas.booking import (
    BookingAnalytics,
    BookingCreate,
    BookingDetail,
    BookingFilters,
    BookingPage,
    BookingResponse,
    BookingUpdate,
    CancelRequest,
    HallSummary,
    MovieSummary,
    ShowtimeSummary,
    UserSummary,
)
from cinebook.schemas.common import ApiResponse, Pagination
from cinebook.schemas.seat import SeatMapEntry, SeatResponse
from cinebook.schemas.showtime import (
    ShowtimeCreate,
    ShowtimeFilters,
    ShowtimeResponse,
    ShowtimeUpdate,
)

__all__ = [
    "ApiResponse",
    "Pagination",
    "BookingAnalytics",
    "BookingCreate",
    "BookingDetail",
    "BookingFilters",
    "BookingPage",
    "BookingResponse",
    "BookingUpdate",
    "CancelRequest",
    "HallSummary",
    "MovieSummary",
    "ShowtimeSummary",
    "UserSummary",
    "SeatMapEntry",
    "SeatResponse",
    "ShowtimeCreate",
    "ShowtimeFilters",
    "ShowtimeResponse",
    "ShowtimeUpdate",
]
