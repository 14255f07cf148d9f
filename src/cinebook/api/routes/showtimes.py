"""Showtime API endpoints."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinebook.api.deps import Requester, require_admin
from cinebook.database import get_db
from cinebook.models.enums import ShowtimeStatus
from cinebook.schemas import (
    ApiResponse,
    SeatMapEntry,
    SeatResponse,
    ShowtimeCreate,
    ShowtimeFilters,
    ShowtimeResponse,
    ShowtimeUpdate,
)
from cinebook.services.seat_inventory import SeatInventory
from cinebook.services.showtime_registry import ShowtimeRegistry

router = APIRouter()


@router.post(
    "/showtimes",
    response_model=ApiResponse[ShowtimeResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_showtime(
    payload: ShowtimeCreate,
    _: Requester = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ShowtimeResponse]:
    """
    Schedule a showtime.

    Rejected with 409 when it overlaps another active showtime in the hall.
    """
    showtime = await ShowtimeRegistry(db).create(payload)
    return ApiResponse(
        message="Showtime created successfully",
        data=ShowtimeResponse.model_validate(showtime),
    )


@router.get("/showtimes", response_model=ApiResponse[list[ShowtimeResponse]])
async def list_showtimes(
    hall_id: uuid.UUID | None = Query(default=None),
    movie_id: uuid.UUID | None = Query(default=None),
    show_date: date | None = Query(default=None, description="Date of the start time (UTC)"),
    showtime_status: ShowtimeStatus | None = Query(default=None, alias="status"),
    include_deleted: bool = Query(default=False),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[list[ShowtimeResponse]]:
    filters = ShowtimeFilters(
        hall_id=hall_id,
        movie_id=movie_id,
        show_date=show_date,
        status=showtime_status,
        include_deleted=include_deleted,
    )
    showtimes = await ShowtimeRegistry(db).list_showtimes(filters)
    return ApiResponse(
        message="Showtimes retrieved successfully",
        data=[ShowtimeResponse.model_validate(s) for s in showtimes],
    )


@router.get("/showtimes/{showtime_id}", response_model=ApiResponse[ShowtimeResponse])
async def get_showtime(
    showtime_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ShowtimeResponse]:
    showtime = await ShowtimeRegistry(db).get_or_404(showtime_id)
    return ApiResponse(
        message="Showtime retrieved successfully",
        data=ShowtimeResponse.model_validate(showtime),
    )


@router.get("/showtimes/{showtime_id}/seats", response_model=ApiResponse[list[SeatMapEntry]])
async def get_seat_map(
    showtime_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[list[SeatMapEntry]]:
    """
    Seats of the showtime's hall with their occupancy for this showtime.

    Occupancy comes from the bookings holding each seat, not from the
    seat's own status.
    """
    showtime = await ShowtimeRegistry(db).get_or_404(showtime_id)
    inventory = SeatInventory(db)
    booked = await inventory.booked_seat_ids(showtime.id)
    seats = await inventory.hall_seats(showtime.hall_id)
    return ApiResponse(
        message="Seats retrieved successfully",
        data=[
            SeatMapEntry(
                **SeatResponse.model_validate(seat).model_dump(),
                is_booked=seat.id in booked,
            )
            for seat in seats
        ],
    )


@router.patch("/showtimes/{showtime_id}", response_model=ApiResponse[ShowtimeResponse])
async def update_showtime(
    showtime_id: uuid.UUID,
    payload: ShowtimeUpdate,
    _: Requester = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ShowtimeResponse]:
    showtime = await ShowtimeRegistry(db).update(showtime_id, payload)
    return ApiResponse(
        message="Showtime updated successfully",
        data=ShowtimeResponse.model_validate(showtime),
    )


@router.delete("/showtimes/{showtime_id}", response_model=ApiResponse[ShowtimeResponse])
async def delete_showtime(
    showtime_id: uuid.UUID,
    _: Requester = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ShowtimeResponse]:
    showtime = await ShowtimeRegistry(db).soft_delete(showtime_id)
    return ApiResponse(
        message="Showtime deactivated successfully",
        data=ShowtimeResponse.model_validate(showtime),
    )


@router.post("/showtimes/{showtime_id}/restore", response_model=ApiResponse[ShowtimeResponse])
async def restore_showtime(
    showtime_id: uuid.UUID,
    _: Requester = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ShowtimeResponse]:
    showtime = await ShowtimeRegistry(db).restore(showtime_id)
    return ApiResponse(
        message="Showtime restored successfully",
        data=ShowtimeResponse.model_validate(showtime),
    )
