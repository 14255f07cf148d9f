"""Booking API endpoints."""

import logging
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinebook.api.deps import (
    Requester,
    ensure_owner_or_admin,
    get_requester,
    require_admin,
    require_identity,
    require_user,
)
from cinebook.database import get_db
from cinebook.exceptions import ForbiddenError, UnauthorizedError
from cinebook.schemas import (
    ApiResponse,
    BookingAnalytics,
    BookingCreate,
    BookingDetail,
    BookingFilters,
    BookingPage,
    BookingUpdate,
    CancelRequest,
)
from cinebook.schemas.booking import SortField
from cinebook.services.booking_ledger import BookingLedger

logger = logging.getLogger(__name__)
router = APIRouter()

SortOrder = Literal["asc", "desc"]


@router.post(
    "/bookings",
    response_model=ApiResponse[BookingDetail],
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: BookingCreate,
    requester: Requester = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BookingDetail]:
    """
    Book seats for a showtime.

    The showtime must still be open for booking and every seat must belong
    to its hall and be free. On success the seats are held for this booking
    and a reference code is issued.
    """
    ensure_owner_or_admin(requester, payload.user_id, "You can only book seats for yourself")
    if not requester.is_admin and {"payment_status", "booking_status"} & payload.model_fields_set:
        raise ForbiddenError("Only admins can set payment or booking status on creation")

    ledger = BookingLedger(db)
    booking = await ledger.create(payload)
    return ApiResponse(message="Booking created successfully", data=await ledger.describe(booking))


@router.get("/bookings", response_model=ApiResponse[BookingPage])
async def list_bookings(
    filters: BookingFilters = Depends(),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort_by: SortField = Query(default="booking_date"),
    sort_order: SortOrder = Query(default="desc"),
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BookingPage]:
    """
    List bookings with filters, sorting and pagination.

    Admins see every booking; anyone else only sees their own.
    """
    if not requester.is_admin:
        if requester.user_id is None:
            raise UnauthorizedError("Authentication required")
        filters = filters.model_copy(update={"user_id": requester.user_id})

    result = await BookingLedger(db).list_bookings(filters, page, limit, sort_by, sort_order)
    return ApiResponse(message="Bookings retrieved successfully", data=result)


@router.get("/bookings/deleted", response_model=ApiResponse[BookingPage])
async def list_deleted_bookings(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort_by: SortField = Query(default="booking_date"),
    sort_order: SortOrder = Query(default="desc"),
    _: Requester = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BookingPage]:
    result = await BookingLedger(db).list_deleted(page, limit, sort_by, sort_order)
    return ApiResponse(message="Deleted bookings retrieved successfully", data=result)


@router.get("/bookings/analytics", response_model=ApiResponse[BookingAnalytics])
async def booking_analytics(
    _: Requester = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BookingAnalytics]:
    analytics = await BookingLedger(db).analytics()
    return ApiResponse(message="Booking analytics retrieved successfully", data=analytics)


@router.get("/bookings/reference/{reference_code}", response_model=ApiResponse[BookingDetail])
async def get_booking_by_reference_code(
    reference_code: str,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BookingDetail]:
    """Look up a booking by its reference code; abandoned bookings are cancelled first."""
    ledger = BookingLedger(db)
    booking = await ledger.get_by_reference_code(reference_code)
    return ApiResponse(message="Booking retrieved successfully", data=await ledger.describe(booking))


@router.get("/bookings/{booking_id}", response_model=ApiResponse[BookingDetail])
async def get_booking(
    booking_id: uuid.UUID,
    requester: Requester = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BookingDetail]:
    ledger = BookingLedger(db)
    booking = await ledger.get_or_404(booking_id)
    ensure_owner_or_admin(requester, booking.user_id, "You can only view your own bookings")
    return ApiResponse(message="Booking retrieved successfully", data=await ledger.describe(booking))


@router.patch("/bookings/{booking_id}", response_model=ApiResponse[BookingDetail])
async def update_booking(
    booking_id: uuid.UUID,
    payload: BookingUpdate,
    _: Requester = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BookingDetail]:
    ledger = BookingLedger(db)
    booking = await ledger.update(booking_id, payload)
    return ApiResponse(message="Booking updated successfully", data=await ledger.describe(booking))


@router.post("/bookings/{booking_id}/cancel", response_model=ApiResponse[BookingDetail])
async def cancel_booking(
    booking_id: uuid.UUID,
    payload: CancelRequest | None = None,
    _: Requester = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BookingDetail]:
    ledger = BookingLedger(db)
    booking = await ledger.cancel(booking_id, reason=payload.reason if payload else None)
    return ApiResponse(message="Booking cancelled successfully", data=await ledger.describe(booking))


@router.post("/me/bookings/{booking_id}/cancel", response_model=ApiResponse[BookingDetail])
async def cancel_own_booking(
    booking_id: uuid.UUID,
    payload: CancelRequest | None = None,
    requester: Requester = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BookingDetail]:
    ledger = BookingLedger(db)
    booking = await ledger.cancel(
        booking_id,
        reason=payload.reason if payload else None,
        requester_id=requester.user_id,
    )
    return ApiResponse(message="Booking cancelled successfully", data=await ledger.describe(booking))


@router.delete("/bookings/{booking_id}", response_model=ApiResponse[None])
async def delete_booking(
    booking_id: uuid.UUID,
    _: Requester = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[None]:
    await BookingLedger(db).soft_delete(booking_id)
    return ApiResponse(message="Booking deleted successfully")


@router.post("/bookings/{booking_id}/restore", response_model=ApiResponse[BookingDetail])
async def restore_booking(
    booking_id: uuid.UUID,
    _: Requester = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BookingDetail]:
    ledger = BookingLedger(db)
    booking = await ledger.restore(booking_id)
    return ApiResponse(message="Booking restored successfully", data=await ledger.describe(booking))


@router.delete("/bookings/{booking_id}/force", response_model=ApiResponse[None])
async def force_delete_booking(
    booking_id: uuid.UUID,
    _: Requester = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[None]:
    await BookingLedger(db).force_delete(booking_id)
    return ApiResponse(message="Booking permanently deleted")
