"""
Booking ledger: the booking lifecycle.

Every mutation validates first and writes last, inside the caller's
transaction (the request session from ``get_db`` or a sweep session).
"""

import logging
import uuid
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from sqlalchemy import Select, asc, case, desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cinebook.config import settings
from cinebook.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PolicyError,
    ValidationError,
)
from cinebook.models import Booking, Hall, Movie, Seat, Showtime, User
from cinebook.models.enums import BookingStatus, PaymentStatus
from cinebook.schemas.booking import (
    BookingAnalytics,
    BookingCreate,
    BookingDetail,
    BookingFilters,
    BookingPage,
    BookingResponse,
    BookingUpdate,
    HallSummary,
    MovieSummary,
    ShowtimeSummary,
    UserSummary,
)
from cinebook.schemas.common import Pagination
from cinebook.schemas.seat import SeatResponse
from cinebook.services.reference_codes import (
    ReferenceCodeExhaustedError,
    generate_reference_code,
)
from cinebook.services.seat_inventory import SeatInventory
from cinebook.services.showtime_registry import ShowtimeRegistry, booking_expiry, is_bookable
from cinebook.utils.time import utcnow

logger = logging.getLogger(__name__)

SORT_FIELDS = ("booking_date", "created_at", "total_price", "reference_code")
MAX_PAGE_SIZE = 100

ADMIN_CANCEL_REASON = "Cancelled by admin"
OWNER_CANCEL_REASON = "Cancelled by customer"
EXPIRY_CANCEL_REASON = "Auto-cancelled due to expiration"


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def filter_clauses(filters: BookingFilters) -> list[Any]:
    """
    Translate listing filters into WHERE clauses.

    The search clause refers to ``User`` columns, so the query it is used
    in must join users.
    """
    clauses: list[Any] = []
    if not filters.include_deleted:
        clauses.append(Booking.deleted_at.is_(None))
    if filters.booking_status is not None:
        clauses.append(Booking.booking_status == filters.booking_status)
    if filters.payment_status is not None:
        clauses.append(Booking.payment_status == filters.payment_status)
    if filters.user_id is not None:
        clauses.append(Booking.user_id == filters.user_id)
    if filters.showtime_id is not None:
        clauses.append(Booking.showtime_id == filters.showtime_id)
    if filters.date_from is not None:
        clauses.append(Booking.booking_date >= _day_start(filters.date_from))
    if filters.date_to is not None:
        # date_to is inclusive
        clauses.append(Booking.booking_date < _day_start(filters.date_to + timedelta(days=1)))
    if filters.search:
        pattern = f"%{filters.search.strip()}%"
        clauses.append(
            or_(
                Booking.reference_code.ilike(pattern),
                User.username.ilike(pattern),
                User.email.ilike(pattern),
            )
        )
    return clauses


def _joined(stmt: Select) -> Select:
    # Outer joins: a booking whose user or showtime is gone is still listed
    return (
        stmt.outerjoin(User, User.id == Booking.user_id)
        .outerjoin(Showtime, Showtime.id == Booking.showtime_id)
        .outerjoin(Movie, Movie.id == Showtime.movie_id)
        .outerjoin(Hall, Hall.id == Showtime.hall_id)
    )


def _summary(schema, record):
    return schema.model_validate(record) if record is not None else None


def build_detail(
    booking: Booking,
    user: User | None,
    showtime: Showtime | None,
    movie: Movie | None,
    hall: Hall | None,
    seats_by_id: dict[uuid.UUID, Seat],
) -> BookingDetail:
    base = BookingResponse.model_validate(booking).model_dump()
    seats = [
        SeatResponse.model_validate(seats_by_id[seat_id])
        for seat_id in booking.seat_uuids
        if seat_id in seats_by_id
    ]
    return BookingDetail(
        **base,
        user=_summary(UserSummary, user),
        showtime=_summary(ShowtimeSummary, showtime),
        movie=_summary(MovieSummary, movie),
        hall=_summary(HallSummary, hall),
        seats=seats,
    )


class BookingLedger:
    """Creates, changes, cancels and reports on bookings."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.seats = SeatInventory(db)
        self.showtimes = ShowtimeRegistry(db)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def get(self, booking_id: uuid.UUID, include_deleted: bool = True) -> Booking | None:
        stmt = select(Booking).where(Booking.id == booking_id)
        if not include_deleted:
            stmt = stmt.where(Booking.deleted_at.is_(None))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_404(self, booking_id: uuid.UUID, include_deleted: bool = True) -> Booking:
        booking = await self.get(booking_id, include_deleted=include_deleted)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    async def get_by_reference_code(self, reference_code: str) -> Booking:
        """
        Look a booking up by its customer-facing code.

        An abandoned booking (confirmed, unpaid, past its deadline) is
        cancelled before it is returned.
        """
        result = await self.db.execute(
            select(Booking).where(Booking.reference_code == reference_code.strip().upper())
        )
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError("Booking not found")
        await self.expire_if_abandoned(booking)
        return booking

    async def describe(self, booking: Booking) -> BookingDetail:
        """Resolve a booking's user, showtime, movie, hall and seats."""
        user = await self.db.get(User, booking.user_id)
        showtime = await self.db.get(Showtime, booking.showtime_id)
        movie = hall = None
        if showtime is not None:
            movie = await self.db.get(Movie, showtime.movie_id)
            hall = await self.db.get(Hall, showtime.hall_id)
        seats_by_id = await self._seats_by_id(booking.seat_uuids)
        return build_detail(booking, user, showtime, movie, hall, seats_by_id)

    async def _seats_by_id(self, seat_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, Seat]:
        seat_ids = set(seat_ids)
        if not seat_ids:
            return {}
        result = await self.db.execute(select(Seat).where(Seat.id.in_(seat_ids)))
        return {seat.id: seat for seat in result.scalars().all()}

    # ------------------------------------------------------------------
    # Seat holds
    # ------------------------------------------------------------------

    async def _acquire(
        self,
        booking_id: uuid.UUID,
        showtime_id: uuid.UUID,
        seat_ids: Iterable[uuid.UUID],
    ) -> None:
        """Hold and reserve seats; a lost race on the hold constraint is a conflict."""
        seat_ids = list(seat_ids)
        if not seat_ids:
            return
        try:
            async with self.db.begin_nested():
                await self.seats.hold(booking_id, showtime_id, seat_ids)
        except IntegrityError as exc:
            logger.warning(f"Seat hold collision for booking {booking_id}: {exc.orig}")
            raise ConflictError(
                "One or more seats were just booked by someone else. Please choose different seats."
            ) from exc
        await self.seats.reserve(seat_ids)

    async def _release(self, booking: Booking, seat_ids: Iterable[uuid.UUID] | None = None) -> None:
        """Drop holds (all, or only the given seats) and free the seats."""
        seat_ids = booking.seat_uuids if seat_ids is None else list(seat_ids)
        await self.seats.drop_holds(booking.id, seat_ids)
        await self.seats.release(seat_ids)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, data: BookingCreate) -> Booking:
        user = await self.db.get(User, data.user_id)
        if user is None:
            raise NotFoundError("User not found")

        showtime = await self.showtimes.get(data.showtime_id)
        if showtime is None:
            raise NotFoundError("Showtime not found or has been deleted")
        self.showtimes.require_bookable(showtime)

        seats = await self.seats.resolve(data.seat_ids, lock=True)
        self.seats.ensure_in_hall(seats, showtime.hall_id)
        await self.seats.ensure_available(showtime.id, seats)

        values = {
            "user_id": user.id,
            "showtime_id": showtime.id,
            "seat_ids": [seat.id for seat in seats],
            "total_price": data.total_price,
            "payment_method": data.payment_method,
            "payment_id": data.payment_id,
            "payment_status": data.payment_status,
            "booking_status": data.booking_status,
            "booking_date": utcnow(),
            "expired_at": booking_expiry(showtime.start_time, data.payment_method),
            "noted": data.noted,
        }
        booking = await self._insert(values)

        if booking.is_active:
            await self._acquire(booking.id, showtime.id, booking.seat_uuids)
        await self.db.flush()

        logger.info(
            f"Created booking {booking.reference_code} for showtime {showtime.id} "
            f"({booking.seat_count} seats)"
        )
        return booking

    async def _insert(self, values: dict[str, Any]) -> Booking:
        """Insert a booking, drawing a fresh reference code on a unique-index collision."""
        attempts = settings.reference_code_max_attempts
        for attempt in range(1, attempts + 1):
            booking = Booking(reference_code=await generate_reference_code(self.db), **values)
            try:
                async with self.db.begin_nested():
                    self.db.add(booking)
                    await self.db.flush()
            except IntegrityError as exc:
                if "reference_code" not in str(exc.orig):
                    raise
                logger.warning(
                    f"Reference code {booking.reference_code} taken at insert "
                    f"(attempt {attempt}/{attempts})"
                )
                continue
            return booking

        raise ReferenceCodeExhaustedError(
            f"Could not store a booking with a unique reference code after {attempts} attempts"
        )

    async def update(self, booking_id: uuid.UUID, data: BookingUpdate) -> Booking:
        """
        Apply a partial update.

        Seat or showtime changes are re-validated against the effective
        hall and against every other active booking. Holds and seat
        statuses follow the diff between the old and new seat sets.
        """
        booking = await self.get(booking_id, include_deleted=False)
        if booking is None:
            raise NotFoundError("Booking not found or has been deleted")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        was_active = booking.is_active
        final_status = changes.get("booking_status", booking.booking_status)
        will_be_active = final_status != BookingStatus.CANCELLED
        reactivating = will_be_active and not was_active

        current = await self.showtimes.get(booking.showtime_id, include_deleted=True)
        if was_active and will_be_active and (current is None or not is_bookable(current)):
            raise PolicyError("Cannot update a booking for a showtime that is no longer available")

        target = current
        showtime_changed = (
            "showtime_id" in changes and changes["showtime_id"] != booking.showtime_id
        )
        if showtime_changed:
            target = await self.showtimes.get(changes["showtime_id"])
            if target is None:
                raise NotFoundError("Showtime not found or has been deleted")
            self.showtimes.require_bookable(target, "The selected showtime is not available for booking")
        elif reactivating:
            if target is None or not is_bookable(target):
                raise PolicyError("Cannot reactivate a booking for a showtime that is no longer available")

        old_ids = booking.seat_uuids
        new_ids = changes.get("seat_ids", old_ids)
        seats_changed = set(new_ids) != set(old_ids)

        if seats_changed or showtime_changed or reactivating:
            if target is None:
                raise NotFoundError("Showtime not found")
            # Cancelled bookings keep a consistent seat list too, ready for reactivation
            seats = await self.seats.resolve(new_ids, lock=will_be_active)
            self.seats.ensure_in_hall(seats, target.hall_id)
            if will_be_active:
                await self.seats.ensure_available(target.id, seats, exclude_booking_id=booking.id)

        # Validation done; write
        if was_active and (not will_be_active or showtime_changed):
            await self._release(booking)
        elif was_active and seats_changed:
            removed = [seat_id for seat_id in old_ids if seat_id not in new_ids]
            added = [seat_id for seat_id in new_ids if seat_id not in old_ids]
            await self._release(booking, removed)
            await self._acquire(booking.id, booking.showtime_id, added)

        if will_be_active and (reactivating or showtime_changed):
            await self._acquire(booking.id, target.id, new_ids)

        for field, value in changes.items():
            setattr(booking, field, value)
        refresh_expiry = "payment_method" in changes or showtime_changed or reactivating
        if target is not None and refresh_expiry:
            booking.expired_at = booking_expiry(target.start_time, booking.payment_method)

        await self.db.flush()
        logger.info(f"Updated booking {booking.reference_code}: {sorted(changes)}")
        return booking

    async def cancel(
        self,
        booking_id: uuid.UUID,
        reason: str | None = None,
        requester_id: uuid.UUID | None = None,
    ) -> Booking:
        """
        Cancel a booking and free its seats.

        With ``requester_id`` the caller must own the booking (customer
        cancellation); without it the call is an administrative cancel.
        """
        booking = await self.get_or_404(booking_id)
        if requester_id is not None and booking.user_id != requester_id:
            raise ForbiddenError("You can only cancel your own bookings")
        if booking.booking_status == BookingStatus.CANCELLED or booking.is_deleted:
            raise ConflictError("Booking is already cancelled")

        default_reason = ADMIN_CANCEL_REASON if requester_id is None else OWNER_CANCEL_REASON
        await self._cancel(booking, reason or default_reason)
        return booking

    async def _cancel(self, booking: Booking, reason: str, now: datetime | None = None) -> None:
        if booking.is_active:
            await self._release(booking)
        booking.booking_status = BookingStatus.CANCELLED
        booking.noted = reason
        booking.soft_delete(now)
        await self.db.flush()
        logger.info(f"Cancelled booking {booking.reference_code}: {reason}")

    async def expire_if_abandoned(self, booking: Booking, now: datetime | None = None) -> bool:
        now = now or utcnow()
        if booking.is_deleted or not booking.is_abandoned(now):
            return False
        await self._cancel(booking, EXPIRY_CANCEL_REASON, now)
        return True

    async def cancel_expired(self, now: datetime | None = None) -> list[uuid.UUID]:
        """Cancel every abandoned booking. Used by the scheduled sweep."""
        now = now or utcnow()
        result = await self.db.execute(
            select(Booking).where(
                Booking.deleted_at.is_(None),
                Booking.booking_status == BookingStatus.CONFIRMED,
                Booking.payment_status == PaymentStatus.PENDING,
                Booking.expired_at.is_not(None),
                Booking.expired_at < now,
            )
        )
        expired = list(result.scalars().all())
        for booking in expired:
            await self._cancel(booking, EXPIRY_CANCEL_REASON, now)

        if expired:
            logger.info(f"Auto-cancelled {len(expired)} expired bookings")
        return [booking.id for booking in expired]

    async def soft_delete(self, booking_id: uuid.UUID) -> Booking:
        booking = await self.get(booking_id, include_deleted=False)
        if booking is None:
            raise NotFoundError("Booking not found or already deleted")

        if booking.is_active:
            await self._release(booking)
        booking.soft_delete()
        await self.db.flush()
        logger.info(f"Soft deleted booking {booking.reference_code}")
        return booking

    async def restore(self, booking_id: uuid.UUID) -> Booking:
        """
        Clear a booking's deleted marker.

        A restored booking that is not cancelled is active again, so it must
        win back every one of its seats.
        """
        booking = await self.get(booking_id)
        if booking is None or not booking.is_deleted:
            raise NotFoundError("Booking not found or is not deleted")

        if booking.booking_status != BookingStatus.CANCELLED:
            showtime = await self.showtimes.get(booking.showtime_id, include_deleted=True)
            if showtime is None or not is_bookable(showtime):
                raise PolicyError(
                    "Cannot restore a booking for a showtime that is no longer available"
                )
            seats = await self.seats.resolve(booking.seat_uuids, lock=True)
            self.seats.ensure_in_hall(seats, showtime.hall_id)

            conflicts = await self.seats.find_conflicts(
                booking.showtime_id, booking.seat_uuids, exclude_booking_id=booking.id
            )
            if conflicts:
                seats_by_id = await self._seats_by_id(conflicts)
                names = [
                    seats_by_id[seat_id].seat_identifier if seat_id in seats_by_id else str(seat_id)
                    for seat_id in booking.seat_uuids
                    if seat_id in conflicts
                ]
                raise ConflictError(
                    f"Cannot restore booking, seats already booked: {', '.join(names)}",
                    data={"conflicting_seats": names},
                )
            booking.restore()
            await self._acquire(booking.id, booking.showtime_id, booking.seat_uuids)
        else:
            booking.restore()

        await self.db.flush()
        logger.info(f"Restored booking {booking.reference_code}")
        return booking

    async def force_delete(self, booking_id: uuid.UUID) -> None:
        booking = await self.get_or_404(booking_id)
        reference_code = booking.reference_code

        if booking.is_active:
            await self._release(booking)
        else:
            await self.seats.drop_holds(booking.id)
        await self.db.delete(booking)
        await self.db.flush()
        logger.info(f"Permanently deleted booking {reference_code}")

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def list_bookings(
        self,
        filters: BookingFilters,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "booking_date",
        sort_order: str = "desc",
    ) -> BookingPage:
        return await self._page(filter_clauses(filters), page, limit, sort_by, sort_order)

    async def list_deleted(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "booking_date",
        sort_order: str = "desc",
    ) -> BookingPage:
        return await self._page([Booking.deleted_at.is_not(None)], page, limit, sort_by, sort_order)

    async def _page(
        self,
        clauses: list[Any],
        page: int,
        limit: int,
        sort_by: str,
        sort_order: str,
    ) -> BookingPage:
        if page < 1:
            raise ValidationError("page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if sort_by not in SORT_FIELDS:
            raise ValidationError(f"sort_by must be one of: {', '.join(SORT_FIELDS)}")
        if sort_order not in ("asc", "desc"):
            raise ValidationError("sort_order must be 'asc' or 'desc'")

        total_count = await self.db.scalar(
            _joined(select(func.count(Booking.id)).select_from(Booking)).where(*clauses)
        )

        direction = asc if sort_order == "asc" else desc
        stmt = (
            _joined(select(Booking, User, Showtime, Movie, Hall))
            .where(*clauses)
            .order_by(direction(getattr(Booking, sort_by)), Booking.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = (await self.db.execute(stmt)).all()

        seats_by_id = await self._seats_by_id(
            seat_id for row in rows for seat_id in row.Booking.seat_uuids
        )
        bookings = [
            build_detail(row.Booking, row.User, row.Showtime, row.Movie, row.Hall, seats_by_id)
            for row in rows
        ]
        return BookingPage(
            bookings=bookings,
            pagination=Pagination.build(page, limit, total_count or 0),
        )

    async def analytics(self) -> BookingAnalytics:
        def count_where(condition):
            return func.count(case((condition, 1)))

        stmt = select(
            func.count(Booking.id),
            count_where(Booking.booking_status == BookingStatus.CONFIRMED),
            count_where(Booking.booking_status == BookingStatus.CANCELLED),
            count_where(Booking.booking_status == BookingStatus.COMPLETED),
            count_where(Booking.payment_status == PaymentStatus.PENDING),
            func.coalesce(
                func.sum(
                    case(
                        (Booking.payment_status == PaymentStatus.COMPLETED, Booking.total_price),
                        else_=0,
                    )
                ),
                0,
            ),
        ).where(Booking.deleted_at.is_(None))
        row = (await self.db.execute(stmt)).one()
        return BookingAnalytics(
            total_bookings=row[0],
            confirmed_bookings=row[1],
            cancelled_bookings=row[2],
            completed_bookings=row[3],
            pending_payments=row[4],
            total_revenue=float(row[5] or 0),
        )
