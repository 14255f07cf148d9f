"""Showtime registry: lookup, bookability, overlap checks and lifecycle."""

import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cinebook.config import settings
from cinebook.exceptions import ConflictError, NotFoundError, PolicyError, ValidationError
from cinebook.models import Booking, Hall, Movie, Showtime
from cinebook.models.enums import BookingStatus, PaymentMethod, ShowtimeStatus
from cinebook.schemas.showtime import ShowtimeCreate, ShowtimeFilters, ShowtimeUpdate
from cinebook.services.seat_inventory import SeatInventory
from cinebook.utils.time import ensure_utc, intervals_overlap, utcnow

logger = logging.getLogger(__name__)

CLOSED_STATUSES = frozenset({ShowtimeStatus.COMPLETED, ShowtimeStatus.CANCELLED})


def is_bookable(showtime: Showtime, now: datetime | None = None) -> bool:
    """
    Whether a showtime currently accepts new bookings or seat changes.

    False when it is soft-deleted, completed or cancelled, or when its start
    (plus the configured grace window) is not in the future.
    """
    now = now or utcnow()
    if showtime.is_deleted or showtime.status in CLOSED_STATUSES:
        return False
    grace = timedelta(minutes=settings.showtime_booking_grace_minutes)
    return showtime.start_time + grace > now


def booking_expiry(start_time: datetime, payment_method: PaymentMethod | None) -> datetime | None:
    """
    Payment deadline for a booking of a showtime starting at ``start_time``.

    Cash is settled at the counter, so cash bookings never expire. Every
    other method must be paid before the pre-show cutoff.
    """
    if payment_method == PaymentMethod.CASH:
        return None
    return start_time - timedelta(minutes=settings.booking_expiry_cutoff_minutes)


def _describe(showtime: Showtime) -> dict[str, str]:
    return {
        "id": str(showtime.id),
        "start_time": showtime.start_time.isoformat(),
        "end_time": showtime.end_time.isoformat(),
    }


class ShowtimeRegistry:
    """Reads and writes showtimes; keeps same-hall windows from overlapping."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, showtime_id: uuid.UUID, include_deleted: bool = False) -> Showtime | None:
        stmt = select(Showtime).where(Showtime.id == showtime_id)
        if not include_deleted:
            stmt = stmt.where(Showtime.deleted_at.is_(None))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_404(self, showtime_id: uuid.UUID, include_deleted: bool = False) -> Showtime:
        showtime = await self.get(showtime_id, include_deleted=include_deleted)
        if showtime is None:
            raise NotFoundError("Showtime not found")
        return showtime

    def require_bookable(self, showtime: Showtime, message: str | None = None) -> None:
        if not is_bookable(showtime):
            raise PolicyError(message or "Showtime is not available for booking")

    async def find_overlapping(
        self,
        hall_id: uuid.UUID,
        start: datetime,
        end: datetime,
        exclude_id: uuid.UUID | None = None,
    ) -> list[Showtime]:
        """
        Active showtimes in the hall whose [start, end) intersects the candidate.

        Deleted and cancelled showtimes do not block a slot.
        """
        start, end = ensure_utc(start), ensure_utc(end)
        stmt = select(Showtime).where(
            Showtime.hall_id == hall_id,
            Showtime.deleted_at.is_(None),
            Showtime.status != ShowtimeStatus.CANCELLED,
            Showtime.start_time < end,
            Showtime.end_time > start,
        )
        if exclude_id is not None:
            stmt = stmt.where(Showtime.id != exclude_id)
        result = await self.db.execute(stmt.order_by(Showtime.start_time))
        # Re-check in Python so the half-open rule does not depend on the backend
        return [
            showtime
            for showtime in result.scalars().all()
            if intervals_overlap(showtime.start_time, showtime.end_time, start, end)
        ]

    async def ensure_no_overlap(
        self,
        hall_id: uuid.UUID,
        start: datetime,
        end: datetime,
        exclude_id: uuid.UUID | None = None,
        message: str = "This showtime overlaps with an existing showtime in the same hall.",
    ) -> None:
        overlapping = await self.find_overlapping(hall_id, start, end, exclude_id)
        if overlapping:
            raise ConflictError(
                message,
                data={"overlapping_showtimes": [_describe(s) for s in overlapping]},
            )

    async def list_showtimes(self, filters: ShowtimeFilters) -> list[Showtime]:
        stmt = select(Showtime)
        if not filters.include_deleted:
            stmt = stmt.where(Showtime.deleted_at.is_(None))
        if filters.hall_id is not None:
            stmt = stmt.where(Showtime.hall_id == filters.hall_id)
        if filters.movie_id is not None:
            stmt = stmt.where(Showtime.movie_id == filters.movie_id)
        if filters.status is not None:
            stmt = stmt.where(Showtime.status == filters.status)
        result = await self.db.execute(stmt.order_by(Showtime.start_time))
        showtimes = list(result.scalars().all())
        if filters.show_date is not None:
            showtimes = [s for s in showtimes if s.show_date == filters.show_date]
        return showtimes

    async def _require_references(self, movie_id: uuid.UUID, hall_id: uuid.UUID) -> None:
        movie = await self.db.get(Movie, movie_id)
        if movie is None:
            raise NotFoundError("Movie not found.")
        hall = await self.db.get(Hall, hall_id)
        if hall is None or hall.is_deleted:
            raise NotFoundError("Hall not found or has been deleted.")

    async def create(self, data: ShowtimeCreate) -> Showtime:
        await self._require_references(data.movie_id, data.hall_id)
        start, end = ensure_utc(data.start_time), ensure_utc(data.end_time)
        await self.ensure_no_overlap(data.hall_id, start, end)

        showtime = Showtime(
            movie_id=data.movie_id,
            hall_id=data.hall_id,
            start_time=start,
            end_time=end,
            language=data.language,
            subtitle=data.subtitle,
        )
        self.db.add(showtime)
        await self.db.flush()
        logger.info(f"Created new showtime: {showtime.id}")
        return showtime

    async def active_bookings(self, showtime_id: uuid.UUID) -> list[Booking]:
        """Bookings that currently hold seats for the showtime."""
        result = await self.db.execute(
            select(Booking).where(
                Booking.showtime_id == showtime_id,
                Booking.deleted_at.is_(None),
                Booking.booking_status != BookingStatus.CANCELLED,
            )
        )
        return list(result.scalars().all())

    async def count_active_bookings(self, showtime_id: uuid.UUID) -> int:
        count = await self.db.scalar(
            select(func.count(Booking.id)).where(
                Booking.showtime_id == showtime_id,
                Booking.deleted_at.is_(None),
                Booking.booking_status != BookingStatus.CANCELLED,
            )
        )
        return count or 0

    async def update(self, showtime_id: uuid.UUID, data: ShowtimeUpdate) -> Showtime:
        """
        Apply a partial update.

        A showtime with active bookings keeps its hall and cannot be
        cancelled. Moving its start time moves the payment deadline of every
        active booking with it.
        """
        showtime = await self.get_or_404(showtime_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        movie_id = changes.get("movie_id", showtime.movie_id)
        hall_id = changes.get("hall_id", showtime.hall_id)
        start = ensure_utc(changes.get("start_time", showtime.start_time))
        end = ensure_utc(changes.get("end_time", showtime.end_time))
        if end <= start:
            raise ValidationError("end_time must be after start_time")

        hall_changed = hall_id != showtime.hall_id
        start_changed = start != showtime.start_time
        new_status = changes.get("status", showtime.status)
        status_changed = new_status != showtime.status
        cancelling = status_changed and new_status == ShowtimeStatus.CANCELLED
        completing = status_changed and new_status == ShowtimeStatus.COMPLETED

        bookings: list[Booking] = []
        if hall_changed or start_changed or cancelling:
            bookings = await self.active_bookings(showtime.id)
        if bookings and hall_changed:
            raise ConflictError(
                f"Cannot move showtime to another hall. It has {len(bookings)} active "
                "booking(s) for seats in the current hall.",
                data={"active_bookings": len(bookings)},
            )
        if bookings and cancelling:
            raise ConflictError(
                f"Cannot cancel showtime. It has {len(bookings)} active booking(s). "
                "Please cancel or resolve them first.",
                data={"active_bookings": len(bookings)},
            )

        if {"movie_id", "hall_id"} & changes.keys():
            await self._require_references(movie_id, hall_id)
        if {"hall_id", "start_time", "end_time"} & changes.keys():
            await self.ensure_no_overlap(
                hall_id,
                start,
                end,
                exclude_id=showtime.id,
                message="The updated showtime overlaps with an existing showtime in the same hall.",
            )

        for field, value in changes.items():
            setattr(showtime, field, value)
        showtime.start_time, showtime.end_time = start, end

        if start_changed:
            for booking in bookings:
                booking.expired_at = booking_expiry(start, booking.payment_method)
            if bookings:
                logger.info(
                    f"Moved payment deadline of {len(bookings)} bookings for showtime {showtime.id}"
                )
        if completing:
            await SeatInventory(self.db).release_showtime(showtime.id)

        await self.db.flush()
        logger.info(f"Updated showtime: {showtime.id}")
        return showtime

    async def soft_delete(self, showtime_id: uuid.UUID) -> Showtime:
        showtime = await self.get_or_404(showtime_id, include_deleted=True)
        if showtime.is_deleted:
            raise ConflictError("Showtime is already deactivated")

        active = await self.count_active_bookings(showtime.id)
        if active:
            raise ConflictError(
                f"Cannot deactivate showtime. It has {active} active booking(s). "
                "Please cancel or resolve them first.",
                data={"active_bookings": active},
            )

        showtime.soft_delete()
        await self.db.flush()
        logger.info(f"Soft deleted showtime: {showtime.id}")
        return showtime

    async def restore(self, showtime_id: uuid.UUID) -> Showtime:
        showtime = await self.get(showtime_id, include_deleted=True)
        if showtime is None or not showtime.is_deleted:
            raise NotFoundError("Showtime not found or is not deleted.")

        await self.ensure_no_overlap(
            showtime.hall_id,
            showtime.start_time,
            showtime.end_time,
            exclude_id=showtime.id,
            message="Cannot restore showtime because it overlaps with an existing active showtime.",
        )
        showtime.restore()
        await self.db.flush()
        logger.info(f"Restored showtime: {showtime.id}")
        return showtime

    async def complete_finished(self, now: datetime | None = None) -> list[uuid.UUID]:
        """
        Mark scheduled showtimes that have ended as completed.

        Their seat holds are dropped and the seats flipped back to active,
        so the physical seats read as free for the next screening.
        """
        now = now or utcnow()
        result = await self.db.execute(
            select(Showtime).where(
                Showtime.status == ShowtimeStatus.SCHEDULED,
                Showtime.end_time < now,
            )
        )
        finished = list(result.scalars().all())
        if not finished:
            return []

        inventory = SeatInventory(self.db)
        for showtime in finished:
            showtime.status = ShowtimeStatus.COMPLETED
            await inventory.release_showtime(showtime.id)
        await self.db.flush()

        logger.info(f"Updated {len(finished)} showtimes to 'completed'")
        return [showtime.id for showtime in finished]
