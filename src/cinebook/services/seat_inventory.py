"""Seat inventory: seat lookup, hall checks, conflict detection and seat holds."""

import logging
import uuid
from collections.abc import Iterable, Sequence

from sqlalchemy import and_, delete, exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cinebook.exceptions import ConflictError, NotFoundError, PolicyError
from cinebook.models import Booking, Seat, SeatHold
from cinebook.models.enums import UNSELLABLE_SEAT_STATUSES, BookingStatus, SeatStatus

logger = logging.getLogger(__name__)


class SeatInventory:
    """
    Everything the booking workflow needs to know or change about seats.

    Availability for a showtime is decided by active bookings (and backed
    by the ``seat_holds`` unique constraint). ``Seat.status`` is only
    flipped through the guarded ``reserve`` / ``release`` transitions.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def resolve(
        self,
        seat_ids: Sequence[uuid.UUID],
        lock: bool = False,
    ) -> list[Seat]:
        """
        Load seats in the requested order.

        Args:
            seat_ids: Seat ids to load
            lock: Read the rows FOR UPDATE (ignored by SQLite)

        Raises:
            NotFoundError: listing every id that does not resolve to a
                non-deleted seat
        """
        stmt = select(Seat).where(Seat.id.in_(seat_ids), Seat.deleted_at.is_(None))
        if lock:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        by_id = {seat.id: seat for seat in result.scalars().all()}

        missing = [str(seat_id) for seat_id in seat_ids if seat_id not in by_id]
        if missing:
            raise NotFoundError(
                f"Seats not found: {', '.join(missing)}",
                data={"missing_seat_ids": missing},
            )
        return [by_id[seat_id] for seat_id in seat_ids]

    def ensure_in_hall(self, seats: Iterable[Seat], hall_id: uuid.UUID) -> None:
        """Reject seats that belong to another hall or cannot be sold."""
        wrong_hall = [seat.seat_identifier for seat in seats if seat.hall_id != hall_id]
        if wrong_hall:
            raise PolicyError(
                f"Seats do not belong to the showtime's hall: {', '.join(wrong_hall)}"
            )

        unsellable = [
            seat.seat_identifier for seat in seats if seat.status in UNSELLABLE_SEAT_STATUSES
        ]
        if unsellable:
            raise PolicyError(f"The following seats are not available: {', '.join(unsellable)}")

    async def find_conflicts(
        self,
        showtime_id: uuid.UUID,
        seat_ids: Iterable[uuid.UUID],
        exclude_booking_id: uuid.UUID | None = None,
    ) -> set[uuid.UUID]:
        """
        Return the candidate seats already taken by another active booking.

        Active means not soft-deleted and not Cancelled. The booking being
        updated is excluded so it never conflicts with its own seats.
        """
        stmt = select(Booking.seat_ids).where(
            Booking.showtime_id == showtime_id,
            Booking.deleted_at.is_(None),
            Booking.booking_status != BookingStatus.CANCELLED,
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)

        result = await self.db.execute(stmt)
        taken = {uuid.UUID(seat_id) for row in result.scalars().all() for seat_id in row}
        return taken & set(seat_ids)

    async def ensure_available(
        self,
        showtime_id: uuid.UUID,
        seats: Sequence[Seat],
        exclude_booking_id: uuid.UUID | None = None,
    ) -> None:
        """Raise ConflictError naming every seat held by another active booking."""
        conflicts = await self.find_conflicts(
            showtime_id, [seat.id for seat in seats], exclude_booking_id
        )
        if conflicts:
            names = [seat.seat_identifier for seat in seats if seat.id in conflicts]
            raise ConflictError(
                f"The following seats are already booked: {', '.join(names)}",
                data={"conflicting_seats": names},
            )

    async def hold(
        self,
        booking_id: uuid.UUID,
        showtime_id: uuid.UUID,
        seat_ids: Iterable[uuid.UUID],
    ) -> None:
        """
        Insert seat holds for an active booking and flush.

        A concurrent booking that won the race surfaces here as an
        IntegrityError on ``uq_seat_holds_showtime_seat``.
        """
        holds = [
            SeatHold(showtime_id=showtime_id, seat_id=seat_id, booking_id=booking_id)
            for seat_id in seat_ids
        ]
        if not holds:
            return
        self.db.add_all(holds)
        await self.db.flush()

    async def drop_holds(
        self,
        booking_id: uuid.UUID,
        seat_ids: Iterable[uuid.UUID] | None = None,
    ) -> None:
        """Delete a booking's holds (all of them, or only the given seats)."""
        stmt = delete(SeatHold).where(SeatHold.booking_id == booking_id)
        if seat_ids is not None:
            seat_ids = list(seat_ids)
            if not seat_ids:
                return
            stmt = stmt.where(SeatHold.seat_id.in_(seat_ids))
        await self.db.execute(stmt)
        await self.db.flush()

    async def reserve(self, seat_ids: Iterable[uuid.UUID]) -> int:
        """Flip active -> reserved. Seats in any other status are left alone."""
        seat_ids = list(seat_ids)
        if not seat_ids:
            return 0
        result = await self.db.execute(
            update(Seat)
            .where(Seat.id.in_(seat_ids), Seat.status == SeatStatus.ACTIVE)
            .values(status=SeatStatus.RESERVED)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    async def release(self, seat_ids: Iterable[uuid.UUID]) -> int:
        """
        Flip reserved -> active.

        Only seats currently reserved and no longer held by any active
        booking (for any showtime) are flipped; call after dropping holds.
        """
        seat_ids = list(seat_ids)
        if not seat_ids:
            return 0
        still_held = exists().where(SeatHold.seat_id == Seat.id)
        result = await self.db.execute(
            update(Seat)
            .where(
                and_(
                    Seat.id.in_(seat_ids),
                    Seat.status == SeatStatus.RESERVED,
                    ~still_held,
                )
            )
            .values(status=SeatStatus.ACTIVE)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    async def booked_seat_ids(self, showtime_id: uuid.UUID) -> set[uuid.UUID]:
        """Seats held by active bookings for a showtime."""
        result = await self.db.execute(
            select(SeatHold.seat_id).where(SeatHold.showtime_id == showtime_id)
        )
        return set(result.scalars().all())

    async def hall_seats(self, hall_id: uuid.UUID) -> list[Seat]:
        result = await self.db.execute(
            select(Seat)
            .where(Seat.hall_id == hall_id, Seat.deleted_at.is_(None))
            .order_by(Seat.row, Seat.seat_number)
        )
        return list(result.scalars().all())

    async def release_showtime(self, showtime_id: uuid.UUID) -> int:
        """Drop every hold for a showtime and flip the freed seats back to active."""
        result = await self.db.execute(
            select(SeatHold.seat_id).where(SeatHold.showtime_id == showtime_id)
        )
        seat_ids = set(result.scalars().all())
        if not seat_ids:
            return 0
        await self.db.execute(delete(SeatHold).where(SeatHold.showtime_id == showtime_id))
        await self.db.flush()
        released = await self.release(seat_ids)
        logger.info(f"Released {released} seats for showtime {showtime_id}")
        return released
