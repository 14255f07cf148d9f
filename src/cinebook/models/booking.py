"""Booking model: a user's reservation of seats for a showtime."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from cinebook.models.base import Base, SoftDeleteMixin, TimestampMixin, UTCDateTime
from cinebook.models.enums import (
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    enum_column,
)
from cinebook.utils.time import utcnow

if TYPE_CHECKING:
    from cinebook.models.showtime import Showtime
    from cinebook.models.user import User


class Booking(Base, TimestampMixin, SoftDeleteMixin):
    """
    Booking record.

    ``seat_ids`` keeps the ordered list of booked seats for the lifetime of
    the record (also after cancellation). The seats an *active* booking
    currently occupies are mirrored in ``seat_holds``, which carries the
    unique (showtime, seat) constraint.
    """

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    reference_code: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, index=True
    )

    # Foreign keys
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    showtime_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("showtimes.id"),
        nullable=False,
        index=True,
    )

    # Seats
    seat_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    seat_count: Mapped[int] = mapped_column(nullable=False, default=0)

    # Payment
    total_price: Mapped[float] = mapped_column(Float, nullable=False)
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        enum_column(PaymentMethod), nullable=True
    )
    payment_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        enum_column(PaymentStatus), nullable=False, default=PaymentStatus.PENDING, index=True
    )

    booking_status: Mapped[BookingStatus] = mapped_column(
        enum_column(BookingStatus), nullable=False, default=BookingStatus.CONFIRMED, index=True
    )
    booking_date: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, index=True
    )
    expired_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    noted: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Relationships
    user: Mapped["User"] = relationship()
    showtime: Mapped["Showtime"] = relationship()

    @validates("seat_ids")
    def _sync_seat_count(self, key: str, value: list) -> list[str]:
        seat_ids = [str(seat_id) for seat_id in value]
        self.seat_count = len(seat_ids)
        return seat_ids

    @property
    def seat_uuids(self) -> list[uuid.UUID]:
        return [uuid.UUID(seat_id) for seat_id in self.seat_ids]

    @property
    def is_active(self) -> bool:
        """Active bookings hold their seats: not deleted and not cancelled."""
        return not self.is_deleted and self.booking_status != BookingStatus.CANCELLED

    def is_abandoned(self, now: datetime) -> bool:
        """Confirmed but unpaid past its expiry deadline."""
        return (
            self.booking_status == BookingStatus.CONFIRMED
            and self.payment_status == PaymentStatus.PENDING
            and self.expired_at is not None
            and self.expired_at < now
        )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, reference_code={self.reference_code!r}, "
            f"booking_status={self.booking_status})>"
        )
