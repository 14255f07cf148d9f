"""Seat hold model: which active booking occupies a seat for a showtime."""

import uuid

from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cinebook.models.base import Base, TimestampMixin


class SeatHold(Base, TimestampMixin):
    """
    One row per (showtime, seat) taken by an active booking.

    The unique constraint is what ultimately prevents two concurrent
    requests from selling the same seat twice.
    """

    __tablename__ = "seat_holds"
    __table_args__ = (
        UniqueConstraint("showtime_id", "seat_id", name="uq_seat_holds_showtime_seat"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    showtime_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("showtimes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    seat_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("seats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<SeatHold(showtime_id={self.showtime_id}, seat_id={self.seat_id}, "
            f"booking_id={self.booking_id})>"
        )
