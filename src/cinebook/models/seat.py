"""Seat model for the physical seats of a hall."""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Float, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from cinebook.models.base import Base, SoftDeleteMixin, TimestampMixin
from cinebook.models.enums import SeatStatus, SeatType, enum_column

if TYPE_CHECKING:
    from cinebook.models.hall import Hall


class Seat(Base, TimestampMixin, SoftDeleteMixin):
    """
    Physical seat.

    ``status`` is a display hint kept in step with bookings (active <->
    reserved) plus administrative states. Whether a seat is taken for a
    particular showtime is decided by seat holds, not by this column.
    """

    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint("hall_id", "row", "seat_number", name="uq_seats_hall_row_number"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    hall_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("halls.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    row: Mapped[str] = mapped_column(String(5), nullable=False)
    seat_number: Mapped[str] = mapped_column(String(10), nullable=False)
    seat_type: Mapped[SeatType] = mapped_column(
        enum_column(SeatType), nullable=False, default=SeatType.REGULAR
    )
    status: Mapped[SeatStatus] = mapped_column(
        enum_column(SeatStatus), nullable=False, default=SeatStatus.ACTIVE, index=True
    )
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # Relationships
    hall: Mapped["Hall"] = relationship(back_populates="seats")

    @validates("row", "seat_number")
    def _upper(self, key: str, value: str) -> str:
        return str(value).strip().upper()

    @property
    def seat_identifier(self) -> str:
        return f"{self.row}{self.seat_number}"

    def __repr__(self) -> str:
        return f"<Seat(id={self.id}, seat={self.seat_identifier!r}, status={self.status})>"
