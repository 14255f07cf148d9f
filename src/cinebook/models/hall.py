"""Hall (screen) model."""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cinebook.models.base import Base, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from cinebook.models.seat import Seat


class Hall(Base, TimestampMixin, SoftDeleteMixin):
    """
    Cinema hall.

    Seats belong to exactly one hall; showtimes are scheduled in a hall.
    """

    __tablename__ = "halls"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    hall_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    screen_type: Mapped[str] = mapped_column(String(20), nullable=False, default="standard")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    # Relationships
    seats: Mapped[list["Seat"]] = relationship(back_populates="hall")

    def __repr__(self) -> str:
        return f"<Hall(id={self.id}, hall_name={self.hall_name!r})>"
