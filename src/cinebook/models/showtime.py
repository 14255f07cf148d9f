"""Showtime model for scheduled screenings."""

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cinebook.models.base import Base, SoftDeleteMixin, TimestampMixin, UTCDateTime
from cinebook.models.enums import ShowtimeStatus, enum_column

if TYPE_CHECKING:
    from cinebook.models.hall import Hall
    from cinebook.models.movie import Movie


class Showtime(Base, TimestampMixin, SoftDeleteMixin):
    """
    Scheduled screening of a movie in a hall over [start_time, end_time).

    Non-deleted, non-cancelled showtimes in the same hall never overlap;
    the registry service checks this on create, update and restore.
    """

    __tablename__ = "showtimes"
    __table_args__ = (
        Index("ix_showtimes_hall_start", "hall_id", "start_time"),
        Index("ix_showtimes_movie_start", "movie_id", "start_time"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    movie_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("movies.id", ondelete="CASCADE"),
        nullable=False,
    )
    hall_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("halls.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    status: Mapped[ShowtimeStatus] = mapped_column(
        enum_column(ShowtimeStatus), nullable=False, default=ShowtimeStatus.SCHEDULED
    )
    language: Mapped[str] = mapped_column(String(50), nullable=False, default="Original")
    subtitle: Mapped[str] = mapped_column(String(50), nullable=False, default="Original")

    # Relationships
    movie: Mapped["Movie"] = relationship()
    hall: Mapped["Hall"] = relationship()

    @property
    def show_date(self) -> date:
        return self.start_time.date()

    def __repr__(self) -> str:
        return (
            f"<Showtime(id={self.id}, hall_id={self.hall_id}, "
            f"start_time={self.start_time}, status={self.status})>"
        )
