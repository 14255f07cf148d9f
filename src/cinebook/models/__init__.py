"""SQLAlchemy ORM models."""

from cinebook.models.base import Base
from cinebook.models.booking import Booking
from cinebook.models.hall import Hall
from cinebook.models.movie import Movie
from cinebook.models.seat import Seat
from cinebook.models.seat_hold import SeatHold
from cinebook.models.showtime import Showtime
from cinebook.models.user import User

__all__ = ["Base", "Booking", "Hall", "Movie", "Seat", "SeatHold", "Showtime", "User"]
