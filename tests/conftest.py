"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import AsyncIterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cinebook.api.errors import register_exception_handlers
from cinebook.api.routes import bookings, health, showtimes
from cinebook.database import get_db
from cinebook.models import Base, Hall, Movie, Seat, Showtime, User
from cinebook.models.enums import SeatStatus, UserRole
from cinebook.utils.time import utcnow


@dataclass
class World:
    """Reference data most workflow tests start from."""

    user: User
    other_user: User
    admin: User
    movie: Movie
    hall: Hall
    other_hall: Hall
    seats: dict[str, Seat] = field(default_factory=dict)
    showtime: Showtime | None = None
    later_showtime: Showtime | None = None


@pytest.fixture
async def engine():
    """In-memory SQLite engine shared by every session in a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Let SQLAlchemy own BEGIN so SAVEPOINTs behave as on PostgreSQL
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


def make_showtime(movie: Movie, hall: Hall, start: datetime, minutes: int = 120) -> Showtime:
    return Showtime(
        movie_id=movie.id,
        hall_id=hall.id,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
    )


@pytest.fixture
async def world(db: AsyncSession) -> World:
    """
    Two halls and two showtimes in the main hall, one tomorrow and one the
    day after.

    Main hall seats: A1-A4 and B1-B2 (B2 is under maintenance).
    Other hall seat: C1.
    """
    user = User(username="sokha", email="sokha@example.com")
    other_user = User(username="dara", email="dara@example.com")
    admin = User(username="admin", email="admin@example.com", role=UserRole.ADMIN)
    movie = Movie(title="The Long Night", duration_minutes=120)
    hall = Hall(hall_name="Hall 1")
    other_hall = Hall(hall_name="Hall 2")
    db.add_all([user, other_user, admin, movie, hall, other_hall])
    await db.flush()

    seats = {}
    for row, number in [("A", "1"), ("A", "2"), ("A", "3"), ("A", "4"), ("B", "1"), ("B", "2")]:
        seats[f"{row}{number}"] = Seat(hall_id=hall.id, row=row, seat_number=number, price=5.0)
    seats["B2"].status = SeatStatus.MAINTENANCE
    seats["C1"] = Seat(hall_id=other_hall.id, row="C", seat_number="1", price=5.0)
    db.add_all(seats.values())

    tomorrow = utcnow().replace(microsecond=0) + timedelta(days=1)
    showtime = make_showtime(movie, hall, tomorrow)
    later_showtime = make_showtime(movie, hall, tomorrow + timedelta(days=1))
    db.add_all([showtime, later_showtime])
    await db.commit()

    return World(
        user=user,
        other_user=other_user,
        admin=admin,
        movie=movie,
        hall=hall,
        other_hall=other_hall,
        seats=seats,
        showtime=showtime,
        later_showtime=later_showtime,
    )


@pytest.fixture
def test_app(session_factory) -> FastAPI:
    """FastAPI app without the scheduler lifespan or admin UI, for API tests."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(health.router)
    app.include_router(bookings.router, prefix="/api")
    app.include_router(showtimes.router, prefix="/api")

    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    return app


@pytest.fixture
async def client(test_app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as c:
        yield c
