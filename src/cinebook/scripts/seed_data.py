"""Seed script to populate demo users, movies, halls, seats and showtimes."""

import asyncio
from datetime import datetime, time, timedelta, timezone

from sqlalchemy import select

from cinebook.database import AsyncSessionLocal
from cinebook.models import Hall, Movie, Seat, Showtime, User
from cinebook.models.enums import SeatType, UserRole

USERS = [
    {"username": "admin", "email": "admin@cinebook.local", "role": UserRole.ADMIN},
    {"username": "sokha", "email": "sokha@example.com", "phone": "+85512345678"},
    {"username": "dara", "email": "dara@example.com", "phone": "+85598765432"},
]

MOVIES = [
    {"title": "The Long Night", "duration_minutes": 128},
    {"title": "Paper Moons", "duration_minutes": 97},
]

HALLS = [
    {"hall_name": "Hall 1", "screen_type": "standard", "rows": "ABCDEF", "per_row": 10},
    {"hall_name": "Hall 2", "screen_type": "imax", "rows": "ABCD", "per_row": 8},
]

SEAT_PRICES = {SeatType.REGULAR: 5.0, SeatType.VIP: 8.0, SeatType.COUPLE: 12.0}


def seat_type_for(row: str, rows: str) -> SeatType:
    if row == rows[-1]:
        return SeatType.COUPLE
    if row in rows[-3:-1]:
        return SeatType.VIP
    return SeatType.REGULAR


async def seed() -> None:
    """Seed the database; records that already exist are skipped."""
    async with AsyncSessionLocal() as session:
        for user_data in USERS:
            existing = await session.scalar(
                select(User).where(User.username == user_data["username"])
            )
            if existing:
                print(f"User {user_data['username']} already exists, skipping")
                continue
            session.add(User(**user_data))
            print(f"Added user: {user_data['username']}")

        movies = []
        for movie_data in MOVIES:
            movie = await session.scalar(select(Movie).where(Movie.title == movie_data["title"]))
            if movie is None:
                movie = Movie(**movie_data)
                session.add(movie)
                print(f"Added movie: {movie_data['title']}")
            movies.append(movie)

        halls = []
        for hall_data in HALLS:
            hall = await session.scalar(select(Hall).where(Hall.hall_name == hall_data["hall_name"]))
            if hall is None:
                hall = Hall(hall_name=hall_data["hall_name"], screen_type=hall_data["screen_type"])
                session.add(hall)
                await session.flush()
                rows = hall_data["rows"]
                for row in rows:
                    seat_type = seat_type_for(row, rows)
                    for number in range(1, hall_data["per_row"] + 1):
                        session.add(
                            Seat(
                                hall_id=hall.id,
                                row=row,
                                seat_number=str(number),
                                seat_type=seat_type,
                                price=SEAT_PRICES[seat_type],
                            )
                        )
                print(f"Added hall: {hall_data['hall_name']} ({len(rows) * hall_data['per_row']} seats)")
            halls.append(hall)
        await session.flush()

        # Two screenings a day for the next three days, one film per hall
        tomorrow = datetime.now(timezone.utc).date() + timedelta(days=1)
        created = 0
        for day in range(3):
            show_date = tomorrow + timedelta(days=day)
            for hall, movie in zip(halls, movies):
                for start in (time(14, 0), time(19, 30)):
                    start_time = datetime.combine(show_date, start, tzinfo=timezone.utc)
                    existing = await session.scalar(
                        select(Showtime).where(
                            Showtime.hall_id == hall.id,
                            Showtime.start_time == start_time,
                        )
                    )
                    if existing:
                        continue
                    session.add(
                        Showtime(
                            movie_id=movie.id,
                            hall_id=hall.id,
                            start_time=start_time,
                            end_time=start_time + timedelta(minutes=movie.duration_minutes or 120),
                        )
                    )
                    created += 1
        print(f"Added {created} showtimes")

        await session.commit()
        print("Seed complete")


if __name__ == "__main__":
    asyncio.run(seed())
