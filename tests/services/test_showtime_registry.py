"""Workflow tests for the showtime registry."""

import uuid
from datetime import timedelta

import pytest

from cinebook.exceptions import ConflictError, NotFoundError, ValidationError
from cinebook.models import Showtime
from cinebook.models.enums import BookingStatus, PaymentMethod, SeatStatus, ShowtimeStatus
from cinebook.schemas import (
    BookingCreate,
    BookingUpdate,
    ShowtimeCreate,
    ShowtimeFilters,
    ShowtimeUpdate,
)
from cinebook.services.booking_ledger import BookingLedger
from cinebook.services.seat_inventory import SeatInventory
from cinebook.services.showtime_registry import ShowtimeRegistry
from cinebook.utils.time import utcnow


async def book(db, world, seats=("A1", "A2"), method=PaymentMethod.CARD):
    return await BookingLedger(db).create(
        BookingCreate(
            user_id=world.user.id,
            showtime_id=world.showtime.id,
            seat_ids=[world.seats[name].id for name in seats],
            total_price=5.0 * len(seats),
            payment_method=method,
        )
    )


def window(world, start_offset_minutes: int, minutes: int = 120) -> ShowtimeCreate:
    """A showtime in the main hall, offset from the existing one."""
    start = world.showtime.start_time + timedelta(minutes=start_offset_minutes)
    return ShowtimeCreate(
        movie_id=world.movie.id,
        hall_id=world.hall.id,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
    )


async def test_create_rejects_overlapping_window(db, world) -> None:
    # Starts an hour before the existing showtime, ends an hour into it
    with pytest.raises(ConflictError, match="overlaps") as exc_info:
        await ShowtimeRegistry(db).create(window(world, -60))

    overlapping = exc_info.value.data["overlapping_showtimes"]
    assert [item["id"] for item in overlapping] == [str(world.showtime.id)]


async def test_create_allows_back_to_back_window(db, world) -> None:
    showtime = await ShowtimeRegistry(db).create(window(world, 120, minutes=90))

    assert showtime.start_time == world.showtime.end_time
    assert showtime.status == ShowtimeStatus.SCHEDULED


async def test_create_allows_same_window_in_another_hall(db, world) -> None:
    data = window(world, 0)
    data.hall_id = world.other_hall.id

    showtime = await ShowtimeRegistry(db).create(data)

    assert showtime.hall_id == world.other_hall.id


async def test_cancelled_and_deleted_showtimes_do_not_block(db, world) -> None:
    registry = ShowtimeRegistry(db)
    world.showtime.status = ShowtimeStatus.CANCELLED
    world.later_showtime.soft_delete()
    await db.flush()

    assert await registry.find_overlapping(
        world.hall.id, world.showtime.start_time, world.showtime.end_time
    ) == []
    assert await registry.find_overlapping(
        world.hall.id, world.later_showtime.start_time, world.later_showtime.end_time
    ) == []


async def test_create_requires_existing_movie(db, world) -> None:
    data = window(world, 600)
    data.movie_id = uuid.uuid4()

    with pytest.raises(NotFoundError, match="Movie"):
        await ShowtimeRegistry(db).create(data)


async def test_update_into_overlap_is_rejected(db, world) -> None:
    registry = ShowtimeRegistry(db)

    with pytest.raises(ConflictError):
        await registry.update(
            world.later_showtime.id,
            ShowtimeUpdate(
                start_time=world.showtime.start_time + timedelta(minutes=30),
                end_time=world.showtime.start_time + timedelta(minutes=150),
            ),
        )


async def test_update_does_not_conflict_with_itself(db, world) -> None:
    updated = await ShowtimeRegistry(db).update(
        world.showtime.id,
        ShowtimeUpdate(end_time=world.showtime.end_time + timedelta(minutes=10), language="Khmer"),
    )

    assert updated.language == "Khmer"
    assert updated.end_time - updated.start_time == timedelta(minutes=130)


async def test_update_rejects_inverted_window(db, world) -> None:
    with pytest.raises(ValidationError):
        await ShowtimeRegistry(db).update(
            world.showtime.id,
            ShowtimeUpdate(end_time=world.showtime.start_time - timedelta(minutes=1)),
        )


async def test_soft_delete_twice_is_conflict(db, world) -> None:
    registry = ShowtimeRegistry(db)
    await registry.soft_delete(world.showtime.id)

    with pytest.raises(ConflictError, match="already"):
        await registry.soft_delete(world.showtime.id)


async def test_restore_rejected_when_slot_was_taken(db, world) -> None:
    registry = ShowtimeRegistry(db)
    await registry.soft_delete(world.showtime.id)
    await registry.create(window(world, 30))

    with pytest.raises(ConflictError, match="Cannot restore"):
        await registry.restore(world.showtime.id)


async def test_restore_clears_deleted_marker(db, world) -> None:
    registry = ShowtimeRegistry(db)
    await registry.soft_delete(world.showtime.id)

    restored = await registry.restore(world.showtime.id)

    assert not restored.is_deleted
    with pytest.raises(NotFoundError):
        await registry.restore(world.showtime.id)


async def test_list_filters_by_hall_and_date(db, world) -> None:
    registry = ShowtimeRegistry(db)

    same_day = await registry.list_showtimes(
        ShowtimeFilters(hall_id=world.hall.id, show_date=world.showtime.show_date)
    )
    other_hall = await registry.list_showtimes(ShowtimeFilters(hall_id=world.other_hall.id))

    assert [s.id for s in same_day] == [world.showtime.id]
    assert other_hall == []


async def test_complete_finished_releases_seats(db, world) -> None:
    start = utcnow() + timedelta(minutes=30)
    showtime = Showtime(
        movie_id=world.movie.id,
        hall_id=world.other_hall.id,
        start_time=start,
        end_time=start + timedelta(minutes=90),
    )
    db.add(showtime)
    await db.flush()
    await BookingLedger(db).create(
        BookingCreate(
            user_id=world.user.id,
            showtime_id=showtime.id,
            seat_ids=[world.seats["C1"].id],
            total_price=5.0,
            payment_method=PaymentMethod.CASH,
        )
    )

    completed = await ShowtimeRegistry(db).complete_finished(now=start + timedelta(hours=2))

    assert completed == [showtime.id]
    assert showtime.status == ShowtimeStatus.COMPLETED
    assert await SeatInventory(db).booked_seat_ids(showtime.id) == set()
    await db.refresh(world.seats["C1"])
    assert world.seats["C1"].status == SeatStatus.ACTIVE


# ---------------------------------------------------------------------------
# Showtimes with bookings
# ---------------------------------------------------------------------------


async def test_booked_showtime_cannot_move_to_another_hall(db, world) -> None:
    await book(db, world)

    with pytest.raises(ConflictError, match="another hall") as exc_info:
        await ShowtimeRegistry(db).update(
            world.showtime.id, ShowtimeUpdate(hall_id=world.other_hall.id)
        )

    assert exc_info.value.data == {"active_bookings": 1}
    assert world.showtime.hall_id == world.hall.id


async def test_hall_change_allowed_once_bookings_are_cancelled(db, world) -> None:
    booking = await book(db, world)
    await BookingLedger(db).cancel(booking.id)

    updated = await ShowtimeRegistry(db).update(
        world.showtime.id, ShowtimeUpdate(hall_id=world.other_hall.id)
    )

    assert updated.hall_id == world.other_hall.id


async def test_rescheduling_moves_payment_deadlines(db, world) -> None:
    card = await book(db, world, seats=("A1",))
    cash = await book(db, world, seats=("A2",), method=PaymentMethod.CASH)
    new_start = world.showtime.start_time + timedelta(hours=5)

    await ShowtimeRegistry(db).update(
        world.showtime.id,
        ShowtimeUpdate(start_time=new_start, end_time=new_start + timedelta(hours=2)),
    )

    assert card.expired_at == new_start - timedelta(minutes=15)
    assert cash.expired_at is None
    assert await SeatInventory(db).booked_seat_ids(world.showtime.id) == {
        world.seats["A1"].id,
        world.seats["A2"].id,
    }


async def test_booked_showtime_cannot_be_cancelled_or_deactivated(db, world) -> None:
    registry = ShowtimeRegistry(db)
    await book(db, world)

    with pytest.raises(ConflictError, match="Cannot cancel showtime"):
        await registry.update(world.showtime.id, ShowtimeUpdate(status=ShowtimeStatus.CANCELLED))
    with pytest.raises(ConflictError, match="Cannot deactivate showtime"):
        await registry.soft_delete(world.showtime.id)

    assert world.showtime.status == ShowtimeStatus.SCHEDULED
    assert not world.showtime.is_deleted


async def test_deactivate_after_bookings_are_cancelled(db, world) -> None:
    booking = await book(db, world)
    await BookingLedger(db).update(
        booking.id, BookingUpdate(booking_status=BookingStatus.CANCELLED)
    )

    deleted = await ShowtimeRegistry(db).soft_delete(world.showtime.id)

    assert deleted.is_deleted


async def test_marking_showtime_completed_releases_seats(db, world) -> None:
    await book(db, world, seats=("A1",))

    await ShowtimeRegistry(db).update(
        world.showtime.id, ShowtimeUpdate(status=ShowtimeStatus.COMPLETED)
    )

    assert await SeatInventory(db).booked_seat_ids(world.showtime.id) == set()
    await db.refresh(world.seats["A1"])
    assert world.seats["A1"].status == SeatStatus.ACTIVE
