"""Unit tests for the error envelope helpers."""

import json

from cinebook.api.errors import booking_error_handler, describe_validation_errors
from cinebook.exceptions import ConflictError, NotFoundError


async def test_booking_error_maps_to_status_and_envelope() -> None:
    response = await booking_error_handler(
        None, ConflictError("Seat taken", data={"conflicting_seats": ["A2"]})
    )

    assert response.status_code == 409
    assert json.loads(response.body) == {
        "success": False,
        "message": "Seat taken",
        "data": {"conflicting_seats": ["A2"]},
    }


async def test_not_found_has_no_data() -> None:
    response = await booking_error_handler(None, NotFoundError("Booking not found"))

    assert response.status_code == 404
    assert json.loads(response.body)["data"] is None


def test_validation_errors_are_flattened() -> None:
    message = describe_validation_errors(
        [
            {"loc": ("body", "seat_ids"), "msg": "List should have at least 1 item"},
            {"loc": ("path", "booking_id"), "msg": "Input should be a valid UUID"},
        ]
    )

    assert message == (
        "seat_ids: List should have at least 1 item; "
        "path.booking_id: Input should be a valid UUID"
    )


def test_empty_validation_errors() -> None:
    assert describe_validation_errors([]) == "Invalid request"
