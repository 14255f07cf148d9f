"""Customer-facing booking reference codes."""

import logging
import secrets
import string

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cinebook.config import settings
from cinebook.models import Booking

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_uppercase + string.digits


class ReferenceCodeExhaustedError(RuntimeError):
    """No unused code was found within the allowed number of attempts."""


def random_code(length: int) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


async def generate_reference_code(
    db: AsyncSession,
    length: int | None = None,
    max_attempts: int | None = None,
) -> str:
    """
    Generate a reference code not used by any booking, deleted ones included.

    The unique index on ``bookings.reference_code`` still backs this up;
    the booking ledger retries when it trips at flush time.

    Args:
        db: Database session
        length: Code length (default: settings.reference_code_length)
        max_attempts: Attempts before giving up (default: settings)

    Returns:
        An unused upper-case alphanumeric code
    """
    length = length or settings.reference_code_length
    max_attempts = max_attempts or settings.reference_code_max_attempts

    for attempt in range(1, max_attempts + 1):
        code = random_code(length)
        existing = await db.scalar(select(Booking.id).where(Booking.reference_code == code))
        if existing is None:
            return code
        logger.debug(f"Reference code collision on attempt {attempt}: {code}")

    raise ReferenceCodeExhaustedError(
        f"Could not generate a unique reference code after {max_attempts} attempts"
    )
