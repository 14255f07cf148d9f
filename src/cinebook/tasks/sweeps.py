"""Scheduled sweeps: expire abandoned bookings and complete finished showtimes."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cinebook.database import AsyncSessionLocal
from cinebook.services.booking_ledger import BookingLedger
from cinebook.services.showtime_registry import ShowtimeRegistry

logger = logging.getLogger(__name__)


async def run_expiry_sweep(
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
) -> int:
    """Cancel every confirmed, unpaid booking whose payment deadline has passed.

    Creates its own DB session so it can be called from the scheduler
    or the admin tools page without depending on a request context.

    Returns:
        Number of bookings cancelled
    """
    async with session_factory() as db:
        try:
            cancelled = await BookingLedger(db).cancel_expired()
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"Expiry sweep failed: {e}", exc_info=True)
            return 0

    if cancelled:
        logger.info(f"Expiry sweep cancelled {len(cancelled)} bookings")
    else:
        logger.debug("Expiry sweep found no abandoned bookings")
    return len(cancelled)


async def run_showtime_sweep(
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
) -> int:
    """Mark ended showtimes completed and free the seats they held.

    Returns:
        Number of showtimes completed
    """
    async with session_factory() as db:
        try:
            completed = await ShowtimeRegistry(db).complete_finished()
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"Showtime sweep failed: {e}", exc_info=True)
            return 0

    if completed:
        logger.info(f"Showtime sweep completed {len(completed)} showtimes")
    return len(completed)
