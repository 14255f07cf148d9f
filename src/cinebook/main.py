"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cinebook.admin.app import setup_admin
from cinebook.api.errors import register_exception_handlers
from cinebook.api.routes import bookings, health, showtimes
from cinebook.config import settings
from cinebook.tasks.sweeps import run_expiry_sweep, run_showtime_sweep

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def build_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_expiry_sweep,
        trigger=IntervalTrigger(minutes=settings.expiry_sweep_interval_minutes),
        id="booking_expiry_sweep",
        name="Cancel abandoned bookings",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        run_showtime_sweep,
        trigger=IntervalTrigger(minutes=settings.showtime_sweep_interval_minutes),
        id="showtime_completion_sweep",
        name="Complete finished showtimes",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.enable_scheduler:
        scheduler = build_scheduler()
        scheduler.start()
        logger.info(
            f"Scheduler started: expiry sweep every {settings.expiry_sweep_interval_minutes} min, "
            f"showtime sweep every {settings.showtime_sweep_interval_minutes} min"
        )
    else:
        logger.info("Scheduler disabled")

    yield

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")


# Create FastAPI app
app = FastAPI(
    title="CineBook API",
    description="Cinema booking and seat reservation backend",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(health.router)
app.include_router(bookings.router, prefix="/api", tags=["bookings"])
app.include_router(showtimes.router, prefix="/api", tags=["showtimes"])

setup_admin(app)
