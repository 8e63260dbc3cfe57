import logging
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI

from . import models, cache
from .database import engine, SessionLocal, get_redis_client
from .discount_scheduler import DiscountExpiryScheduler
from .exceptions import BookingServiceError, booking_service_error_handler
from .routers import booking_router, discount_router, hotel_router, room_router

import redis.asyncio as redis
from fastapi_limiter import FastAPILimiter
from .config import settings

# Setup logger
logger = logging.getLogger("booking_service")

# Create database tables on startup
models.Base.metadata.create_all(bind=engine)


def _invalidate_discount_cache(deactivated: int) -> None:
    logger.info(f"{deactivated} discounts expired, invalidating discount cache.")
    cache.invalidate_discount(get_redis_client())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logger.info("Starting background tasks...")

    redis_client = None
    if settings.RATE_LIMIT_ENABLED:
        try:
            redis_client = redis.from_url(settings.REDIS_URL, encoding="utf-8")
            await FastAPILimiter.init(redis_client)
            logger.info("FastAPILimiter initialized with Redis.")
        except Exception as e:
            logger.error(f"Failed to initialize FastAPILimiter: {e}")

    # The scheduler belongs to this app instance, nothing runs on import
    scheduler = DiscountExpiryScheduler(
        SessionLocal,
        interval_seconds=settings.DISCOUNT_SWEEP_INTERVAL_SECONDS,
        on_sweep=_invalidate_discount_cache,
    )
    scheduler.start()
    app.state.discount_scheduler = scheduler

    yield  # The application is now running

    logger.info("Shutting down background tasks...")
    await scheduler.stop()

    if redis_client is not None:
        await redis_client.aclose()


app = FastAPI(
    title="Hotel Booking API",
    description="Hotels, rooms, discounts and bookings with computed prices.",
    version="1.0.0",
    lifespan=lifespan
)

app.add_exception_handler(BookingServiceError, booking_service_error_handler)

app.include_router(hotel_router.router)
app.include_router(room_router.router)
app.include_router(discount_router.router)
app.include_router(booking_router.router)


@app.get("/")
def read_root():
    return {"message": "Welcome to the Hotel Booking Service"}
