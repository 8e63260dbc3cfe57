import asyncio
import logging
from typing import Callable

from sqlalchemy.orm import Session, sessionmaker

from . import discount_lifecycle

logger = logging.getLogger("discount_scheduler")


class DiscountExpiryScheduler:
    """
    Runs the discount expiry sweep periodically in the background.

    Owned by the application lifespan: nothing is scheduled until start()
    is called, and stop() cancels the loop and waits for it to finish.
    """

    def __init__(
            self,
            session_factory: sessionmaker,
            interval_seconds: int = 3600,
            on_sweep: Callable[[int], None] | None = None,
    ):
        self._session_factory = session_factory
        self._interval_seconds = interval_seconds
        # Called with the number of deactivated discounts after each sweep
        self._on_sweep = on_sweep
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _sweep(self) -> int:
        db: Session = self._session_factory()
        try:
            return discount_lifecycle.sweep_expired(db)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    async def run_once(self) -> int:
        """Runs a single sweep in a worker thread and returns how many discounts it expired."""
        deactivated = await asyncio.to_thread(self._sweep)
        if deactivated and self._on_sweep is not None:
            # The callback may block on Redis, keep it off the event loop
            await asyncio.to_thread(self._on_sweep, deactivated)
        return deactivated

    async def _run(self):
        while True:
            logger.info("Scheduler waking up to expire discounts...")
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in discount scheduler loop: {e}")

            await asyncio.sleep(self._interval_seconds)

    def start(self) -> None:
        if self.running:
            logger.warning("Discount scheduler already running.")
            return
        logger.info(f"Starting discount scheduler (every {self._interval_seconds}s).")
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            logger.info("Discount scheduler task successfully cancelled.")
        except Exception as e:
            logger.error(f"Error during discount scheduler shutdown: {e}")
        finally:
            self._task = None
