"""Background worker for closing out past bookings."""

import logging
from datetime import datetime

from ..core.database import async_session_factory
from ..services.booking_service import BookingService
from .base import BaseWorker

logger = logging.getLogger(__name__)


class BookingCompletionWorker(BaseWorker):
    """
    Background worker that completes bookings whose trip has happened.

    Confirmed bookings with a travel date before today move to COMPLETED,
    which makes them eligible for reviews.
    """

    def __init__(self, interval_seconds: int = 3600, batch_size: int = 100):
        """
        Initialize the booking completion worker.

        Args:
            interval_seconds: How often to look for past bookings (default: 1h)
            batch_size: Maximum bookings completed per iteration
        """
        super().__init__(name="BookingCompletion", interval_seconds=interval_seconds)
        self.batch_size = batch_size

    async def process(self) -> None:
        """Complete past confirmed bookings."""
        async with async_session_factory() as db:
            try:
                today = datetime.utcnow().date()
                booking_service = BookingService(db)

                completed_count = await booking_service.complete_past_bookings(today, self.batch_size)

                if completed_count > 0:
                    logger.info(
                        f"Completed {completed_count} bookings",
                        extra={
                            "completed_count": completed_count,
                            "date": today.isoformat(),
                            "worker": self.name,
                        }
                    )

            except Exception as e:
                await db.rollback()
                logger.error(
                    f"Error completing bookings: {e!s}",
                    exc_info=True,
                    extra={"worker": self.name}
                )
                raise
