"""Background worker for purging expired idempotency records."""

import logging

from ..core.database import async_session_factory
from ..services.idempotency_service import IdempotencyService
from .base import BaseWorker

logger = logging.getLogger(__name__)


class IdempotencyCleanupWorker(BaseWorker):
    """Deletes idempotency records whose replay window has passed."""

    def __init__(self, interval_seconds: int = 900):
        super().__init__(name="IdempotencyCleanup", interval_seconds=interval_seconds)

    async def process(self) -> None:
        async with async_session_factory() as db:
            try:
                deleted_count = await IdempotencyService(db).cleanup_expired_records()

                if deleted_count > 0:
                    logger.info(
                        f"Purged {deleted_count} idempotency records",
                        extra={"deleted_count": deleted_count, "worker": self.name}
                    )

            except Exception as e:
                await db.rollback()
                logger.error(
                    f"Error purging idempotency records: {e!s}",
                    exc_info=True,
                    extra={"worker": self.name}
                )
                raise
