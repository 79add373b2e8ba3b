"""Worker manager for coordinating background jobs."""

import asyncio
import logging
from typing import Any, Dict

from ..core.config import settings
from .base import BaseWorker
from .booking_completion_worker import BookingCompletionWorker
from .idempotency_cleanup_worker import IdempotencyCleanupWorker

logger = logging.getLogger(__name__)


class WorkerManager:
    """Starts, stops and reports on the application's background workers."""

    def __init__(self):
        self.workers: Dict[str, BaseWorker] = {
            "booking_completion": BookingCompletionWorker(
                interval_seconds=settings.booking_completion_interval_seconds
            ),
            "idempotency_cleanup": IdempotencyCleanupWorker(
                interval_seconds=settings.idempotency_cleanup_interval_seconds
            ),
        }
        logger.info(f"Initialized {len(self.workers)} workers")

    async def start_all(self) -> None:
        """Start all workers; a worker that fails to start is logged and skipped."""
        for name, worker in self.workers.items():
            try:
                await worker.start()
            except Exception as e:
                logger.error(f"Failed to start worker {name}: {e!s}", exc_info=True)

        logger.info(f"Started {len(self.workers)} workers")

    async def stop_all(self) -> None:
        """Stop all workers gracefully."""
        names = list(self.workers)
        results = await asyncio.gather(
            *(self.workers[name].stop() for name in names), return_exceptions=True
        )

        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logger.error(f"Error stopping worker {name}: {result!s}")

        logger.info("All workers stopped")

    def get_worker(self, name: str) -> BaseWorker:
        """
        Get a worker by name.

        Raises:
            KeyError: If no worker has that name
        """
        return self.workers[name]

    def get_worker_status(self) -> Dict[str, Dict[str, Any]]:
        """Status of every worker keyed by name."""
        return {name: worker.status() for name, worker in self.workers.items()}


# Global worker manager instance
worker_manager = WorkerManager()
