"""Base worker class for periodic background jobs."""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)


class BaseWorker(ABC):
    """
    Abstract base class for background workers.

    Runs ``process`` every ``interval_seconds`` until stopped and keeps a
    small record of the last iteration for the status endpoints.
    """

    def __init__(self, name: str, interval_seconds: int = 60):
        """
        Initialize the worker.

        Args:
            name: Worker name for logging
            interval_seconds: How often to run the job
        """
        self.name = name
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self.iterations = 0
        self.last_run_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @abstractmethod
    async def process(self) -> None:
        """Process one iteration of the job."""

    @property
    def running(self) -> bool:
        return self._running

    def status(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "interval_seconds": self.interval_seconds,
            "iterations": self.iterations,
            "last_run_at": self.last_run_at.isoformat() + "Z" if self.last_run_at else None,
            "last_error": self.last_error,
        }

    async def run_once(self) -> float:
        """
        Run a single iteration and record its outcome.

        Returns:
            Duration of the iteration in seconds
        """
        start_time = datetime.utcnow()
        try:
            await self.process()
            self.last_error = None
        except Exception as e:
            self.last_error = str(e)
            raise
        finally:
            self.iterations += 1
            self.last_run_at = datetime.utcnow()

        duration = (self.last_run_at - start_time).total_seconds()
        logger.debug(
            f"{self.name} worker iteration completed",
            extra={"duration_seconds": duration, "worker": self.name}
        )
        return duration

    async def start(self) -> None:
        """Start the worker loop."""
        if self._running:
            logger.warning(f"{self.name} worker is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"{self.name} worker started with {self.interval_seconds}s interval")

    async def stop(self) -> None:
        """Stop the worker and wait for the loop to exit."""
        if not self._running:
            logger.warning(f"{self.name} worker is not running")
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info(f"{self.name} worker stopped")

    async def _run(self) -> None:
        while self._running:
            try:
                duration = await self.run_once()
                await asyncio.sleep(max(0, self.interval_seconds - duration))

            except asyncio.CancelledError:
                logger.info(f"{self.name} worker loop cancelled")
                break
            except Exception as e:
                logger.error(
                    f"{self.name} worker error: {e!s}",
                    exc_info=True,
                    extra={"worker": self.name}
                )
                # Back off a full interval before retrying
                await asyncio.sleep(self.interval_seconds)
