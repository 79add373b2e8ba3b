"""Background workers for the adventure booking system."""

from .booking_completion_worker import BookingCompletionWorker
from .idempotency_cleanup_worker import IdempotencyCleanupWorker

__all__ = ["BookingCompletionWorker", "IdempotencyCleanupWorker"]
