"""Outbound customer notifications."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    """Anything that can deliver a one-time password email."""

    async def send_otp(self, email: str, name: str, otp: str, purpose: str) -> None:
        ...


class LoggingEmailSender:
    """Records OTP deliveries in the log instead of sending mail."""

    async def send_otp(self, email: str, name: str, otp: str, purpose: str) -> None:
        # The code itself is never logged
        logger.info("OTP email queued", extra={"email": email, "purpose": purpose, "otp_length": len(otp)})


_default_sender = LoggingEmailSender()


def get_email_sender() -> EmailSender:
    """FastAPI dependency returning the configured email sender."""
    return _default_sender
