"""Payment service driving bookings through the gateway order flow."""

import json
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import PaymentVerificationError, ValidationError
from ..core.observability import metrics_collector
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..models.user import User
from ..schemas.payment import CreateOrderRequest, VerifyPaymentRequest
from .booking_service import BookingService
from .payment_gateway import PaymentGateway, to_paise
from .transaction_service import TransactionService

logger = logging.getLogger(__name__)

_UNPAYABLE_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.REFUNDED})


class PaymentService:
    """Service for order creation, checkout verification and webhooks."""

    def __init__(self, db: AsyncSession, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway
        self.booking_service = BookingService(db)
        self.transactions = TransactionService(db)

    async def create_order(self, request: CreateOrderRequest, user: User) -> dict[str, Any]:
        """
        Create a gateway order for a booking's final amount.

        Raises:
            ValidationError: If the booking is paid, closed or the amount disagrees
        """
        booking = await self.booking_service.get_booking_for_user(request.booking_id, user)

        if booking.payment_status == PaymentStatus.SUCCESS:
            raise ValidationError(detail="Booking is already paid")
        if booking.status in _UNPAYABLE_STATUSES:
            raise ValidationError(detail=f"Cannot pay for a {BookingStatus(booking.status).value.lower()} booking")
        if request.amount is not None and abs(request.amount - booking.final_amount) > 0.01:
            raise ValidationError(
                detail="Amount does not match the booking total",
                errors=[f"Expected amount {booking.final_amount}, got {request.amount}"],
            )

        order = await self.gateway.create_order(
            booking.final_amount,
            receipt=booking.reference,
            notes={"booking_id": booking.reference, "user_id": str(user.id)},
        )

        booking.razorpay_order_id = order["id"]
        await self.transactions.record_order(booking, order)
        await self.db.commit()

        logger.info(
            "Payment order created",
            extra={"booking_id": booking.reference, "order_id": order["id"], "amount": booking.final_amount}
        )

        return {
            "order_id": order["id"],
            "amount": order.get("amount", to_paise(booking.final_amount)),
            "currency": order.get("currency", settings.currency),
            "key_id": self.gateway.key_id,
            "booking_id": booking.reference,
        }

    async def _mark_paid(
        self,
        booking: Booking,
        order_id: str,
        payment_id: str,
        gateway_response: dict[str, Any] | None = None,
    ) -> None:
        await self.booking_service.apply_status(booking, BookingStatus.CONFIRMED, None)
        booking.payment_status = PaymentStatus.SUCCESS
        booking.razorpay_order_id = order_id
        booking.razorpay_payment_id = payment_id
        booking.transaction_id = payment_id
        booking.paid_at = datetime.utcnow()
        booking.failure_reason = None
        await self.transactions.record_payment_captured(booking, payment_id, gateway_response)

    async def verify_payment(self, request: VerifyPaymentRequest, user: User) -> Booking:
        """
        Verify a checkout callback and confirm the booking.

        A booking whose payment already succeeded is returned unchanged.

        Raises:
            PaymentVerificationError: If the signature or order does not match;
                the booking stays PENDING
        """
        booking = await self.booking_service.get_booking_for_user(request.bookingId, user)

        if booking.payment_status == PaymentStatus.SUCCESS:
            logger.info("Payment already verified", extra={"booking_id": booking.reference})
            return booking

        if booking.razorpay_order_id and booking.razorpay_order_id != request.razorpay_order_id:
            metrics_collector.record_payment_failed("order_mismatch")
            raise PaymentVerificationError(
                detail="Order does not belong to this booking", booking_reference=booking.reference
            )

        if not self.gateway.verify_payment_signature(
            request.razorpay_order_id, request.razorpay_payment_id, request.razorpay_signature
        ):
            metrics_collector.record_payment_failed("invalid_signature")
            logger.warning(
                "Payment signature mismatch",
                extra={"booking_id": booking.reference, "order_id": request.razorpay_order_id}
            )
            raise PaymentVerificationError(booking_reference=booking.reference)

        await self._mark_paid(
            booking,
            request.razorpay_order_id,
            request.razorpay_payment_id,
            {"razorpay_order_id": request.razorpay_order_id, "razorpay_payment_id": request.razorpay_payment_id},
        )
        await self.db.commit()
        await self.db.refresh(booking)

        logger.info(
            "Payment verified",
            extra={"booking_id": booking.reference, "payment_id": request.razorpay_payment_id}
        )
        return booking

    async def _booking_for(self, column, value: Any) -> Booking | None:
        if not value:
            return None
        result = await self.db.execute(select(Booking).where(column == value))
        return result.scalar_one_or_none()

    async def handle_webhook(self, body: bytes, signature: str) -> dict[str, str]:
        """
        Apply a signed gateway webhook.

        Handles ``payment.captured``, ``payment.failed`` and
        ``refund.processed``; other events are acknowledged and ignored.

        Raises:
            PaymentVerificationError: If the signature does not match
            ValidationError: If the body is not a JSON event
        """
        if not self.gateway.verify_webhook_signature(body, signature):
            logger.warning("Webhook signature mismatch")
            raise PaymentVerificationError(detail="Invalid webhook signature")

        try:
            payload = json.loads(body)
            event_name = payload["event"]
        except (ValueError, KeyError, TypeError) as e:
            raise ValidationError(detail="Malformed webhook payload") from e

        entities = payload.get("payload") or {}

        if event_name == "payment.captured":
            entity = (entities.get("payment") or {}).get("entity") or {}
            booking = await self._booking_for(Booking.razorpay_order_id, entity.get("order_id"))
            if booking is None:
                return self._ignored(event_name, "unknown order")
            if booking.payment_status != PaymentStatus.SUCCESS:
                await self._mark_paid(booking, entity["order_id"], entity.get("id"), entity)

        elif event_name == "payment.failed":
            entity = (entities.get("payment") or {}).get("entity") or {}
            booking = await self._booking_for(Booking.razorpay_order_id, entity.get("order_id"))
            if booking is None:
                return self._ignored(event_name, "unknown order")
            if booking.payment_status != PaymentStatus.SUCCESS:
                booking.payment_status = PaymentStatus.FAILED
                booking.razorpay_payment_id = entity.get("id")
                booking.failure_reason = entity.get("error_description") or "Payment failed"
                await self.transactions.record_payment_failed(
                    booking, entity.get("id"), booking.failure_reason, entity
                )
                metrics_collector.record_payment_failed(entity.get("error_code") or "gateway_failed")

        elif event_name == "refund.processed":
            entity = (entities.get("refund") or {}).get("entity") or {}
            booking = await self._booking_for(Booking.razorpay_payment_id, entity.get("payment_id"))
            if booking is None:
                return self._ignored(event_name, "unknown payment")
            if booking.status != BookingStatus.REFUNDED:
                booking.refund_id = entity.get("id")
                booking.refund_amount = round(float(entity.get("amount") or 0) / 100, 2)
                booking.refunded_at = datetime.utcnow()
                await self.booking_service.apply_status(booking, BookingStatus.REFUNDED, None)
                await self.transactions.record_refund(
                    booking, booking.refund_id, booking.refund_amount, gateway_response=entity
                )
                metrics_collector.record_refund()

        else:
            return self._ignored(event_name, "unhandled event")

        await self.db.commit()

        logger.info("Webhook processed", extra={"event": event_name, "booking_id": booking.reference})
        return {"status": "ok", "event": event_name}

    def _ignored(self, event_name: str, reason: str) -> dict[str, str]:
        logger.info("Webhook ignored", extra={"event": event_name, "reason": reason})
        return {"status": "ignored", "event": event_name}
