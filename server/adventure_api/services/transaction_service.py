"""Payment transaction ledger: writes from the payment flow and back-office reads."""

import csv
import io
import logging
import secrets
import string
import time
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import NotFoundError, ValidationError
from ..models.booking import Booking
from ..models.transaction import TransactionLog, TransactionStatus, TransactionType
from ..models.user import User
from ..schemas.transaction import TransactionFilter, TransactionSummary, UpdateTransactionRequest
from .audit_service import AuditService
from .slugs import parse_uuid

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_uppercase + string.digits

_FAILED_STATUSES = (TransactionStatus.FAILED, TransactionStatus.CANCELLED)
_OPEN_STATUSES = (TransactionStatus.PENDING, TransactionStatus.PROCESSING)

EXPORT_COLUMNS = [
    "Transaction ID", "Booking ID", "User Name", "User Email", "Type", "Status",
    "Gross Amount", "Net Amount", "Tax", "Processing Fee", "Platform Fee", "Discount",
    "Currency", "Payment Method", "Payment Gateway", "Gateway Transaction ID",
    "Event Title", "Description", "Initiated At", "Processed At", "Completed At",
    "Is Reconciled", "Reconciled At", "Created At",
]


def generate_transaction_id() -> str:
    """``TXN_`` + hex millisecond timestamp + ``_`` + 5 random characters."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(5))
    return f"TXN_{int(time.time() * 1000):X}_{suffix}"


def net_amount(
    gross: float,
    tax: float = 0,
    processing_fee: float = 0,
    platform_fee: float = 0,
    discount: float = 0,
) -> float:
    """Gross less tax and fees, plus discount."""
    return round(gross - tax - processing_fee - platform_fee + discount, 2)


def set_status(entry: TransactionLog, status: TransactionStatus, now: Optional[datetime] = None) -> None:
    """Move an entry to ``status``, stamping the matching lifecycle timestamp once."""
    now = now or datetime.utcnow()
    entry.status = status
    if status == TransactionStatus.PROCESSING:
        entry.processed_at = entry.processed_at or now
    elif status in (TransactionStatus.COMPLETED, TransactionStatus.REFUNDED):
        entry.processed_at = entry.processed_at or now
        entry.completed_at = entry.completed_at or now
    elif status in _FAILED_STATUSES:
        entry.failed_at = entry.failed_at or now


def _iso(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


def render_transactions_csv(entries: list[TransactionLog]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for entry in entries:
        writer.writerow([
            entry.transaction_id,
            entry.booking.reference if entry.booking else "",
            entry.user.name if entry.user else "",
            entry.user.email if entry.user else "",
            TransactionType(entry.type).value,
            TransactionStatus(entry.status).value,
            entry.gross_amount,
            entry.net_amount,
            entry.tax_amount,
            entry.processing_fee,
            entry.platform_fee,
            entry.discount_amount,
            entry.currency,
            entry.payment_method,
            entry.payment_gateway,
            entry.gateway_transaction_id or "",
            entry.event.title if entry.event else "",
            entry.description,
            _iso(entry.initiated_at),
            _iso(entry.processed_at),
            _iso(entry.completed_at),
            "Yes" if entry.is_reconciled else "No",
            _iso(entry.reconciled_at),
            _iso(entry.created_at),
        ])
    return buffer.getvalue()


class TransactionService:
    """Service for the payment transaction ledger."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    # Ledger writes. The caller commits, so each entry lands with the
    # booking change it records.

    def _new_entry(
        self,
        booking: Booking,
        type_: TransactionType,
        amount: float,
        description: str,
        gateway_transaction_id: Optional[str] = None,
        gateway_response: Optional[dict[str, Any]] = None,
    ) -> TransactionLog:
        entry = TransactionLog(
            transaction_id=generate_transaction_id(),
            booking_id=booking.id,
            user_id=booking.user_id,
            event_id=booking.event_id,
            type=type_,
            status=TransactionStatus.PENDING,
            gross_amount=amount,
            net_amount=net_amount(amount),
            currency=settings.currency,
            payment_method=booking.payment_method or "razorpay",
            payment_gateway="razorpay",
            gateway_transaction_id=gateway_transaction_id,
            gateway_response=gateway_response,
            description=description,
            initiated_at=datetime.utcnow(),
        )
        self.db.add(entry)
        return entry

    async def _latest_payment(self, booking: Booking) -> Optional[TransactionLog]:
        result = await self.db.execute(
            select(TransactionLog)
            .where(TransactionLog.booking_id == booking.id, TransactionLog.type == TransactionType.PAYMENT)
            .order_by(TransactionLog.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def record_order(self, booking: Booking, order: dict[str, Any]) -> TransactionLog:
        """Open (or re-point) the PAYMENT entry for a new gateway order."""
        entry = await self._latest_payment(booking)
        if entry is None or entry.status not in _OPEN_STATUSES:
            entry = self._new_entry(
                booking, TransactionType.PAYMENT, booking.final_amount,
                f"Payment for booking {booking.reference}",
            )
        entry.gross_amount = booking.final_amount
        entry.net_amount = net_amount(booking.final_amount)
        entry.gateway_transaction_id = order.get("id")
        entry.gateway_response = order
        await self.db.flush()

        logger.info(
            "Payment transaction opened",
            extra={"transaction_id": entry.transaction_id, "booking_id": booking.reference}
        )
        return entry

    async def record_payment_captured(
        self,
        booking: Booking,
        payment_id: Optional[str],
        gateway_response: Optional[dict[str, Any]] = None,
    ) -> TransactionLog:
        """Complete the booking's PAYMENT entry, opening one if the order was never recorded."""
        entry = await self._latest_payment(booking)
        if entry is None or entry.status == TransactionStatus.COMPLETED:
            entry = self._new_entry(
                booking, TransactionType.PAYMENT, booking.final_amount,
                f"Payment for booking {booking.reference}",
            )
        entry.gateway_transaction_id = payment_id or entry.gateway_transaction_id
        if gateway_response is not None:
            entry.gateway_response = gateway_response
        set_status(entry, TransactionStatus.COMPLETED)
        await self.db.flush()

        logger.info(
            "Payment transaction completed",
            extra={"transaction_id": entry.transaction_id, "booking_id": booking.reference}
        )
        return entry

    async def record_payment_failed(
        self,
        booking: Booking,
        payment_id: Optional[str],
        reason: str,
        gateway_response: Optional[dict[str, Any]] = None,
    ) -> TransactionLog:
        """Fail the booking's open PAYMENT entry, opening one if none is open."""
        entry = await self._latest_payment(booking)
        if entry is None or entry.status not in _OPEN_STATUSES:
            entry = self._new_entry(
                booking, TransactionType.PAYMENT, booking.final_amount,
                f"Payment for booking {booking.reference}",
            )
        entry.gateway_transaction_id = payment_id or entry.gateway_transaction_id
        entry.gateway_response = gateway_response
        entry.internal_notes = reason
        set_status(entry, TransactionStatus.FAILED)
        await self.db.flush()

        logger.info(
            "Payment transaction failed",
            extra={"transaction_id": entry.transaction_id, "booking_id": booking.reference, "reason": reason}
        )
        return entry

    async def record_refund(
        self,
        booking: Booking,
        refund_id: Optional[str],
        amount: float,
        reason: Optional[str] = None,
        gateway_response: Optional[dict[str, Any]] = None,
    ) -> TransactionLog:
        """
        Record a completed refund.

        A refund of the whole final amount is a REFUND and marks the
        PAYMENT entry REFUNDED; anything less is a PARTIAL_REFUND.
        """
        full = amount >= booking.final_amount - 0.01
        entry = self._new_entry(
            booking,
            TransactionType.REFUND if full else TransactionType.PARTIAL_REFUND,
            amount,
            f"Refund for booking {booking.reference}",
            gateway_transaction_id=refund_id,
            gateway_response=gateway_response,
        )
        entry.internal_notes = reason
        set_status(entry, TransactionStatus.COMPLETED)

        if full:
            payment = await self._latest_payment(booking)
            if payment is not None and payment.status == TransactionStatus.COMPLETED:
                set_status(payment, TransactionStatus.REFUNDED)
        await self.db.flush()

        logger.info(
            "Refund transaction recorded",
            extra={"transaction_id": entry.transaction_id, "booking_id": booking.reference, "amount": amount}
        )
        return entry

    # Back-office reads

    def _filtered(self, filters: TransactionFilter):
        stmt = select(TransactionLog)
        if filters.type:
            stmt = stmt.where(TransactionLog.type == filters.type)
        if filters.status:
            stmt = stmt.where(TransactionLog.status == filters.status)
        if filters.payment_method:
            stmt = stmt.where(TransactionLog.payment_method == filters.payment_method)
        if filters.user_id:
            user_uuid = parse_uuid(filters.user_id)
            if user_uuid is None:
                raise ValidationError(detail="userId must be a UUID")
            stmt = stmt.where(TransactionLog.user_id == user_uuid)
        if filters.booking_id:
            # Booking UUID or human-readable reference
            booking_uuid = parse_uuid(filters.booking_id)
            if booking_uuid is not None:
                stmt = stmt.where(TransactionLog.booking_id == booking_uuid)
            else:
                stmt = stmt.where(
                    TransactionLog.booking_id.in_(
                        select(Booking.id).where(Booking.reference == filters.booking_id.upper())
                    )
                )
        if filters.is_reconciled is not None:
            stmt = stmt.where(TransactionLog.is_reconciled.is_(filters.is_reconciled))
        if filters.start_date:
            stmt = stmt.where(TransactionLog.created_at >= filters.start_date)
        if filters.end_date:
            stmt = stmt.where(TransactionLog.created_at <= filters.end_date)
        if filters.min_amount is not None:
            stmt = stmt.where(TransactionLog.gross_amount >= filters.min_amount)
        if filters.max_amount is not None:
            stmt = stmt.where(TransactionLog.gross_amount <= filters.max_amount)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            stmt = stmt.where(
                or_(
                    TransactionLog.transaction_id.ilike(pattern),
                    TransactionLog.description.ilike(pattern),
                    TransactionLog.gateway_transaction_id.ilike(pattern),
                )
            )
        return stmt

    async def _summary(self, stmt) -> TransactionSummary:
        matched = stmt.subquery()
        row = (await self.db.execute(
            select(
                func.count(),
                func.coalesce(func.sum(matched.c.gross_amount), 0),
                func.coalesce(func.sum(matched.c.net_amount), 0),
                func.coalesce(func.sum(matched.c.tax_amount), 0),
                func.coalesce(func.sum(matched.c.processing_fee + matched.c.platform_fee), 0),
                func.coalesce(func.sum(matched.c.discount_amount), 0),
                func.coalesce(func.sum(case((matched.c.status == TransactionStatus.COMPLETED, 1), else_=0)), 0),
                func.coalesce(func.sum(case((matched.c.status.in_(_FAILED_STATUSES), 1), else_=0)), 0),
                func.coalesce(func.sum(case((matched.c.status.in_(_OPEN_STATUSES), 1), else_=0)), 0),
                func.coalesce(func.sum(case((matched.c.is_reconciled.is_(True), 1), else_=0)), 0),
            )
        )).one()
        return TransactionSummary(
            total_transactions=row[0],
            total_amount=round(float(row[1]), 2),
            total_net=round(float(row[2]), 2),
            total_tax=round(float(row[3]), 2),
            total_fees=round(float(row[4]), 2),
            total_discount=round(float(row[5]), 2),
            completed_transactions=row[6],
            failed_transactions=row[7],
            pending_transactions=row[8],
            reconciled_transactions=row[9],
        )

    async def list_transactions(
        self,
        filters: TransactionFilter,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[TransactionLog], int, TransactionSummary]:
        """One page of matching entries, newest first, with totals for the whole filter."""
        stmt = self._filtered(filters)
        summary = await self._summary(stmt)

        stmt = stmt.order_by(TransactionLog.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars()), summary.total_transactions, summary

    async def get_or_raise(self, ref: str) -> TransactionLog:
        """Look an entry up by UUID or ``TXN_`` identifier."""
        parsed = parse_uuid(ref)
        if parsed is not None:
            entry = await self.db.get(TransactionLog, parsed, populate_existing=True)
        else:
            result = await self.db.execute(
                select(TransactionLog)
                .where(TransactionLog.transaction_id == ref.strip().upper())
                .execution_options(populate_existing=True)
            )
            entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError(resource_type="transaction", resource_id=str(ref))
        return entry

    async def update(self, ref: str, request: UpdateTransactionRequest, admin: User) -> TransactionLog:
        """
        Correct or reconcile an entry.

        Reconciling stamps who and when; un-reconciling clears both.
        """
        entry = await self.get_or_raise(ref)
        now = datetime.utcnow()
        fields = request.model_fields_set - {"reason"}

        if "status" in fields and request.status != entry.status:
            set_status(entry, request.status, now)
        if "description" in fields:
            entry.description = request.description.strip()
        if "internal_notes" in fields:
            entry.internal_notes = request.internal_notes
        if "is_reconciled" in fields and request.is_reconciled != entry.is_reconciled:
            entry.is_reconciled = request.is_reconciled
            entry.reconciled_at = now if request.is_reconciled else None
            entry.reconciled_by = admin.id if request.is_reconciled else None

        self.audit.record(
            admin, "transaction.update", "transaction", entry.transaction_id,
            {"fields": sorted(fields), "reason": request.reason or "Manual update by admin"},
        )
        await self.db.commit()
        await self.db.refresh(entry)

        logger.info(
            "Transaction updated",
            extra={"transaction_id": entry.transaction_id, "status": entry.status, "reconciled": entry.is_reconciled}
        )
        return entry

    async def export(self, filters: TransactionFilter, max_records: int = 10000) -> tuple[str, str]:
        """
        CSV of matching entries, newest first.

        Returns:
            Tuple of (filename, CSV text)

        Raises:
            NotFoundError: If nothing matches
        """
        stmt = self._filtered(filters).order_by(TransactionLog.created_at.desc()).limit(max_records)
        entries = list((await self.db.execute(stmt.execution_options(populate_existing=True))).scalars())
        if not entries:
            raise NotFoundError(resource_type="transaction", detail="No transactions found for export")

        filename = f"transactions_export_{datetime.utcnow().date().isoformat()}.csv"
        logger.info("Transactions exported", extra={"rows": len(entries)})
        return filename, render_transactions_csv(entries)
