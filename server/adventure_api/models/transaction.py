"""Payment transaction ledger model definition."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .booking import Booking
    from .event import Event
    from .user import User


class TransactionType(str, Enum):
    """Money movement recorded in the ledger."""
    PAYMENT = "PAYMENT"
    REFUND = "REFUND"
    PARTIAL_REFUND = "PARTIAL_REFUND"
    ADJUSTMENT = "ADJUSTMENT"


class TransactionStatus(str, Enum):
    """Ledger entry status enumeration."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class TransactionLog(Base):
    """
    One payment-side money movement for a booking.

    Entries are written by the payment flow: a PAYMENT entry when the
    gateway order is created, settled by checkout verification or the
    capture webhook, and REFUND / PARTIAL_REFUND entries for refunds.
    Amounts are in rupees; ``net_amount`` is gross less tax and fees plus
    discount.
    """

    __tablename__ = "transaction_logs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    transaction_id: Mapped[str] = mapped_column(String(40), nullable=False, unique=True, index=True)

    booking_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True, index=True
    )
    user_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    event_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="SET NULL"), nullable=True, index=True
    )

    type: Mapped[TransactionType] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[TransactionStatus] = mapped_column(
        String(20), nullable=False, default=TransactionStatus.PENDING, index=True
    )

    # Amounts (rupees)
    gross_amount: Mapped[float] = mapped_column(Float, nullable=False)
    net_amount: Mapped[float] = mapped_column(Float, nullable=False)
    tax_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    processing_fee: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    platform_fee: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    discount_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")

    payment_method: Mapped[str] = mapped_column(String(30), nullable=False, default="razorpay")
    payment_gateway: Mapped[str] = mapped_column(String(30), nullable=False, default="razorpay")
    gateway_transaction_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    gateway_response: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    description: Mapped[str] = mapped_column(String(500), nullable=False)
    internal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    initiated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    failed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    is_reconciled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    reconciled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    reconciled_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint("gross_amount >= 0", name="ck_transaction_gross_non_negative"),
        CheckConstraint("net_amount >= 0", name="ck_transaction_net_non_negative"),
        CheckConstraint(
            "tax_amount >= 0 AND processing_fee >= 0 AND platform_fee >= 0 AND discount_amount >= 0",
            name="ck_transaction_components_non_negative",
        ),
        CheckConstraint("length(currency) = 3", name="ck_transaction_currency_code"),
        Index("ix_transaction_logs_booking_type", "booking_id", "type"),
    )

    booking: Mapped["Booking | None"] = relationship("Booking", lazy="selectin")
    user: Mapped["User | None"] = relationship("User", lazy="selectin", foreign_keys=[user_id])
    event: Mapped["Event | None"] = relationship("Event", lazy="selectin")

    @property
    def total_fees(self) -> float:
        return (self.processing_fee or 0) + (self.platform_fee or 0)

    def __repr__(self) -> str:
        return (
            f"<TransactionLog(id={self.id}, transaction_id='{self.transaction_id}', "
            f"type={self.type}, status={self.status})>"
        )
