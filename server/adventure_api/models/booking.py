"""Booking model definition."""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .event import Event
    from .user import User


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class Booking(Base):
    """
    A participant-filled reservation against one event date.

    Payment state lives on the booking row itself; ``seats_reserved``
    records how many seats were taken from a tracked date group so they
    can be handed back on cancellation or refund.
    """

    __tablename__ = "bookings"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    reference: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)

    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # Selection
    travel_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    selected_month: Mapped[str | None] = mapped_column(String(20), nullable=True)
    selected_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    selected_departure: Mapped[str | None] = mapped_column(String(200), nullable=True)
    selected_transport_mode: Mapped[str | None] = mapped_column(String(20), nullable=True)

    participants: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Amounts (rupees)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False)
    discount_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    final_amount: Mapped[float] = mapped_column(Float, nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        String(20), nullable=False, default=BookingStatus.PENDING, index=True
    )

    # Payment
    payment_method: Mapped[str | None] = mapped_column(String(30), nullable=True)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.PENDING, index=True
    )
    razorpay_order_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    razorpay_payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    refund_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    refund_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    refunded_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cancelled_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    seats_reserved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_booking_total_non_negative"),
        CheckConstraint("final_amount >= 0", name="ck_booking_final_non_negative"),
        CheckConstraint("seats_reserved >= 0", name="ck_booking_seats_reserved_non_negative"),
        CheckConstraint("length(reference) > 0", name="ck_booking_reference_not_empty"),
    )

    event: Mapped["Event"] = relationship("Event", lazy="selectin")
    user: Mapped["User"] = relationship("User", lazy="selectin")

    @property
    def participant_count(self) -> int:
        return len(self.participants or [])

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, reference='{self.reference}', "
            f"status={self.status}, payment_status={self.payment_status})>"
        )
