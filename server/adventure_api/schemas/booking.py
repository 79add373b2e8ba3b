"""Booking-related Pydantic schemas."""

from datetime import date as date_type
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from ..models.booking import BookingStatus, PaymentStatus
from ..models.event import TransportMode
from .common import CamelModel


class Gender(str, Enum):
    """Participant gender enumeration."""
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class PaymentMethod(str, Enum):
    """Supported payment methods."""
    RAZORPAY = "RAZORPAY"
    BANK_TRANSFER = "BANK_TRANSFER"
    CASH = "CASH"


class ExportScope(str, Enum):
    """CSV export scopes."""
    ALL = "all"
    EVENT = "event"
    DEPARTURE = "departure"
    DATE = "date"


class EmergencyContact(CamelModel):
    """Emergency contact for a participant."""

    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=5, max_length=20)
    relationship: str = Field(..., min_length=1, max_length=50)


class Participant(CamelModel):
    """One traveller on a booking."""

    name: str = Field(..., min_length=1, max_length=100)
    age: int = Field(..., ge=1, le=100)
    gender: Gender
    phone: str = Field(..., min_length=5, max_length=20)
    email: EmailStr
    emergency_contact: EmergencyContact
    medical_conditions: Optional[str] = None
    dietary_restrictions: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Participant name is required")
        return v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class CreateBookingRequest(CamelModel):
    """Request schema for submitting a booking."""

    event_id: str = Field(..., description="Event ID or slug")
    travel_date: date_type = Field(..., alias="date", description="Travel date (ISO 8601)")
    selected_departure: Optional[str] = Field(None, description="Departure label")
    selected_transport_mode: Optional[TransportMode] = None
    participants: List[Participant] = Field(..., min_length=1)
    total_amount: Optional[float] = Field(
        None, ge=0, description="Client-computed total; rejected when it disagrees with the server"
    )
    special_requests: Optional[str] = Field(None, max_length=1000)
    payment_method: PaymentMethod = PaymentMethod.RAZORPAY


class UpdateBookingRequest(CamelModel):
    """Request schema for a booking status change or note."""

    status: Optional[BookingStatus] = None
    admin_notes: Optional[str] = Field(None, max_length=2000)
    cancellation_reason: Optional[str] = Field(None, max_length=1000)


class CancelBookingRequest(CamelModel):
    """Optional body for a cancellation."""

    reason: Optional[str] = Field(None, max_length=1000)


class RefundRequest(CamelModel):
    """Admin refund request; defaults to the full paid amount."""

    amount: Optional[float] = Field(None, gt=0)
    reason: Optional[str] = Field(None, max_length=500)


class PaymentInfo(CamelModel):
    """Payment sub-record of a booking."""

    payment_method: Optional[str] = None
    payment_status: PaymentStatus
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    refund_id: Optional[str] = None
    refund_amount: Optional[float] = None
    refunded_at: Optional[datetime] = None
    failure_reason: Optional[str] = None


class Booking(CamelModel):
    """Booking response schema."""

    id: str
    booking_id: str = Field(..., description="Human-readable booking reference")
    user_id: str
    event_id: str
    event_title: Optional[str] = None
    travel_date: date_type = Field(..., alias="date")
    selected_month: Optional[str] = None
    selected_year: Optional[int] = None
    selected_departure: Optional[str] = None
    selected_transport_mode: Optional[str] = None
    participants: List[Participant]
    total_amount: float
    discount_amount: float
    final_amount: float
    status: BookingStatus
    payment_info: PaymentInfo
    special_requests: Optional[str] = None
    admin_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class CreateBookingResponse(CamelModel):
    """Response for a new booking."""

    success: bool = True
    booking_id: str
    booking: Booking
