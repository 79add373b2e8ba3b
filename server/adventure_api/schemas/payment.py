"""Payment-related Pydantic schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from .common import CamelModel


class CreateOrderRequest(CamelModel):
    """Request schema for creating a gateway order."""

    booking_id: str = Field(..., description="Booking reference")
    amount: Optional[float] = Field(None, gt=0, description="Expected amount in rupees")


class CreateOrderResponse(CamelModel):
    """Gateway order details handed to the checkout widget."""

    order_id: str
    amount: int = Field(..., description="Amount in paise")
    currency: str
    key_id: str
    booking_id: str


class VerifyPaymentRequest(BaseModel):
    """Checkout callback values forwarded by the client."""

    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)
    bookingId: str = Field(..., min_length=1)


class VerifyPaymentResponse(CamelModel):
    """Result of a payment verification."""

    success: bool = True
    message: str
    booking_id: str
    status: str
    payment_status: str
