"""Payment router for gateway orders, checkout verification and webhooks."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CURRENT_USER_DEPENDENCY, DB_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.booking import BookingStatus, PaymentStatus
from ..models.user import User
from ..schemas.payment import (
    CreateOrderRequest,
    CreateOrderResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from ..services.payment_gateway import PaymentGateway, get_payment_gateway
from ..services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["payment"])

GATEWAY_DEPENDENCY = Depends(get_payment_gateway)


@router.post("/create-order", response_model=CreateOrderResponse)
async def create_order(
    request: CreateOrderRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
    gateway: PaymentGateway = GATEWAY_DEPENDENCY,
) -> JSONResponse:
    """Create a gateway order for a booking's final amount (in paise)."""
    payment_service = PaymentService(db, gateway)

    try:
        order = await payment_service.create_order(request, user)
        return JSONResponse(status_code=200, content=CreateOrderResponse(**order).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in order creation",
            extra={"booking_id": request.booking_id, "user_id": str(user.id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/verify", response_model=VerifyPaymentResponse)
async def verify_payment(
    request: VerifyPaymentRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
    gateway: PaymentGateway = GATEWAY_DEPENDENCY,
) -> JSONResponse:
    """
    Verify the checkout callback signature and confirm the booking.

    Repeating a successful verification is a no-op.
    """
    payment_service = PaymentService(db, gateway)

    try:
        booking = await payment_service.verify_payment(request, user)

        response_data = VerifyPaymentResponse(
            message="Payment verified successfully",
            booking_id=booking.reference,
            status=BookingStatus(booking.status).value,
            payment_status=PaymentStatus(booking.payment_status).value,
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in payment verification",
            extra={
                "booking_id": request.bookingId,
                "order_id": request.razorpay_order_id,
                "error": str(e),
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    signature: Optional[str] = Header(None, alias="X-Razorpay-Signature"),
    db: AsyncSession = DB_DEPENDENCY,
    gateway: PaymentGateway = GATEWAY_DEPENDENCY,
) -> JSONResponse:
    """Gateway webhook; the signature is checked against the raw body."""
    payment_service = PaymentService(db, gateway)

    try:
        body = await request.body()
        result = await payment_service.handle_webhook(body, signature or "")
        return JSONResponse(status_code=200, content=result)

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error in webhook processing", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e
