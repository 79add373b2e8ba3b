"""Booking router for customer and admin booking operations."""

import logging
from datetime import date
from typing import Any, Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import (
    ADMIN_DEPENDENCY,
    CURRENT_USER_DEPENDENCY,
    DB_DEPENDENCY,
    IDEMPOTENCY_KEY_DEPENDENCY,
)
from ..core.exceptions import ProblemDetailsException
from ..models.booking import BookingStatus, PaymentStatus
from ..models.user import User
from ..schemas.booking import (
    Booking,
    CreateBookingRequest,
    CreateBookingResponse,
    ExportScope,
    PaymentInfo,
    RefundRequest,
    UpdateBookingRequest,
)
from ..schemas.common import PaginatedResponse, Pagination
from ..services.booking_service import BookingService
from ..services.export_service import ExportService
from ..services.idempotency_service import IdempotencyService
from ..services.invoice_service import render_invoice
from ..services.payment_gateway import PaymentGateway, get_payment_gateway
from ..services.settings_service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["bookings"])

GATEWAY_DEPENDENCY = Depends(get_payment_gateway)


def _convert_booking_to_schema(booking_model) -> Booking:
    """Convert booking model to schema."""
    return Booking(
        id=str(booking_model.id),
        booking_id=booking_model.reference,
        user_id=str(booking_model.user_id),
        event_id=str(booking_model.event_id),
        event_title=booking_model.event.title if booking_model.event else None,
        travel_date=booking_model.travel_date,
        selected_month=booking_model.selected_month,
        selected_year=booking_model.selected_year,
        selected_departure=booking_model.selected_departure,
        selected_transport_mode=booking_model.selected_transport_mode,
        participants=booking_model.participants,
        total_amount=booking_model.total_amount,
        discount_amount=booking_model.discount_amount,
        final_amount=booking_model.final_amount,
        status=BookingStatus(booking_model.status),
        payment_info=PaymentInfo(
            payment_method=booking_model.payment_method,
            payment_status=PaymentStatus(booking_model.payment_status),
            razorpay_order_id=booking_model.razorpay_order_id,
            razorpay_payment_id=booking_model.razorpay_payment_id,
            transaction_id=booking_model.transaction_id,
            paid_at=booking_model.paid_at,
            refund_id=booking_model.refund_id,
            refund_amount=booking_model.refund_amount,
            refunded_at=booking_model.refunded_at,
            failure_reason=booking_model.failure_reason,
        ),
        special_requests=booking_model.special_requests,
        admin_notes=booking_model.admin_notes,
        cancellation_reason=booking_model.cancellation_reason,
        cancelled_at=booking_model.cancelled_at,
        created_at=booking_model.created_at,
        updated_at=booking_model.updated_at,
    )


async def _handle_idempotent_operation(
    operation: str,
    idempotency_key: str,
    request_body: dict[str, Any],
    operation_func: Callable[[], Awaitable[dict[str, Any]]],
    db: AsyncSession,
    status_code: int = 200,
) -> JSONResponse:
    """Handle idempotent operation with caching."""
    idempotency_service = IdempotencyService(db)

    cached_response = await idempotency_service.check_idempotency(
        idempotency_key=idempotency_key,
        operation=operation,
        request_body=request_body,
    )
    if cached_response:
        cached_status, response_body = cached_response
        return JSONResponse(status_code=cached_status, content=response_body)

    try:
        response_dict = await operation_func()

        await idempotency_service.store_response(
            idempotency_key=idempotency_key,
            operation=operation,
            request_body=request_body,
            status_code=status_code,
            response_body=response_dict,
        )
        return JSONResponse(status_code=status_code, content=response_dict)

    except ProblemDetailsException as e:
        # Client errors replay too, so a retried submission gets the same answer
        if e.status_code < 500:
            await idempotency_service.store_response(
                idempotency_key=idempotency_key,
                operation=operation,
                request_body=request_body,
                status_code=e.status_code,
                response_body=e.problem_details,
            )
        raise


@router.post("/bookings", response_model=CreateBookingResponse, status_code=201)
async def create_booking(
    request: CreateBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
    idempotency_key: Optional[str] = IDEMPOTENCY_KEY_DEPENDENCY,
) -> JSONResponse:
    """
    Submit a booking.

    The total is recomputed on the server; seats are reserved when the date
    tracks them. Supplying an Idempotency-Key replays the first response for
    repeated submissions.
    """
    booking_service = BookingService(db)

    async def operation() -> dict[str, Any]:
        booking = await booking_service.create_booking(request, user)
        response_data = CreateBookingResponse(
            booking_id=booking.reference,
            booking=_convert_booking_to_schema(booking),
        )
        return response_data.to_response()

    try:
        if idempotency_key is None:
            return JSONResponse(status_code=201, content=await operation())

        return await _handle_idempotent_operation(
            operation=f"bookings/create:{user.id}",
            idempotency_key=idempotency_key,
            request_body=request.model_dump(mode="json"),
            operation_func=operation,
            db=db,
            status_code=201,
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking creation",
            extra={
                "event_id": request.event_id,
                "user_id": str(user.id),
                "participants": len(request.participants),
                "idempotency_key": idempotency_key,
                "error": str(e),
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/bookings", response_model=PaginatedResponse[Booking])
async def list_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[BookingStatus] = None,
    user_id: Optional[str] = Query(None, alias="userId"),
    event_id: Optional[str] = Query(None, alias="eventId"),
    departure: Optional[str] = None,
    travel_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """List bookings for the back-office."""
    booking_service = BookingService(db)

    try:
        bookings, total = await booking_service.list_bookings(
            page=page,
            limit=limit,
            status=status,
            user_id=user_id,
            event_id=event_id,
            departure=departure,
            travel_date=travel_date,
        )
        response_data = PaginatedResponse[Booking](
            data=[_convert_booking_to_schema(b) for b in bookings],
            pagination=Pagination.build(page, limit, total),
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking list",
            extra={"page": page, "status": status, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/bookings/{booking_ref}", response_model=Booking)
async def get_booking(
    booking_ref: str,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
) -> JSONResponse:
    """Get a booking by reference; owners and admins only."""
    booking_service = BookingService(db)

    try:
        booking = await booking_service.get_booking_for_user(booking_ref, user)
        return JSONResponse(status_code=200, content=_convert_booking_to_schema(booking).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking retrieval",
            extra={"booking_id": booking_ref, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("/bookings/{booking_ref}", response_model=Booking)
async def update_booking(
    booking_ref: str,
    request: UpdateBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
) -> JSONResponse:
    """
    Change a booking's status or notes.

    Customers may only cancel; admins may apply any allowed transition.
    """
    booking_service = BookingService(db)

    try:
        booking = await booking_service.update_booking(booking_ref, request, user)
        return JSONResponse(status_code=200, content=_convert_booking_to_schema(booking).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking update",
            extra={"booking_id": booking_ref, "status": request.status, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.delete("/bookings/{booking_ref}", response_model=Booking)
async def cancel_booking(
    booking_ref: str,
    reason: Optional[str] = Query(None, max_length=1000),
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
) -> JSONResponse:
    """Cancel a booking and release its seats."""
    booking_service = BookingService(db)

    try:
        booking = await booking_service.cancel_booking(booking_ref, user, reason)
        return JSONResponse(status_code=200, content=_convert_booking_to_schema(booking).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking cancellation",
            extra={"booking_id": booking_ref, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/bookings/{booking_ref}/invoice", response_class=HTMLResponse)
async def get_invoice(
    booking_ref: str,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
) -> HTMLResponse:
    """Printable HTML invoice for a booking."""
    booking_service = BookingService(db)

    try:
        booking = await booking_service.get_booking_for_user(booking_ref, user)
        site = await SettingsService(db).get_active()
        return HTMLResponse(status_code=200, content=render_invoice(booking, site.site_name))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in invoice rendering",
            extra={"booking_id": booking_ref, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/admin/bookings/export", response_class=Response)
async def export_bookings(
    scope: ExportScope = ExportScope.ALL,
    event_id: Optional[str] = Query(None, alias="eventId"),
    departure: Optional[str] = None,
    travel_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> Response:
    """Download bookings as CSV for one export scope."""
    export_service = ExportService(db)

    try:
        filename, content = await export_service.export(scope, event_id, departure, travel_date)
        return Response(
            content=content,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking export",
            extra={"scope": scope.value, "event_id": event_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/admin/bookings/{booking_ref}/refund", response_model=Booking)
async def refund_booking(
    booking_ref: str,
    request: RefundRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
    gateway: PaymentGateway = GATEWAY_DEPENDENCY,
) -> JSONResponse:
    """Refund a paid booking through the payment gateway."""
    booking_service = BookingService(db)

    try:
        booking = await booking_service.refund_booking(booking_ref, request, admin, gateway)
        return JSONResponse(status_code=200, content=_convert_booking_to_schema(booking).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking refund",
            extra={"booking_id": booking_ref, "amount": request.amount, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
