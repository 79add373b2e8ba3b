"""Booking service for business logic operations."""

import logging
import secrets
import string
import time
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import (
    AuthorizationError,
    InsufficientSeatsError,
    InvalidStatusTransitionError,
    NotFoundError,
    ValidationError,
)
from ..core.observability import metrics_collector
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..models.event import Event
from ..models.user import User, UserRole
from ..schemas.booking import CreateBookingRequest, RefundRequest, UpdateBookingRequest
from . import availability
from .audit_service import AuditService
from .booking_state import RELEASED_STATUSES, ensure_transition
from .event_service import EventService
from .slugs import parse_uuid
from .transaction_service import TransactionService

if TYPE_CHECKING:
    from .payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)

_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
_BASE36 = string.digits + string.ascii_uppercase

# Statuses a cancellation request can no longer leave
_FINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.REFUNDED})


def _base36(number: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_booking_reference(prefix: Optional[str] = None) -> str:
    """Human-readable reference: prefix, base36 millisecond timestamp, 4 random characters."""
    suffix = "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(4))
    return f"{prefix or settings.booking_reference_prefix}{_base36(int(time.time() * 1000))}{suffix}".upper()


def _same_label(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").strip().lower() == (b or "").strip().lower()


def _adjust_group_seats(
    groups: Optional[list[dict[str, Any]]],
    month: str,
    year: int,
    delta: int,
) -> list[dict[str, Any]]:
    """Copy of ``groups`` with the tracked seats of one month moved by ``delta``."""
    target = availability.month_number(month)
    updated = []
    for group in groups or []:
        group = dict(group)
        matches = (
            availability.month_number(group.get("month")) == target
            and int(group.get("year", 0)) == int(year)
        )
        if matches and group.get("availableSeats") is not None:
            seats = int(group["availableSeats"]) + delta
            if group.get("totalSeats") is not None:
                seats = min(seats, int(group["totalSeats"]))
            group["availableSeats"] = max(seats, 0)
        updated.append(group)
    return updated


def adjust_event_seats(
    event: Event,
    departure_label: Optional[str],
    month: str,
    year: int,
    delta: int,
) -> None:
    """
    Move the tracked seat count of one date group on ``event``.

    The JSON documents are replaced rather than mutated in place so the
    ORM sees the change.
    """
    if departure_label:
        event.departures = [
            {**dep, "availableDates": _adjust_group_seats(dep.get("availableDates"), month, year, delta)}
            if _same_label(dep.get("label"), departure_label) else dict(dep)
            for dep in event.departures or []
        ]
    else:
        event.available_dates = _adjust_group_seats(event.available_dates, month, year, delta)


class BookingService:
    """Service for booking-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.event_service = EventService(db)
        self.audit = AuditService(db)

    async def create_booking(self, request: CreateBookingRequest, user: User) -> Booking:
        """
        Create a PENDING booking with server-side pricing and seat reservation.

        Args:
            request: Booking submission
            user: Authenticated customer

        Returns:
            Created booking entity

        Raises:
            NotFoundError: If the event is missing or inactive
            ValidationError: If the selection, participants or total are invalid
            InsufficientSeatsError: If the date cannot seat the participants
        """
        event = await self.event_service.get_event_by_ref(request.event_id)
        # Serialize seat changes for this event
        event = await self.event_service.get_event_with_lock(event.id)

        count = len(request.participants)
        if count < event.min_participants:
            raise ValidationError(detail=f"At least {event.min_participants} participants are required")

        travel_date = request.travel_date
        month = availability.month_name(travel_date.month)
        year = travel_date.year
        day = travel_date.day

        departure = None
        if request.selected_departure:
            departure = availability.find_departure(event, request.selected_departure)
            if departure is None:
                raise ValidationError(detail=f"Unknown departure: {request.selected_departure}")
        elif event.departures:
            raise ValidationError(detail="Select a departure for this event")

        calendar = availability.calendar_for(event, departure)
        group = availability.find_date_group(calendar, month, year)
        if group is None or day not in [int(d) for d in group.get("dates") or []]:
            logger.warning(
                "Booking rejected - date not offered",
                extra={"event_id": str(event.id), "travel_date": travel_date.isoformat()}
            )
            raise ValidationError(detail=f"{month} {day}, {year} is not available for this event")

        mode = request.selected_transport_mode.value if request.selected_transport_mode else None
        if departure is not None:
            offered = [opt["mode"] for opt in availability.offered_transport_options(departure, month, year, day)]
            if mode is None and offered:
                raise ValidationError(detail="Select a transport mode for this departure")
            if mode is not None and mode not in offered:
                raise ValidationError(detail=f"Transport mode {mode} is not offered on {month} {day}, {year}")
        elif mode is not None:
            raise ValidationError(detail="A transport mode requires a departure")

        total = availability.calculate_total(event, count, departure, mode)
        if request.total_amount is not None and abs(request.total_amount - total) > 0.01:
            logger.warning(
                "Booking rejected - total mismatch",
                extra={"event_id": str(event.id), "client_total": request.total_amount, "server_total": total}
            )
            raise ValidationError(
                detail="Total amount does not match the current price",
                errors=[f"Expected totalAmount {total}, got {request.total_amount}"],
            )

        already_booked = await self._participants_on_date(event.id, travel_date, departure)
        if already_booked + count > event.max_participants:
            raise InsufficientSeatsError(
                requested_seats=count,
                available_seats=max(event.max_participants - already_booked, 0),
                event_id=str(event.id),
            )

        seats_reserved = 0
        tracked = group.get("availableSeats")
        if tracked is not None:
            if tracked < count:
                raise InsufficientSeatsError(
                    requested_seats=count, available_seats=tracked, event_id=str(event.id)
                )
            adjust_event_seats(event, departure["label"] if departure else None, group["month"], year, -count)
            seats_reserved = count

        unit = availability.effective_unit_price(event, departure)
        list_price = float((departure or {}).get("price") or event.price)

        reference = generate_booking_reference()
        while await self.get_booking_by_reference(reference):
            reference = generate_booking_reference()

        booking = Booking(
            reference=reference,
            user_id=user.id,
            event_id=event.id,
            travel_date=travel_date,
            selected_month=group["month"],
            selected_year=year,
            selected_departure=departure["label"] if departure else None,
            selected_transport_mode=mode,
            participants=[p.model_dump(mode="json", by_alias=True) for p in request.participants],
            total_amount=total,
            discount_amount=round(max(list_price - unit, 0) * count, 2),
            final_amount=total,
            status=BookingStatus.PENDING,
            payment_method=request.payment_method.value,
            payment_status=PaymentStatus.PENDING,
            special_requests=request.special_requests,
            seats_reserved=seats_reserved,
        )

        self.db.add(booking)
        await self.db.commit()
        await self.db.refresh(booking)

        metrics_collector.record_booking_created(str(event.id))

        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": booking.reference,
                "event_id": str(event.id),
                "user_id": str(user.id),
                "participants": count,
                "total_amount": total,
                "seats_reserved": seats_reserved,
            }
        )

        return booking

    async def _participants_on_date(
        self,
        event_id,
        travel_date: date,
        departure: Optional[dict[str, Any]],
    ) -> int:
        stmt = select(Booking.participants).where(
            Booking.event_id == event_id,
            Booking.travel_date == travel_date,
            Booking.status.not_in([s.value for s in RELEASED_STATUSES]),
        )
        if departure is not None:
            stmt = stmt.where(Booking.selected_departure == departure["label"])
        result = await self.db.execute(stmt)
        return sum(len(participants or []) for participants in result.scalars())

    async def list_bookings(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[BookingStatus] = None,
        user_id: Optional[str] = None,
        event_id: Optional[str] = None,
        departure: Optional[str] = None,
        travel_date: Optional[date] = None,
    ) -> tuple[list[Booking], int]:
        """List bookings for the back-office, newest first."""
        stmt = select(Booking)
        if status:
            stmt = stmt.where(Booking.status == BookingStatus(status).value)
        if user_id:
            stmt = stmt.where(Booking.user_id == parse_uuid(user_id))
        if event_id:
            stmt = stmt.where(Booking.event_id == parse_uuid(event_id))
        if departure:
            stmt = stmt.where(Booking.selected_departure == departure)
        if travel_date:
            stmt = stmt.where(Booking.travel_date == travel_date)

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery()))

        stmt = stmt.order_by(Booking.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars()), total or 0

    async def list_user_bookings(self, user: User) -> list[Booking]:
        """All bookings of one customer, newest first."""
        stmt = select(Booking).where(Booking.user_id == user.id).order_by(Booking.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_booking_by_reference(self, reference: str) -> Booking | None:
        """Get booking by its human-readable reference."""
        stmt = select(Booking).where(Booking.reference == reference)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_booking_by_ref_or_raise(self, ref: str) -> Booking:
        """Get booking by reference or ID, or raise NotFoundError."""
        booking = await self.get_booking_by_reference(ref)
        if booking is None:
            booking_id = parse_uuid(ref)
            if booking_id is not None:
                booking = await self.db.get(Booking, booking_id)
        if booking is None:
            logger.warning("Booking not found", extra={"booking_id": ref})
            raise NotFoundError(resource_type="booking", resource_id=ref)
        return booking

    async def get_booking_for_user(self, ref: str, user: User) -> Booking:
        """
        Get a booking its owner or an admin may see.

        Raises:
            NotFoundError: If the booking does not exist
            AuthorizationError: If the user neither owns it nor is an admin
        """
        booking = await self.get_booking_by_ref_or_raise(ref)
        if booking.user_id != user.id and user.role != UserRole.ADMIN:
            logger.warning(
                "Booking access denied",
                extra={"booking_id": booking.reference, "user_id": str(user.id)}
            )
            raise AuthorizationError(detail="You do not have access to this booking")
        return booking

    async def release_seats(self, booking: Booking) -> None:
        """Hand reserved seats back to the booking's date group (caller commits)."""
        if not booking.seats_reserved:
            return
        event = await self.event_service.get_event_by_id(booking.event_id)
        if event is None:
            booking.seats_reserved = 0
            return
        event = await self.event_service.get_event_with_lock(event.id)
        month = booking.selected_month or availability.month_name(booking.travel_date.month)
        year = booking.selected_year or booking.travel_date.year
        adjust_event_seats(event, booking.selected_departure, month, year, booking.seats_reserved)

        logger.info(
            "Seats released",
            extra={
                "booking_id": booking.reference,
                "event_id": str(event.id),
                "seats": booking.seats_reserved,
            }
        )
        booking.seats_reserved = 0

    async def apply_status(self, booking: Booking, requested: BookingStatus, actor: Optional[User]) -> bool:
        """Validate and apply a status change; returns False for a no-op."""
        requested = BookingStatus(requested)
        if not ensure_transition(booking.status, requested, booking.payment_status):
            return False

        booking.status = requested
        now = datetime.utcnow()

        if requested == BookingStatus.CANCELLED:
            booking.cancelled_at = now
            booking.cancelled_by = actor.id if actor else None
            metrics_collector.record_booking_cancelled()
        elif requested == BookingStatus.CONFIRMED:
            metrics_collector.record_booking_confirmed()
        elif requested == BookingStatus.REFUNDED:
            booking.payment_status = PaymentStatus.REFUNDED
            booking.refunded_at = booking.refunded_at or now

        if requested in RELEASED_STATUSES:
            await self.release_seats(booking)
        return True

    async def update_booking(self, ref: str, request: UpdateBookingRequest, user: User) -> Booking:
        """
        Apply a status change or notes.

        Customers may only cancel their own booking; admins may apply any
        allowed transition and edit notes.
        """
        booking = await self.get_booking_for_user(ref, user)
        is_admin = user.role == UserRole.ADMIN

        if not is_admin:
            if request.admin_notes is not None:
                raise AuthorizationError(detail="Only administrators can edit admin notes")
            if request.status is not None and request.status != BookingStatus.CANCELLED:
                raise AuthorizationError(detail="Customers can only cancel their bookings")

        if request.status == BookingStatus.CANCELLED:
            self._check_cancellable(booking)

        previous = booking.status
        changed = False
        if request.status is not None:
            changed = await self.apply_status(booking, request.status, user)
        if request.admin_notes is not None:
            booking.admin_notes = request.admin_notes
        if request.cancellation_reason is not None:
            booking.cancellation_reason = request.cancellation_reason

        if is_admin and changed:
            self.audit.record(
                user, "booking.status", "booking", booking.reference,
                {"before": previous, "after": booking.status},
            )

        await self.db.commit()
        await self.db.refresh(booking)

        logger.info(
            "Booking updated",
            extra={
                "booking_id": booking.reference,
                "status": booking.status,
                "status_changed": changed,
                "user_id": str(user.id),
            }
        )
        return booking

    def _check_cancellable(self, booking: Booking) -> None:
        if booking.status in _FINAL_STATUSES:
            raise InvalidStatusTransitionError(
                current_status=BookingStatus(booking.status).value,
                requested_status=BookingStatus.CANCELLED.value,
                detail=f"Booking is already {BookingStatus(booking.status).value.lower()}",
            )

    async def cancel_booking(self, ref: str, user: User, reason: Optional[str] = None) -> Booking:
        """
        Cancel a booking and release its seats.

        Raises:
            InvalidStatusTransitionError: If the booking is already cancelled,
                completed or refunded
        """
        booking = await self.get_booking_for_user(ref, user)
        self._check_cancellable(booking)

        await self.apply_status(booking, BookingStatus.CANCELLED, user)
        if reason:
            booking.cancellation_reason = reason

        await self.db.commit()
        await self.db.refresh(booking)

        logger.info(
            "Booking cancelled successfully",
            extra={"booking_id": booking.reference, "cancelled_by": str(user.id)}
        )
        return booking

    async def refund_booking(
        self,
        ref: str,
        request: RefundRequest,
        admin: User,
        gateway: "PaymentGateway",
    ) -> Booking:
        """
        Refund a paid booking through the payment gateway.

        Raises:
            InvalidStatusTransitionError: If the payment has not succeeded
            ValidationError: If the amount exceeds what was paid
            PaymentGatewayError: If the gateway rejects the refund
        """
        booking = await self.get_booking_by_ref_or_raise(ref)
        ensure_transition(booking.status, BookingStatus.REFUNDED, booking.payment_status)
        if booking.status == BookingStatus.REFUNDED:
            return booking

        amount = request.amount if request.amount is not None else booking.final_amount
        if amount > booking.final_amount:
            raise ValidationError(detail=f"Refund amount cannot exceed {booking.final_amount}")
        if not booking.razorpay_payment_id:
            raise ValidationError(detail="Booking has no gateway payment to refund")

        refund = await gateway.refund_payment(
            booking.razorpay_payment_id,
            amount,
            notes={"booking_id": booking.reference, "reason": request.reason or ""},
        )

        booking.refund_id = refund.get("id")
        booking.refund_amount = amount
        booking.refunded_at = datetime.utcnow()
        await self.apply_status(booking, BookingStatus.REFUNDED, admin)
        self.audit.record(
            admin, "booking.refund", "booking", booking.reference,
            {"amount": amount, "refund_id": booking.refund_id, "reason": request.reason},
        )
        await TransactionService(self.db).record_refund(
            booking, booking.refund_id, amount, request.reason, gateway_response=refund
        )

        await self.db.commit()
        await self.db.refresh(booking)

        metrics_collector.record_refund()

        logger.info(
            "Booking refunded",
            extra={"booking_id": booking.reference, "amount": amount, "refund_id": booking.refund_id}
        )
        return booking

    async def complete_past_bookings(self, today: Optional[date] = None, batch_size: int = 100) -> int:
        """
        Mark confirmed bookings whose travel date has passed as COMPLETED.

        Returns:
            Number of bookings completed
        """
        today = today or datetime.utcnow().date()
        stmt = (
            select(Booking)
            .where(Booking.status == BookingStatus.CONFIRMED.value, Booking.travel_date < today)
            .limit(batch_size)
        )
        bookings = list((await self.db.execute(stmt)).scalars())

        for booking in bookings:
            booking.status = BookingStatus.COMPLETED

        if bookings:
            await self.db.commit()
            logger.info("Past bookings completed", extra={"completed_count": len(bookings)})

        return len(bookings)
