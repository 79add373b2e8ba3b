"""CSV exports of bookings for the back-office."""

import csv
import io
import logging
from datetime import date
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ValidationError
from ..models.booking import Booking
from ..schemas.booking import ExportScope
from .slugs import parse_uuid

logger = logging.getLogger(__name__)

COLUMNS: dict[ExportScope, list[str]] = {
    ExportScope.ALL: [
        "Booking ID", "Customer Name", "Email", "Event", "Participants",
        "Amount", "Status", "Payment Status", "Date",
    ],
    ExportScope.EVENT: [
        "Booking ID", "Customer Name", "Email", "Phone", "Departure", "Travel Date",
        "Participants", "Amount", "Status", "Payment Status",
    ],
    ExportScope.DEPARTURE: [
        "Booking ID", "Customer Name", "Email", "Phone", "Transport", "Travel Date",
        "Participants", "Amount", "Status", "Payment Status",
    ],
    ExportScope.DATE: [
        "Booking ID", "Participant Name", "Age", "Gender", "Phone", "Email",
        "Emergency Contact", "Emergency Phone", "Transport", "Status",
    ],
}


def _value(enum_or_str: Any) -> str:
    return str(getattr(enum_or_str, "value", enum_or_str) or "")


def _customer(booking: Booking) -> tuple[str, str, str]:
    """Name, email and phone of the booking's account, falling back to the lead participant."""
    lead = (booking.participants or [{}])[0]
    user = booking.user
    name = user.name if user else lead.get("name", "")
    email = user.email if user else lead.get("email", "")
    phone = (user.phone if user else None) or lead.get("phone", "")
    return name, email, phone


def _booking_rows(bookings: list[Booking], scope: ExportScope) -> list[list[Any]]:
    rows = []
    for booking in bookings:
        name, email, phone = _customer(booking)
        common_tail = [
            booking.participant_count,
            booking.final_amount,
            _value(booking.status),
            _value(booking.payment_status),
        ]
        if scope == ExportScope.ALL:
            rows.append([
                booking.reference, name, email, booking.event.title if booking.event else "",
                *common_tail, booking.created_at.date().isoformat(),
            ])
        elif scope == ExportScope.EVENT:
            rows.append([
                booking.reference, name, email, phone, booking.selected_departure or "",
                booking.travel_date.isoformat(), *common_tail,
            ])
        else:
            rows.append([
                booking.reference, name, email, phone, booking.selected_transport_mode or "",
                booking.travel_date.isoformat(), *common_tail,
            ])
    return rows


def _participant_rows(bookings: list[Booking]) -> list[list[Any]]:
    rows = []
    for booking in bookings:
        for participant in booking.participants or []:
            emergency = participant.get("emergencyContact") or {}
            rows.append([
                booking.reference,
                participant.get("name", ""),
                participant.get("age", ""),
                participant.get("gender", ""),
                participant.get("phone", ""),
                participant.get("email", ""),
                emergency.get("name", ""),
                emergency.get("phone", ""),
                booking.selected_transport_mode or "",
                _value(booking.status),
            ])
    return rows


def render_csv(scope: ExportScope, bookings: list[Booking]) -> str:
    """Render bookings as CSV with the fixed column order of ``scope``."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(COLUMNS[scope])
    rows = _participant_rows(bookings) if scope == ExportScope.DATE else _booking_rows(bookings, scope)
    writer.writerows(rows)
    return buffer.getvalue()


class ExportService:
    """Service selecting bookings for an export scope."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def export(
        self,
        scope: ExportScope,
        event_id: Optional[str] = None,
        departure: Optional[str] = None,
        travel_date: Optional[date] = None,
    ) -> tuple[str, str]:
        """
        Build an export.

        Returns:
            Tuple of (filename, CSV text)

        Raises:
            ValidationError: If the scope's required filters are missing
        """
        stmt = select(Booking)

        if scope != ExportScope.ALL:
            event_uuid = parse_uuid(event_id)
            if event_uuid is None:
                raise ValidationError(detail=f"eventId is required for the {scope.value} export")
            stmt = stmt.where(Booking.event_id == event_uuid)
        if scope == ExportScope.DEPARTURE:
            if not departure:
                raise ValidationError(detail="departure is required for the departure export")
            stmt = stmt.where(Booking.selected_departure == departure)
        if scope == ExportScope.DATE:
            if travel_date is None:
                raise ValidationError(detail="date is required for the date export")
            stmt = stmt.where(Booking.travel_date == travel_date)
            if departure:
                stmt = stmt.where(Booking.selected_departure == departure)

        stmt = stmt.order_by(Booking.created_at.asc())
        bookings = list((await self.db.execute(stmt)).scalars())

        parts = ["bookings", scope.value]
        if departure:
            parts.append(departure)
        if travel_date:
            parts.append(travel_date.isoformat())
        filename = "-".join(p.lower().replace(" ", "_") for p in parts) + ".csv"

        logger.info("Bookings exported", extra={"scope": scope.value, "rows": len(bookings)})
        return filename, render_csv(scope, bookings)
