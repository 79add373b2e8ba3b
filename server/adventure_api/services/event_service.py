"""Event service for catalogue and admin operations."""

import logging
import traceback
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import delete, func, or_, select, text, update
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import ConflictError, DatabaseUpdateError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..models.booking import Booking
from ..models.event import Event
from ..models.user import User
from ..schemas.event import CreateEventRequest, EventUpdate
from . import availability
from .audit_service import AuditService
from .event_sanitizer import CastError, sanitize_event_update
from .slugs import parse_uuid, slugify, unique_slug

logger = logging.getLogger(__name__)

UNIQUE_EVENT_COLUMNS = ("slug",)

# Columns whose previous values are kept in the audit trail
AUDITED_EVENT_FIELDS = ("title", "price", "discounted_price", "duration", "is_active")


def _to_storable(value: Any) -> Any:
    """Turn validated schema values into JSON/column values (camelCase nested keys)."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, list):
        return [_to_storable(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


class EventService:
    """Service for event-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def list_events(
        self,
        page: int = 1,
        limit: int = 12,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        active_only: bool = True,
    ) -> tuple[list[Event], int]:
        """
        Search events with filters and page-number pagination.

        Returns:
            Tuple of (events on this page, total matching)
        """
        stmt = select(Event)

        if active_only:
            stmt = stmt.where(Event.is_active.is_(True))
        if category:
            stmt = stmt.where(Event.category == category.upper())
        if difficulty:
            stmt = stmt.where(Event.difficulty == difficulty.upper())
        if featured is not None:
            stmt = stmt.where(Event.is_featured.is_(featured))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Event.title.ilike(pattern),
                    Event.description.ilike(pattern),
                    Event.short_description.ilike(pattern),
                )
            )
        if min_price is not None:
            stmt = stmt.where(Event.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Event.price <= max_price)

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery()))

        stmt = (
            stmt.order_by(Event.is_featured.desc(), Event.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        events = list(result.scalars())

        logger.info(
            "Event search completed",
            extra={
                "total_found": total,
                "page": page,
                "filters": {
                    "category": category,
                    "difficulty": difficulty,
                    "featured": featured,
                    "search": search,
                    "min_price": min_price,
                    "max_price": max_price,
                },
            }
        )

        return events, total or 0

    async def get_event_by_id(self, event_id: UUID) -> Event | None:
        """Get event by ID."""
        stmt = select(Event).where(Event.id == event_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_event_by_ref(self, ref: str, active_only: bool = True) -> Event:
        """
        Get an event by ID or slug.

        Raises:
            NotFoundError: If no (active) event matches
        """
        event_id = parse_uuid(ref)
        condition = Event.id == event_id if event_id else Event.slug == ref
        stmt = select(Event).where(condition)
        if active_only:
            stmt = stmt.where(Event.is_active.is_(True))

        event = (await self.db.execute(stmt)).scalar_one_or_none()
        if not event:
            logger.warning("Event not found", extra={"event_ref": ref})
            raise NotFoundError(resource_type="event", resource_id=ref)
        return event

    async def get_event_by_id_or_raise(self, event_id: str | UUID) -> Event:
        """Get event by ID or raise NotFoundError."""
        parsed = parse_uuid(event_id)
        event = await self.get_event_by_id(parsed) if parsed else None
        if not event:
            logger.warning("Event not found", extra={"event_id": str(event_id)})
            raise NotFoundError(resource_type="event", resource_id=str(event_id))
        return event

    async def get_event_with_lock(self, event_id: UUID) -> Event:
        """
        Get event by ID with an advisory lock for seat modifications.

        The lock is released at transaction end. SQLite (tests) has no
        advisory locks and serializes writers anyway.
        """
        if self.db.bind and self.db.bind.dialect.name == "postgresql":
            await self.db.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:event_id))"),
                {"event_id": str(event_id)}
            )

        event = await self.get_event_by_id_or_raise(event_id)
        # Re-read so JSON seat counts reflect other committed bookings
        await self.db.refresh(event)

        logger.debug("Acquired advisory lock for event", extra={"event_id": str(event_id)})
        return event

    async def create_event(self, request: CreateEventRequest, admin: User) -> Event:
        """Create an event with a unique slug."""
        slug = await unique_slug(self.db, Event, request.slug or slugify(request.title))

        values = {
            name: _to_storable(getattr(request, name))
            for name in CreateEventRequest.model_fields
            if name != "slug"
        }
        event = Event(slug=slug, created_by=admin.id, **values)

        self.db.add(event)
        await self.db.flush()
        self.audit.record(admin, "event.create", "event", str(event.id), {"title": event.title})
        await self.db.commit()
        await self.db.refresh(event)

        logger.info(
            "Event created successfully",
            extra={"event_id": str(event.id), "slug": event.slug, "created_by": str(admin.id)}
        )
        return event

    async def update_event(self, event_id: str, payload: dict[str, Any], admin: User) -> Event:
        """
        Apply a partial admin update.

        The payload is sanitized, validated as a partial update and written
        with a single UPDATE touching only the supplied columns.

        Raises:
            NotFoundError: If the event does not exist
            ValidationError: For validation, cast or duplicate-key failures
            DatabaseUpdateError: For any other persistence failure
        """
        event = await self.get_event_by_id_or_raise(event_id)

        try:
            sanitized = sanitize_event_update(payload)
        except CastError as e:
            metrics_collector.record_admin_event_update("invalid")
            raise ValidationError(
                detail="Invalid value for field",
                violations=[{"path": e.path, "message": e.message}],
            ) from e

        try:
            validated = EventUpdate.model_validate(sanitized)
        except SchemaValidationError as e:
            metrics_collector.record_admin_event_update("invalid")
            raise ValidationError(
                detail="Validation failed",
                errors=[err["msg"] for err in e.errors()],
                violations=[
                    {"path": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ],
            ) from e

        values = {name: _to_storable(getattr(validated, name)) for name in validated.model_fields_set}
        values["updated_at"] = datetime.utcnow()

        before = {
            name: _to_storable(getattr(event, name))
            for name in values
            if name in AUDITED_EVENT_FIELDS
        }

        stmt = (
            update(Event)
            .where(Event.id == event.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        try:
            await self.db.execute(stmt)
            self.audit.record(
                admin, "event.update", "event", str(event.id),
                {"fields": sorted(values), "before": before},
            )
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            message = str(e.orig).lower()
            field = next((col for col in UNIQUE_EVENT_COLUMNS if col in message), None)
            if field and ("unique" in message or "duplicate" in message):
                metrics_collector.record_admin_event_update("invalid")
                raise ValidationError(
                    detail="Duplicate key",
                    errors=[f"{field} already exists"],
                    violations=[{"path": field, "message": f"{field} already exists"}],
                ) from e
            metrics_collector.record_admin_event_update("error")
            raise self._database_error(e) from e
        except DataError as e:
            await self.db.rollback()
            metrics_collector.record_admin_event_update("invalid")
            raise ValidationError(
                detail="Invalid value for field",
                violations=[{"path": ",".join(values), "message": str(getattr(e, "orig", e))}],
            ) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            metrics_collector.record_admin_event_update("error")
            raise self._database_error(e) from e

        await self.db.refresh(event)
        metrics_collector.record_admin_event_update("success")

        logger.info(
            "Event updated successfully",
            extra={
                "event_id": str(event.id),
                "fields": sorted(values),
                "admin_id": str(admin.id),
            }
        )
        return event

    def _database_error(self, error: Exception) -> DatabaseUpdateError:
        orig = getattr(error, "orig", None)
        logger.error(
            "Event update failed in the database",
            extra={"error": str(error)},
            exc_info=error,
        )
        return DatabaseUpdateError(
            name=type(orig or error).__name__,
            code=getattr(orig, "sqlstate", None) or getattr(error, "code", None),
            message=str(orig or error),
            # Stack traces stay in the logs in production
            stack=None if settings.is_production else "".join(traceback.format_exception(error)),
        )

    async def delete_event(self, event_id: str, admin: User) -> None:
        """
        Delete an event that has never been booked.

        Raises:
            NotFoundError: If the event does not exist
            ConflictError: If any booking references the event
        """
        event = await self.get_event_by_id_or_raise(event_id)

        booking_count = await self.db.scalar(
            select(func.count()).select_from(Booking).where(Booking.event_id == event.id)
        )
        if booking_count:
            logger.warning(
                "Event deletion refused - bookings exist",
                extra={"event_id": str(event.id), "booking_count": booking_count}
            )
            raise ConflictError(
                detail=f"Event has {booking_count} booking(s); deactivate it instead of deleting",
                conflicting_resource={"type": "booking", "count": booking_count},
            )

        await self.db.execute(delete(Event).where(Event.id == event.id))
        self.audit.record(admin, "event.delete", "event", str(event.id), {"title": event.title})
        await self.db.commit()

        logger.info("Event deleted", extra={"event_id": str(event.id), "admin_id": str(admin.id)})

    def quote(
        self,
        event: Event,
        participants: int,
        departure_label: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Price a selection exactly as a booking submission would be charged.

        Raises:
            ValidationError: If the departure or mode is not offered
        """
        departure = self._resolve_departure(event, departure_label)
        try:
            surcharge = availability.transport_surcharge(departure, mode)
            total = availability.calculate_total(event, participants, departure, mode)
        except availability.SelectionError as e:
            raise ValidationError(detail=str(e)) from e

        return {
            "event_id": str(event.id),
            "participants": participants,
            "departure": departure["label"] if departure else None,
            "mode": mode,
            "unit_price": availability.effective_unit_price(event, departure),
            "transport_surcharge": surcharge,
            "total_amount": total,
            "currency": settings.currency,
        }

    def transport_options(
        self,
        event: Event,
        departure_label: str,
        month: str,
        year: int,
        day: int,
    ) -> list[dict[str, Any]]:
        """
        Transport options offered on one departure date.

        Raises:
            ValidationError: If the departure or date is not offered
        """
        departure = self._resolve_departure(event, departure_label)
        if departure is None:
            raise ValidationError(detail="A departure is required")
        if not availability.is_date_available(departure.get("availableDates"), month, year, day):
            raise ValidationError(detail=f"{month} {day}, {year} is not available for this departure")
        return availability.offered_transport_options(departure, month, year, day)

    def _resolve_departure(self, event: Event, label: Optional[str]) -> Optional[dict[str, Any]]:
        if not label:
            return None
        departure = availability.find_departure(event, label)
        if departure is None:
            raise ValidationError(detail=f"Unknown departure: {label}")
        return departure
