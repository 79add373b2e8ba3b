"""Admin event management router."""

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import ADMIN_DEPENDENCY, DB_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.user import User
from ..schemas.common import MessageResponse, PaginatedResponse, Pagination
from ..schemas.event import AdminEventUpdateResponse, CreateEventRequest
from ..schemas.event import Event as EventSchema
from ..services.event_service import EventService
from .events import _convert_event_to_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/events", tags=["admin"])


@router.get("", response_model=PaginatedResponse[EventSchema])
async def list_all_events(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """List all events, including inactive ones."""
    event_service = EventService(db)

    try:
        events, total = await event_service.list_events(
            page=page, limit=limit, search=search, active_only=False
        )
        response_data = PaginatedResponse[EventSchema](
            data=[_convert_event_to_schema(event) for event in events],
            pagination=Pagination.build(page, limit, total),
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in admin event list",
            extra={"page": page, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("", response_model=EventSchema, status_code=201)
async def create_event(
    request: CreateEventRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Create an event."""
    event_service = EventService(db)

    try:
        event = await event_service.create_event(request, admin)
        return JSONResponse(status_code=201, content=_convert_event_to_schema(event).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in event creation",
            extra={"title": request.title, "admin_id": str(admin.id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/{event_id}", response_model=EventSchema)
async def get_event(
    event_id: str,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Get any event by ID."""
    event_service = EventService(db)

    try:
        event = await event_service.get_event_by_id_or_raise(event_id)
        return JSONResponse(status_code=200, content=_convert_event_to_schema(event).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in admin event retrieval",
            extra={"event_id": event_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("/{event_id}", response_model=AdminEventUpdateResponse)
async def update_event(
    event_id: str,
    payload: dict[str, Any] = Body(...),
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """
    Partially update an event.

    Only fields present in the payload change. ``discountedPrice`` and
    ``brochure`` may be cleared with ``null`` or an empty string.
    """
    event_service = EventService(db)

    try:
        event = await event_service.update_event(event_id, payload, admin)

        response_data = AdminEventUpdateResponse(
            id=str(event.id),
            title=event.title,
            price=event.price,
            discounted_price=event.discounted_price,
            duration=event.duration,
            updated_at=event.updated_at,
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in event update",
            extra={"event_id": event_id, "fields": sorted(payload), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: str,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Delete an event."""
    event_service = EventService(db)

    try:
        await event_service.delete_event(event_id, admin)
        return JSONResponse(
            status_code=200,
            content=MessageResponse(message="Event deleted successfully").to_response(),
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in event deletion",
            extra={"event_id": event_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
