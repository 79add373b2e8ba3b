"""Public event catalogue router."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import DB_DEPENDENCY
from ..core.exceptions import ProblemDetailsException, ValidationError
from ..models.event import Difficulty, EventCategory, TransportMode
from ..schemas.common import PaginatedResponse, Pagination
from ..schemas.event import EventBase, ItineraryDay, PriceQuote, TransportOptionsResponse
from ..schemas.event import Event as EventSchema
from ..services import availability
from ..services.event_service import EventService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["events"])


def _convert_event_to_schema(event_model) -> EventSchema:
    """Convert event model to schema."""
    return EventSchema.model_validate({
        **{name: getattr(event_model, name) for name in EventBase.model_fields},
        "id": str(event_model.id),
        "slug": event_model.slug,
        "display_price": availability.display_price(event_model.price, event_model.discounted_price),
        "created_at": event_model.created_at,
        "updated_at": event_model.updated_at,
    })


@router.get("", response_model=PaginatedResponse[EventSchema])
async def list_events(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    category: Optional[EventCategory] = None,
    difficulty: Optional[Difficulty] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Search active events.

    Supports filtering by category, difficulty, featured flag, free text and
    price range, with page-number pagination.
    """
    event_service = EventService(db)

    try:
        events, total = await event_service.list_events(
            page=page,
            limit=limit,
            category=category.value if category else None,
            difficulty=difficulty.value if difficulty else None,
            featured=featured,
            search=search,
            min_price=min_price,
            max_price=max_price,
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
            "Unexpected error in event search",
            extra={"page": page, "category": category, "search": search, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/{event_ref}", response_model=EventSchema)
async def get_event(event_ref: str, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Get an active event by ID or slug."""
    event_service = EventService(db)

    try:
        event = await event_service.get_event_by_ref(event_ref)
        return JSONResponse(status_code=200, content=_convert_event_to_schema(event).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in event retrieval",
            extra={"event_ref": event_ref, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/{event_ref}/quote", response_model=PriceQuote)
async def quote_event(
    event_ref: str,
    participants: int = Query(1, ge=1, le=100),
    departure: Optional[str] = None,
    mode: Optional[TransportMode] = None,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Price a selection.

    Uses the same calculation as booking submission, so the quoted total is
    what a booking for this selection will be charged.
    """
    event_service = EventService(db)

    try:
        event = await event_service.get_event_by_ref(event_ref)
        quote = event_service.quote(event, participants, departure, mode.value if mode else None)
        return JSONResponse(status_code=200, content=PriceQuote(**quote).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in price quote",
            extra={"event_ref": event_ref, "participants": participants, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/{event_ref}/transport-options", response_model=TransportOptionsResponse)
async def get_transport_options(
    event_ref: str,
    departure: str = Query(..., min_length=1),
    month: str = Query(..., min_length=1),
    year: int = Query(..., ge=2000, le=2100),
    date: int = Query(..., ge=1, le=31),
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Transport options offered on one departure date."""
    event_service = EventService(db)

    try:
        if availability.month_number(month) is None:
            raise ValidationError(detail=f"Unknown month: {month}")

        event = await event_service.get_event_by_ref(event_ref)
        options = event_service.transport_options(event, departure, month, year, date)

        response_data = TransportOptionsResponse(
            departure=departure, month=month, year=year, date=date, options=options
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in transport option lookup",
            extra={"event_ref": event_ref, "departure": departure, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/{event_ref}/itinerary", response_model=list[ItineraryDay])
async def get_itinerary(
    event_ref: str,
    departure: Optional[str] = None,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Itinerary for a departure, falling back to the event itinerary."""
    event_service = EventService(db)

    try:
        event = await event_service.get_event_by_ref(event_ref)
        selected = availability.find_departure(event, departure) if departure else None
        if departure and selected is None:
            raise ValidationError(detail=f"Unknown departure: {departure}")

        days = [ItineraryDay.model_validate(day).to_response()
                for day in availability.resolve_itinerary(event, selected)]
        return JSONResponse(status_code=200, content=days)

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in itinerary lookup",
            extra={"event_ref": event_ref, "departure": departure, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
