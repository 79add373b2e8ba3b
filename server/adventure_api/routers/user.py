"""User dashboard router: profile, bookings, wishlist and reviews."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CURRENT_USER_DEPENDENCY, DB_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.user import User, UserRole
from ..schemas.booking import Booking
from ..schemas.event import Event as EventSchema
from ..schemas.testimonial import Testimonial
from ..schemas.user import CreateReviewRequest, Profile, UpdateProfileRequest
from ..services.booking_service import BookingService
from ..services.user_service import UserService
from .bookings import _convert_booking_to_schema
from .events import _convert_event_to_schema
from .testimonials import _convert_testimonial_to_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["user"])


def _convert_profile_to_schema(user_model) -> Profile:
    """Convert user model to profile schema."""
    return Profile(
        id=str(user_model.id),
        name=user_model.name,
        email=user_model.email,
        role=UserRole(user_model.role),
        phone=user_model.phone,
        avatar=user_model.avatar,
        date_of_birth=user_model.date_of_birth,
        address=user_model.address,
        emergency_contact=user_model.emergency_contact,
        preferences=user_model.preferences or {},
        is_verified=user_model.is_verified,
        created_at=user_model.created_at,
    )


def _wishlist_response(events) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content=[_convert_event_to_schema(event).to_response() for event in events],
    )


@router.get("/profile", response_model=Profile)
async def get_profile(user: User = CURRENT_USER_DEPENDENCY) -> JSONResponse:
    """The signed-in user's profile."""
    return JSONResponse(status_code=200, content=_convert_profile_to_schema(user).to_response())


@router.put("/profile", response_model=Profile)
async def update_profile(
    request: UpdateProfileRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
) -> JSONResponse:
    """Edit the signed-in user's profile; email and role cannot change here."""
    user_service = UserService(db)

    try:
        user = await user_service.update_profile(user, request)
        return JSONResponse(status_code=200, content=_convert_profile_to_schema(user).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in profile update",
            extra={"user_id": str(user.id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/bookings", response_model=list[Booking])
async def list_my_bookings(
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
) -> JSONResponse:
    """The signed-in user's bookings, newest first."""
    booking_service = BookingService(db)

    try:
        bookings = await booking_service.list_user_bookings(user)
        content = [_convert_booking_to_schema(b).to_response() for b in bookings]
        return JSONResponse(status_code=200, content=content)

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing user bookings",
            extra={"user_id": str(user.id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/wishlist", response_model=list[EventSchema])
async def get_wishlist(
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
) -> JSONResponse:
    """Saved events."""
    user_service = UserService(db)

    try:
        return _wishlist_response(await user_service.get_wishlist(user))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error reading wishlist",
            extra={"user_id": str(user.id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/wishlist/{event_id}", response_model=list[EventSchema])
async def add_to_wishlist(
    event_id: str,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
) -> JSONResponse:
    """Save an event; saving it twice keeps one entry."""
    user_service = UserService(db)

    try:
        return _wishlist_response(await user_service.add_to_wishlist(user, event_id))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error adding to wishlist",
            extra={"user_id": str(user.id), "event_id": event_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.delete("/wishlist/{event_id}", response_model=list[EventSchema])
async def remove_from_wishlist(
    event_id: str,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
) -> JSONResponse:
    """Remove a saved event."""
    user_service = UserService(db)

    try:
        return _wishlist_response(await user_service.remove_from_wishlist(user, event_id))

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error removing from wishlist",
            extra={"user_id": str(user.id), "event_id": event_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/reviews", response_model=list[Testimonial])
async def list_my_reviews(
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
) -> JSONResponse:
    """Reviews written by the signed-in user."""
    user_service = UserService(db)

    try:
        reviews = await user_service.list_reviews(user)
        return JSONResponse(
            status_code=200,
            content=[_convert_testimonial_to_schema(r).to_response() for r in reviews],
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing reviews",
            extra={"user_id": str(user.id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/reviews", response_model=Testimonial, status_code=201)
async def create_review(
    request: CreateReviewRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = CURRENT_USER_DEPENDENCY,
) -> JSONResponse:
    """
    Review a booked event.

    The review is held for moderation and only appears publicly once an
    admin approves it.
    """
    user_service = UserService(db)

    try:
        review = await user_service.create_review(user, request)
        return JSONResponse(status_code=201, content=_convert_testimonial_to_schema(review).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error creating review",
            extra={"user_id": str(user.id), "event_id": request.event_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
