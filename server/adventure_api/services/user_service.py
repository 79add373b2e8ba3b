"""User dashboard service: profile, wishlist and reviews."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, ValidationError
from ..models.booking import Booking, BookingStatus
from ..models.event import Event
from ..models.testimonial import Testimonial
from ..models.user import User
from ..schemas.user import CreateReviewRequest, UpdateProfileRequest
from .event_service import EventService

logger = logging.getLogger(__name__)

REVIEWABLE_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)


class UserService:
    """Service for a customer's own account data."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.event_service = EventService(db)

    async def update_profile(self, user: User, request: UpdateProfileRequest) -> User:
        """Apply the supplied profile fields."""
        for name in request.model_fields_set:
            value = getattr(request, name)
            if name in ("address", "emergency_contact") and value is not None:
                value = value.model_dump(mode="json", by_alias=True, exclude_none=True)
            elif name == "name" and value is not None:
                value = value.strip()
            setattr(user, name, value)

        await self.db.commit()
        await self.db.refresh(user)

        logger.info(
            "Profile updated",
            extra={"user_id": str(user.id), "fields": sorted(request.model_fields_set)}
        )
        return user

    async def get_wishlist(self, user: User) -> list[Event]:
        await self.db.refresh(user, attribute_names=["wishlist"])
        return list(user.wishlist)

    async def add_to_wishlist(self, user: User, event_ref: str) -> list[Event]:
        """Save an event; adding one already saved is a no-op."""
        event = await self.event_service.get_event_by_ref(event_ref)
        wishlist = await self.get_wishlist(user)
        if all(saved.id != event.id for saved in wishlist):
            user.wishlist.append(event)
            await self.db.commit()
            logger.info("Wishlist item added", extra={"user_id": str(user.id), "event_id": str(event.id)})
        return await self.get_wishlist(user)

    async def remove_from_wishlist(self, user: User, event_ref: str) -> list[Event]:
        """Remove a saved event; removing one not saved is a no-op."""
        event = await self.event_service.get_event_by_ref(event_ref, active_only=False)
        wishlist = await self.get_wishlist(user)
        remaining = [saved for saved in wishlist if saved.id != event.id]
        if len(remaining) != len(wishlist):
            user.wishlist = remaining
            await self.db.commit()
            logger.info("Wishlist item removed", extra={"user_id": str(user.id), "event_id": str(event.id)})
        return await self.get_wishlist(user)

    async def list_reviews(self, user: User) -> list[Testimonial]:
        stmt = (
            select(Testimonial)
            .where(Testimonial.user_id == user.id)
            .order_by(Testimonial.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def create_review(self, user: User, request: CreateReviewRequest) -> Testimonial:
        """
        Write a review for an event the user has travelled on.

        Raises:
            ValidationError: If the user has no confirmed or completed booking for it
            ConflictError: If the user already reviewed the event
        """
        event = await self.event_service.get_event_by_ref(request.event_id, active_only=False)

        stmt = (
            select(Booking)
            .where(
                Booking.user_id == user.id,
                Booking.event_id == event.id,
                Booking.status.in_(REVIEWABLE_STATUSES),
            )
            .order_by(Booking.created_at.desc())
            .limit(1)
        )
        booking = (await self.db.execute(stmt)).scalar_one_or_none()
        if booking is None:
            raise ValidationError(detail="You can only review events you have booked")

        existing = await self.db.execute(
            select(Testimonial.id).where(Testimonial.user_id == user.id, Testimonial.event_id == event.id)
        )
        if existing.first() is not None:
            raise ConflictError(detail="You have already reviewed this event")

        review = Testimonial(
            user_id=user.id,
            event_id=event.id,
            booking_id=booking.id,
            customer_name=user.name,
            customer_email=user.email,
            event_name=event.title,
            rating=request.rating,
            title=request.title,
            review=request.review.strip(),
            approved=False,
        )
        self.db.add(review)
        await self.db.commit()
        await self.db.refresh(review)

        logger.info(
            "Review submitted",
            extra={"user_id": str(user.id), "event_id": str(event.id), "rating": request.rating}
        )
        return review
