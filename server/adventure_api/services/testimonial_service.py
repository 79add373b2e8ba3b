"""Testimonial moderation service."""

import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..models.testimonial import Testimonial
from ..models.user import User
from ..schemas.testimonial import CreateTestimonialRequest, TestimonialStatusFilter, UpdateTestimonialRequest
from .audit_service import AuditService
from .slugs import parse_uuid

logger = logging.getLogger(__name__)


class TestimonialService:
    """Service for public and admin testimonial operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def list_public(self, featured: Optional[bool] = None, limit: int = 20) -> list[Testimonial]:
        """Approved, public testimonials, featured first."""
        stmt = select(Testimonial).where(Testimonial.approved.is_(True), Testimonial.is_public.is_(True))
        if featured is not None:
            stmt = stmt.where(Testimonial.is_featured.is_(featured))
        stmt = stmt.order_by(Testimonial.is_featured.desc(), Testimonial.created_at.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def list_admin(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[TestimonialStatusFilter] = None,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Testimonial], int]:
        stmt = select(Testimonial)
        if status == TestimonialStatusFilter.PENDING:
            stmt = stmt.where(Testimonial.approved.is_(False))
        elif status == TestimonialStatusFilter.APPROVED:
            stmt = stmt.where(Testimonial.approved.is_(True))
        if featured is not None:
            stmt = stmt.where(Testimonial.is_featured.is_(featured))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Testimonial.customer_name.ilike(pattern),
                    Testimonial.event_name.ilike(pattern),
                    Testimonial.review.ilike(pattern),
                )
            )

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery()))

        stmt = stmt.order_by(Testimonial.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars()), total or 0

    async def get_or_raise(self, testimonial_id: str) -> Testimonial:
        parsed = parse_uuid(testimonial_id)
        testimonial = await self.db.get(Testimonial, parsed) if parsed else None
        if testimonial is None:
            raise NotFoundError(resource_type="testimonial", resource_id=str(testimonial_id))
        return testimonial

    async def create_manual(self, request: CreateTestimonialRequest, admin: User) -> Testimonial:
        """Add a testimonial collected outside the site."""
        testimonial = Testimonial(
            customer_name=request.customer_name.strip(),
            customer_email=request.customer_email.lower(),
            event_name=request.event_name.strip(),
            rating=request.rating,
            review=request.review.strip(),
            title=request.title,
            images=request.images,
            approved=request.approved,
            is_featured=request.is_featured,
        )
        self.db.add(testimonial)
        await self.db.flush()
        self.audit.record(admin, "testimonial.create", "testimonial", str(testimonial.id),
                          {"customer_name": testimonial.customer_name})
        await self.db.commit()
        await self.db.refresh(testimonial)

        logger.info("Manual testimonial added", extra={"testimonial_id": str(testimonial.id)})
        return testimonial

    async def update(self, testimonial_id: str, request: UpdateTestimonialRequest, admin: User) -> Testimonial:
        testimonial = await self.get_or_raise(testimonial_id)
        for name in request.model_fields_set:
            value = getattr(request, name)
            if value is None and name not in ("admin_response", "title"):
                continue
            setattr(testimonial, name, value)

        self.audit.record(admin, "testimonial.update", "testimonial", str(testimonial.id),
                          {"fields": sorted(request.model_fields_set)})
        await self.db.commit()
        await self.db.refresh(testimonial)

        logger.info(
            "Testimonial updated",
            extra={"testimonial_id": str(testimonial.id), "approved": testimonial.approved}
        )
        return testimonial

    async def delete(self, testimonial_id: str, admin: User) -> None:
        testimonial = await self.get_or_raise(testimonial_id)
        await self.db.delete(testimonial)
        self.audit.record(admin, "testimonial.delete", "testimonial", str(testimonial.id))
        await self.db.commit()

        logger.info("Testimonial deleted", extra={"testimonial_id": str(testimonial.id)})
