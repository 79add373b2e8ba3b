"""Testimonial router: public listing and back-office moderation."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import ADMIN_DEPENDENCY, DB_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.user import User
from ..schemas.common import MessageResponse, PaginatedResponse, Pagination
from ..schemas.testimonial import (
    CreateTestimonialRequest,
    Testimonial,
    TestimonialStatusFilter,
    UpdateTestimonialRequest,
)
from ..services.testimonial_service import TestimonialService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["testimonials"])


def _convert_testimonial_to_schema(testimonial_model) -> Testimonial:
    """Convert testimonial model to schema."""
    return Testimonial(
        id=str(testimonial_model.id),
        user_id=str(testimonial_model.user_id) if testimonial_model.user_id else None,
        event_id=str(testimonial_model.event_id) if testimonial_model.event_id else None,
        customer_name=testimonial_model.customer_name,
        customer_email=testimonial_model.customer_email,
        event_name=testimonial_model.event_name,
        rating=testimonial_model.rating,
        title=testimonial_model.title,
        review=testimonial_model.review,
        images=testimonial_model.images or [],
        approved=testimonial_model.approved,
        is_public=testimonial_model.is_public,
        is_featured=testimonial_model.is_featured,
        admin_response=testimonial_model.admin_response,
        created_at=testimonial_model.created_at,
    )


@router.get("/testimonials", response_model=list[Testimonial])
async def list_testimonials(
    featured: Optional[bool] = None,
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Approved public testimonials, featured first."""
    testimonial_service = TestimonialService(db)

    try:
        testimonials = await testimonial_service.list_public(featured=featured, limit=limit)
        content = [_convert_testimonial_to_schema(t).to_response() for t in testimonials]
        return JSONResponse(status_code=200, content=content)

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error in testimonial list", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/admin/testimonials", response_model=PaginatedResponse[Testimonial])
async def list_admin_testimonials(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[TestimonialStatusFilter] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """All testimonials for moderation."""
    testimonial_service = TestimonialService(db)

    try:
        testimonials, total = await testimonial_service.list_admin(
            page=page, limit=limit, status=status, featured=featured, search=search
        )
        response_data = PaginatedResponse[Testimonial](
            data=[_convert_testimonial_to_schema(t) for t in testimonials],
            pagination=Pagination.build(page, limit, total),
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in admin testimonial list",
            extra={"page": page, "status": status, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/admin/testimonials", response_model=Testimonial, status_code=201)
async def create_testimonial(
    request: CreateTestimonialRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Add a testimonial by hand."""
    testimonial_service = TestimonialService(db)

    try:
        testimonial = await testimonial_service.create_manual(request, admin)
        return JSONResponse(status_code=201, content=_convert_testimonial_to_schema(testimonial).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error in testimonial creation", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("/admin/testimonials/{testimonial_id}", response_model=Testimonial)
async def update_testimonial(
    testimonial_id: str,
    request: UpdateTestimonialRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Approve, feature, answer or edit a testimonial."""
    testimonial_service = TestimonialService(db)

    try:
        testimonial = await testimonial_service.update(testimonial_id, request, admin)
        return JSONResponse(status_code=200, content=_convert_testimonial_to_schema(testimonial).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in testimonial update",
            extra={"testimonial_id": testimonial_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.delete("/admin/testimonials/{testimonial_id}", response_model=MessageResponse)
async def delete_testimonial(
    testimonial_id: str,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Delete a testimonial."""
    testimonial_service = TestimonialService(db)

    try:
        await testimonial_service.delete(testimonial_id, admin)
        return JSONResponse(
            status_code=200,
            content=MessageResponse(message="Testimonial deleted successfully").to_response(),
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in testimonial deletion",
            extra={"testimonial_id": testimonial_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
