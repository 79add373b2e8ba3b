"""Story router: published stories and admin authoring."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import ADMIN_DEPENDENCY, DB_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.story import StoryCategory
from ..models.user import User
from ..schemas.common import MessageResponse, PaginatedResponse, Pagination
from ..schemas.story import CreateStoryRequest, Story, UpdateStoryRequest
from ..services.story_service import StoryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["stories"])


def _convert_story_to_schema(story_model) -> Story:
    """Convert story model to schema."""
    return Story(
        id=str(story_model.id),
        title=story_model.title,
        slug=story_model.slug,
        excerpt=story_model.excerpt,
        content=story_model.content,
        cover_image=story_model.cover_image,
        category=StoryCategory(story_model.category),
        tags=story_model.tags or [],
        author_id=str(story_model.author_id) if story_model.author_id else None,
        event_id=str(story_model.event_id) if story_model.event_id else None,
        is_published=story_model.is_published,
        is_featured=story_model.is_featured,
        read_time=story_model.read_time,
        views=story_model.views,
        published_at=story_model.published_at,
        created_at=story_model.created_at,
    )


@router.get("/stories", response_model=PaginatedResponse[Story])
async def list_stories(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    category: Optional[StoryCategory] = None,
    featured: Optional[bool] = None,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Published stories, newest first."""
    story_service = StoryService(db)

    try:
        stories, total = await story_service.list_published(
            page=page, limit=limit, category=category, featured=featured
        )
        response_data = PaginatedResponse[Story](
            data=[_convert_story_to_schema(s) for s in stories],
            pagination=Pagination.build(page, limit, total),
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in story list",
            extra={"page": page, "category": category, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/stories/{slug}", response_model=Story)
async def get_story(slug: str, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Read a published story; each read counts as a view."""
    story_service = StoryService(db)

    try:
        story = await story_service.read_by_slug(slug)
        return JSONResponse(status_code=200, content=_convert_story_to_schema(story).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error in story retrieval", extra={"slug": slug, "error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/admin/stories", response_model=Story, status_code=201)
async def create_story(
    request: CreateStoryRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Write a story."""
    story_service = StoryService(db)

    try:
        story = await story_service.create(request, admin)
        return JSONResponse(status_code=201, content=_convert_story_to_schema(story).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in story creation",
            extra={"title": request.title, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("/admin/stories/{story_id}", response_model=Story)
async def update_story(
    story_id: str,
    request: UpdateStoryRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Edit or publish a story."""
    story_service = StoryService(db)

    try:
        story = await story_service.update(story_id, request, admin)
        return JSONResponse(status_code=200, content=_convert_story_to_schema(story).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in story update",
            extra={"story_id": story_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.delete("/admin/stories/{story_id}", response_model=MessageResponse)
async def delete_story(
    story_id: str,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Delete a story."""
    story_service = StoryService(db)

    try:
        await story_service.delete(story_id, admin)
        return JSONResponse(
            status_code=200,
            content=MessageResponse(message="Story deleted successfully").to_response(),
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in story deletion",
            extra={"story_id": story_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
