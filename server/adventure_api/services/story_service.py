"""Story publishing service."""

import logging
import math
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..models.story import Story, StoryCategory
from ..models.user import User
from ..schemas.story import CreateStoryRequest, UpdateStoryRequest
from .audit_service import AuditService
from .slugs import parse_uuid, slugify, unique_slug

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200


def estimate_read_time(content: str) -> int:
    """Minutes to read ``content``, at least one."""
    return max(1, math.ceil(len(content.split()) / WORDS_PER_MINUTE))


class StoryService:
    """Service for public and admin story operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def list_published(
        self,
        page: int = 1,
        limit: int = 10,
        category: Optional[StoryCategory] = None,
        featured: Optional[bool] = None,
    ) -> tuple[list[Story], int]:
        stmt = select(Story).where(Story.is_published.is_(True))
        if category:
            stmt = stmt.where(Story.category == StoryCategory(category).value)
        if featured is not None:
            stmt = stmt.where(Story.is_featured.is_(featured))

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery()))

        stmt = stmt.order_by(Story.published_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars()), total or 0

    async def read_by_slug(self, slug: str) -> Story:
        """Get a published story and count the view."""
        stmt = select(Story).where(Story.slug == slug, Story.is_published.is_(True))
        story = (await self.db.execute(stmt)).scalar_one_or_none()
        if story is None:
            raise NotFoundError(resource_type="story", resource_id=slug)

        await self.db.execute(
            update(Story).where(Story.id == story.id).values(views=Story.views + 1)
        )
        await self.db.commit()
        await self.db.refresh(story)
        return story

    async def get_or_raise(self, story_id: str) -> Story:
        parsed = parse_uuid(story_id)
        story = await self.db.get(Story, parsed) if parsed else None
        if story is None:
            raise NotFoundError(resource_type="story", resource_id=str(story_id))
        return story

    async def create(self, request: CreateStoryRequest, admin: User) -> Story:
        slug = await unique_slug(self.db, Story, request.slug or slugify(request.title))
        story = Story(
            title=request.title.strip(),
            slug=slug,
            excerpt=request.excerpt,
            content=request.content,
            cover_image=request.cover_image,
            category=request.category.value,
            tags=request.tags,
            author_id=admin.id,
            event_id=parse_uuid(request.event_id) if request.event_id else None,
            is_published=request.is_published,
            is_featured=request.is_featured,
            read_time=estimate_read_time(request.content),
            published_at=datetime.utcnow() if request.is_published else None,
        )
        self.db.add(story)
        await self.db.flush()
        self.audit.record(admin, "story.create", "story", str(story.id), {"title": story.title})
        await self.db.commit()
        await self.db.refresh(story)

        logger.info("Story created", extra={"story_id": str(story.id), "slug": story.slug})
        return story

    async def update(self, story_id: str, request: UpdateStoryRequest, admin: User) -> Story:
        story = await self.get_or_raise(story_id)
        for name in request.model_fields_set:
            value = getattr(request, name)
            if value is None and name not in ("excerpt", "cover_image"):
                continue
            if name == "category":
                value = value.value
            setattr(story, name, value)

        if "content" in request.model_fields_set and request.content:
            story.read_time = estimate_read_time(request.content)
        if story.is_published and story.published_at is None:
            story.published_at = datetime.utcnow()

        self.audit.record(admin, "story.update", "story", str(story.id),
                          {"fields": sorted(request.model_fields_set)})
        await self.db.commit()
        await self.db.refresh(story)

        logger.info("Story updated", extra={"story_id": str(story.id)})
        return story

    async def delete(self, story_id: str, admin: User) -> None:
        story = await self.get_or_raise(story_id)
        await self.db.delete(story)
        self.audit.record(admin, "story.delete", "story", str(story.id), {"title": story.title})
        await self.db.commit()

        logger.info("Story deleted", extra={"story_id": str(story.id)})
