"""Story-related Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..models.story import StoryCategory
from .common import CamelModel


class Story(CamelModel):
    """Story response schema."""

    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    cover_image: Optional[str] = None
    category: StoryCategory
    tags: List[str] = Field(default_factory=list)
    author_id: Optional[str] = None
    event_id: Optional[str] = None
    is_published: bool
    is_featured: bool
    read_time: int
    views: int
    published_at: Optional[datetime] = None
    created_at: datetime


class CreateStoryRequest(CamelModel):
    """Request schema for creating a story."""

    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=220, pattern=r"^[a-z0-9-]+$")
    excerpt: Optional[str] = Field(None, max_length=500)
    content: str = Field(..., min_length=1)
    cover_image: Optional[str] = None
    category: StoryCategory
    tags: List[str] = Field(default_factory=list)
    event_id: Optional[str] = None
    is_published: bool = False
    is_featured: bool = False


class UpdateStoryRequest(CamelModel):
    """Request schema for editing a story."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    excerpt: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = Field(None, min_length=1)
    cover_image: Optional[str] = None
    category: Optional[StoryCategory] = None
    tags: Optional[List[str]] = None
    is_published: Optional[bool] = None
    is_featured: Optional[bool] = None
