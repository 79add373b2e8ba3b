"""Story model definition."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class StoryCategory(str, Enum):
    """Story category enumeration."""
    TRAVEL = "TRAVEL"
    ADVENTURE = "ADVENTURE"
    CULTURE = "CULTURE"
    FOOD = "FOOD"
    TIPS = "TIPS"
    GUIDE = "GUIDE"


class Story(Base):
    """Travel story published on the marketing site."""

    __tablename__ = "stories"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(220), nullable=False, unique=True, index=True)
    excerpt: Mapped[str | None] = mapped_column(String(500), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    cover_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category: Mapped[StoryCategory] = mapped_column(String(20), nullable=False, index=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    author_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    event_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="SET NULL"), nullable=True
    )

    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_time: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    published_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint("views >= 0", name="ck_story_views_non_negative"),
        CheckConstraint("length(slug) > 0", name="ck_story_slug_not_empty"),
    )

    def __repr__(self) -> str:
        return f"<Story(id={self.id}, slug='{self.slug}', published={self.is_published})>"
