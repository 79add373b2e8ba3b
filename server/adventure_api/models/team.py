"""Team member model definition."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class TeamType(str, Enum):
    """Section of the about page a member is shown in."""
    FOUNDERS = "Founders"
    CORE_TEAM = "Core Team"


class TeamMember(Base):
    """Guide or founder shown on the about page."""

    __tablename__ = "team_members"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(100), nullable=False)
    team_type: Mapped[TeamType] = mapped_column(
        String(20), nullable=False, default=TeamType.CORE_TEAM, index=True
    )
    experience: Mapped[str | None] = mapped_column(String(50), nullable=True)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    specialties: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    social_media: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    # Display order on the about page, ascending
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint('"order" >= 0', name="ck_team_member_order_non_negative"),
        CheckConstraint("length(name) > 0", name="ck_team_member_name_not_empty"),
    )

    def __repr__(self) -> str:
        return f"<TeamMember(id={self.id}, name='{self.name}', team_type={self.team_type})>"
