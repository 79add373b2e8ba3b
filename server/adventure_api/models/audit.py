"""Admin audit log model definition."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class AdminAuditLog(Base):
    """Audit trail of administrative actions on users and content."""

    __tablename__ = "admin_audit_logs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    admin_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    admin_email: Mapped[str] = mapped_column(String(255), nullable=False)

    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    target_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Before/after values and free-form context
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, index=True
    )

    __table_args__ = (
        CheckConstraint("length(action) > 0", name="ck_audit_action_not_empty"),
        CheckConstraint("length(admin_email) > 0", name="ck_audit_admin_email_not_empty"),
    )

    def __repr__(self) -> str:
        return (
            f"<AdminAuditLog(id={self.id}, action='{self.action}', "
            f"target={self.target_type}:{self.target_id})>"
        )
