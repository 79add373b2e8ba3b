"""Site settings model definition."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base

SETTINGS_SECTIONS = ("branding", "contact", "seo", "payment", "booking", "features")


class SiteSettings(Base):
    """
    Site-wide configuration.

    At most one row may be active at a time; the partial unique index on
    ``is_active`` enforces it.
    """

    __tablename__ = "site_settings"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    site_name: Mapped[str] = mapped_column(String(100), nullable=False)
    site_url: Mapped[str | None] = mapped_column(String(255), nullable=True)

    branding: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    contact: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    seo: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    payment: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    booking: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    features: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    version: Mapped[str] = mapped_column(String(20), nullable=False, default="1.0.0")
    last_updated_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        Index(
            "uq_site_settings_active",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    def __repr__(self) -> str:
        return f"<SiteSettings(id={self.id}, version='{self.version}', active={self.is_active})>"
