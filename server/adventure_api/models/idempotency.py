"""Idempotency record model definition."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class IdempotencyRecord(Base):
    """Cached response for a client-supplied Idempotency-Key and operation."""

    __tablename__ = "idempotency_records"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    idempotency_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    operation: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # SHA-256 of the normalized request body
    request_body_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    response_status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    response_body: Mapped[str] = mapped_column(Text, nullable=False)

    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("length(idempotency_key) > 0", name="ck_idempotency_key_not_empty"),
        CheckConstraint("length(request_body_hash) = 64", name="ck_idempotency_hash_length"),
        CheckConstraint(
            "response_status_code >= 100 AND response_status_code <= 599",
            name="ck_idempotency_status_code_valid",
        ),
        UniqueConstraint("idempotency_key", "operation", name="uq_idempotency_key_operation"),
    )

    def __repr__(self) -> str:
        return (
            f"<IdempotencyRecord(id={self.id}, key='{self.idempotency_key}', "
            f"operation='{self.operation}', status={self.response_status_code})>"
        )
