"""Audit trail for administrative actions."""

import logging
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.audit import AdminAuditLog
from ..models.user import User

logger = logging.getLogger(__name__)


class AuditService:
    """Service for recording and reading admin audit entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def record(
        self,
        admin: User,
        action: str,
        target_type: str,
        target_id: str,
        details: Optional[dict[str, Any]] = None,
    ) -> AdminAuditLog:
        """
        Add an audit entry to the current unit of work.

        The caller commits, so the entry lands atomically with the change it
        describes.
        """
        entry = AdminAuditLog(
            admin_id=admin.id,
            admin_email=admin.email,
            action=action,
            target_type=target_type,
            target_id=str(target_id),
            details=details or {},
        )
        self.db.add(entry)

        logger.info(
            "Admin action recorded",
            extra={
                "admin_id": str(admin.id),
                "action": action,
                "target_type": target_type,
                "target_id": str(target_id),
            }
        )
        return entry

    async def list_entries(
        self,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[AdminAuditLog], int]:
        """List audit entries, newest first."""
        stmt = select(AdminAuditLog)
        if target_type:
            stmt = stmt.where(AdminAuditLog.target_type == target_type)
        if target_id:
            stmt = stmt.where(AdminAuditLog.target_id == str(target_id))

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery()))

        stmt = stmt.order_by(AdminAuditLog.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars()), total or 0
