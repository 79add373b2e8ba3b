"""Back-office user management."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError, ValidationError
from ..models.booking import Booking
from ..models.user import User, UserRole
from ..schemas.user import UserAction, UserActionRequest
from .audit_service import AuditService
from .slugs import parse_uuid

logger = logging.getLogger(__name__)

# Filter name -> predicate for the ``status`` query parameter
STATUS_FILTERS = {
    "active": lambda: User.is_active.is_(True),
    "inactive": lambda: User.is_active.is_(False),
    "banned": lambda: User.is_banned.is_(True),
    "verified": lambda: User.is_verified.is_(True),
    "unverified": lambda: User.is_verified.is_(False),
}


class AdminUserService:
    """Service for listing users and applying administrative actions."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def list_users(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[str] = None,
    ) -> tuple[list[User], int]:
        stmt = select(User)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(User.name.ilike(pattern), User.email.ilike(pattern), User.phone.ilike(pattern)))
        if role:
            stmt = stmt.where(User.role == UserRole(role).value)
        if status:
            predicate = STATUS_FILTERS.get(status.lower())
            if predicate is None:
                raise ValidationError(detail=f"Unknown status filter: {status}")
            stmt = stmt.where(predicate())

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery()))

        stmt = stmt.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars()), total or 0

    async def booking_counts(self, user_ids: list) -> dict:
        """Number of bookings per user id."""
        if not user_ids:
            return {}
        stmt = (
            select(Booking.user_id, func.count(Booking.id))
            .where(Booking.user_id.in_(user_ids))
            .group_by(Booking.user_id)
        )
        result = await self.db.execute(stmt)
        return {user_id: count for user_id, count in result.all()}

    async def get_user_or_raise(self, user_id: str) -> User:
        parsed = parse_uuid(user_id)
        user = await self.db.get(User, parsed) if parsed else None
        if user is None:
            raise NotFoundError(resource_type="user", resource_id=str(user_id))
        return user

    async def apply_action(self, user_id: str, request: UserActionRequest, admin: User) -> tuple[User, str]:
        """
        Apply one administrative action and record it in the audit log.

        Returns:
            Tuple of (updated user, human-readable message)

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: If an admin targets their own account
        """
        user = await self.get_user_or_raise(user_id)
        if user.id == admin.id:
            raise ValidationError(detail="You cannot perform actions on your own account")

        before = {
            "role": str(getattr(user.role, "value", user.role)),
            "is_active": user.is_active,
            "is_verified": user.is_verified,
            "is_banned": user.is_banned,
        }
        now = datetime.utcnow()
        action = request.action

        if action == UserAction.BAN:
            user.is_banned = True
            user.ban_reason = request.reason
            user.banned_at = now
            message = "User banned successfully"
        elif action == UserAction.UNBAN:
            user.is_banned = False
            user.ban_reason = None
            user.banned_at = None
            message = "User unbanned successfully"
        elif action == UserAction.VERIFY:
            user.is_verified = True
            user.verified_at = now
            message = "User verified successfully"
        elif action == UserAction.UNVERIFY:
            user.is_verified = False
            user.verified_at = None
            message = "User verification removed"
        elif action == UserAction.CHANGE_ROLE:
            user.role = request.role
            message = f"User role changed to {request.role.value}"
        elif action == UserAction.RESET_PASSWORD:
            user.password_reset_required = True
            message = "User must reset their password at next login"
        elif action == UserAction.ACTIVATE:
            user.is_active = True
            message = "User activated successfully"
        else:
            user.is_active = False
            message = "User deactivated successfully"

        self.audit.record(
            admin,
            f"user.{action.value}",
            "user",
            str(user.id),
            {"before": before, "reason": request.reason, "role": request.role.value if request.role else None},
        )
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(
            "Admin user action applied",
            extra={"admin_id": str(admin.id), "user_id": str(user.id), "action": action.value}
        )
        return user, message
