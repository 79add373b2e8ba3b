"""Team members shown on the about page."""

import logging
from typing import Optional

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..models.team import TeamMember, TeamType
from ..models.user import User, UserRole
from ..schemas.team import CreateTeamMemberRequest, UpdateTeamMemberRequest
from .audit_service import AuditService
from .slugs import parse_uuid

logger = logging.getLogger(__name__)


class TeamService:
    """Service for team member listing and back-office edits."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def list_members(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        team_type: Optional[TeamType] = None,
        include_inactive: bool = False,
    ) -> tuple[list[TeamMember], int]:
        """Members in display order; inactive ones only for the back-office."""
        stmt = select(TeamMember)
        if not include_inactive:
            stmt = stmt.where(TeamMember.is_active.is_(True))
        if team_type is not None:
            stmt = stmt.where(TeamMember.team_type == team_type)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    TeamMember.name.ilike(pattern),
                    TeamMember.role.ilike(pattern),
                    cast(TeamMember.specialties, String).ilike(pattern),
                )
            )

        total = await self.db.scalar(select(func.count()).select_from(stmt.subquery()))

        stmt = (
            stmt.order_by(TeamMember.order.asc(), TeamMember.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars()), total or 0

    async def get_or_raise(self, member_id: str, viewer: Optional[User] = None) -> TeamMember:
        """
        Fetch one member.

        Raises:
            ValidationError: If the id is not a UUID
            NotFoundError: If no such member exists
            AuthorizationError: If the member is inactive and the viewer is not an admin
        """
        parsed = parse_uuid(member_id)
        if parsed is None:
            raise ValidationError(detail="Invalid team member ID")
        member = await self.db.get(TeamMember, parsed)
        if member is None:
            raise NotFoundError(resource_type="team member", resource_id=str(member_id))
        if not member.is_active and (viewer is None or viewer.role != UserRole.ADMIN):
            raise AuthorizationError(detail="This team member is not public", required_role="ADMIN")
        return member

    async def create(self, request: CreateTeamMemberRequest, admin: User) -> TeamMember:
        member = TeamMember(
            **request.model_dump(exclude={"email"}),
            email=request.email.lower() if request.email else None,
            created_by=admin.id,
        )
        self.db.add(member)
        await self.db.flush()
        self.audit.record(admin, "team.create", "team_member", str(member.id), {"name": member.name})
        await self.db.commit()
        await self.db.refresh(member)

        logger.info("Team member added", extra={"member_id": str(member.id), "team_type": member.team_type})
        return member

    async def update(self, member_id: str, request: UpdateTeamMemberRequest, admin: User) -> TeamMember:
        member = await self.get_or_raise(member_id, admin)
        for name in request.model_fields_set:
            value = getattr(request, name)
            if name == "email" and value:
                value = value.lower()
            setattr(member, name, value)

        self.audit.record(admin, "team.update", "team_member", str(member.id),
                          {"fields": sorted(request.model_fields_set)})
        await self.db.commit()
        await self.db.refresh(member)

        logger.info("Team member updated", extra={"member_id": str(member.id)})
        return member

    async def delete(self, member_id: str, admin: User) -> None:
        member = await self.get_or_raise(member_id, admin)
        await self.db.delete(member)
        self.audit.record(admin, "team.delete", "team_member", str(member.id), {"name": member.name})
        await self.db.commit()

        logger.info("Team member deleted", extra={"member_id": str(member.id)})
