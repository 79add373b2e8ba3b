"""Team router: the public about-page roster and back-office edits."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import ADMIN_DEPENDENCY, DB_DEPENDENCY, OPTIONAL_USER_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.team import TeamType
from ..models.user import User
from ..schemas.common import MessageResponse, PaginatedResponse, Pagination
from ..schemas.team import CreateTeamMemberRequest, TeamMember, UpdateTeamMemberRequest
from ..services.team_service import TeamService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["teams"])


def _convert_member_to_schema(member_model) -> TeamMember:
    """Convert team member model to schema."""
    return TeamMember(
        id=str(member_model.id),
        name=member_model.name,
        role=member_model.role,
        team_type=TeamType(member_model.team_type),
        experience=member_model.experience,
        image=member_model.image,
        specialties=member_model.specialties or [],
        bio=member_model.bio,
        email=member_model.email,
        phone=member_model.phone,
        social_media=member_model.social_media or {},
        is_active=member_model.is_active,
        order=member_model.order,
        created_at=member_model.created_at,
    )


async def _list(
    db: AsyncSession,
    page: int,
    limit: int,
    search: Optional[str],
    team_type: Optional[TeamType],
    include_inactive: bool,
) -> JSONResponse:
    team_service = TeamService(db)

    try:
        members, total = await team_service.list_members(
            page=page, limit=limit, search=search, team_type=team_type, include_inactive=include_inactive
        )
        response_data = PaginatedResponse[TeamMember](
            data=[_convert_member_to_schema(m) for m in members],
            pagination=Pagination.build(page, limit, total),
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in team list",
            extra={"page": page, "include_inactive": include_inactive, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/teams", response_model=PaginatedResponse[TeamMember])
async def list_team(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    team_type: Optional[TeamType] = Query(None, alias="teamType"),
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Active team members in display order."""
    return await _list(db, page, limit, search, team_type, include_inactive=False)


@router.get("/admin/teams", response_model=PaginatedResponse[TeamMember])
async def list_admin_team(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    team_type: Optional[TeamType] = Query(None, alias="teamType"),
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Every team member, active or not."""
    return await _list(db, page, limit, search, team_type, include_inactive=True)


@router.get("/teams/{member_id}", response_model=TeamMember)
async def get_team_member(
    member_id: str,
    db: AsyncSession = DB_DEPENDENCY,
    viewer: Optional[User] = OPTIONAL_USER_DEPENDENCY,
) -> JSONResponse:
    """One team member; inactive members are visible to admins only."""
    team_service = TeamService(db)

    try:
        member = await team_service.get_or_raise(member_id, viewer)
        return JSONResponse(status_code=200, content=_convert_member_to_schema(member).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in team member retrieval",
            extra={"member_id": member_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/admin/teams", response_model=TeamMember, status_code=201)
async def create_team_member(
    request: CreateTeamMemberRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Add a team member."""
    team_service = TeamService(db)

    try:
        member = await team_service.create(request, admin)
        return JSONResponse(status_code=201, content=_convert_member_to_schema(member).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error in team member creation", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("/admin/teams/{member_id}", response_model=TeamMember)
async def update_team_member(
    member_id: str,
    request: UpdateTeamMemberRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Edit a team member."""
    team_service = TeamService(db)

    try:
        member = await team_service.update(member_id, request, admin)
        return JSONResponse(status_code=200, content=_convert_member_to_schema(member).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in team member update",
            extra={"member_id": member_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.delete("/admin/teams/{member_id}", response_model=MessageResponse)
async def delete_team_member(
    member_id: str,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Remove a team member."""
    team_service = TeamService(db)

    try:
        await team_service.delete(member_id, admin)
        return JSONResponse(
            status_code=200,
            content=MessageResponse(message="Team member deleted successfully").to_response(),
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in team member deletion",
            extra={"member_id": member_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
