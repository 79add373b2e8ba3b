"""Admin user management and audit log router."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import ADMIN_DEPENDENCY, DB_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.user import User, UserRole
from ..schemas.common import PaginatedResponse, Pagination
from ..schemas.user import AdminUser, AuditLogEntry, UserActionRequest, UserActionResponse
from ..services.admin_user_service import AdminUserService
from ..services.audit_service import AuditService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _convert_user_to_schema(user_model, booking_count: int = 0) -> AdminUser:
    """Convert user model to admin schema."""
    return AdminUser(
        id=str(user_model.id),
        name=user_model.name,
        email=user_model.email,
        role=UserRole(user_model.role),
        phone=user_model.phone,
        is_active=user_model.is_active,
        is_verified=user_model.is_verified,
        is_banned=user_model.is_banned,
        ban_reason=user_model.ban_reason,
        banned_at=user_model.banned_at,
        password_reset_required=user_model.password_reset_required,
        created_at=user_model.created_at,
        booking_count=booking_count,
    )


def _convert_audit_entry_to_schema(entry_model) -> AuditLogEntry:
    return AuditLogEntry(
        id=str(entry_model.id),
        admin_id=str(entry_model.admin_id) if entry_model.admin_id else None,
        admin_email=entry_model.admin_email,
        action=entry_model.action,
        target_type=entry_model.target_type,
        target_id=entry_model.target_id,
        details=entry_model.details or {},
        created_at=entry_model.created_at,
    )


@router.get("/users", response_model=PaginatedResponse[AdminUser])
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    role: Optional[UserRole] = None,
    status: Optional[str] = None,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """
    List users with their booking counts.

    ``status`` is one of active, inactive, banned, verified or unverified.
    """
    admin_user_service = AdminUserService(db)

    try:
        users, total = await admin_user_service.list_users(
            page=page, limit=limit, search=search, role=role, status=status
        )
        counts = await admin_user_service.booking_counts([u.id for u in users])

        response_data = PaginatedResponse[AdminUser](
            data=[_convert_user_to_schema(u, counts.get(u.id, 0)) for u in users],
            pagination=Pagination.build(page, limit, total),
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in user list",
            extra={"page": page, "status": status, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/users/{user_id}", response_model=AdminUser)
async def get_user(
    user_id: str,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Get one user."""
    admin_user_service = AdminUserService(db)

    try:
        user = await admin_user_service.get_user_or_raise(user_id)
        counts = await admin_user_service.booking_counts([user.id])
        return JSONResponse(
            status_code=200,
            content=_convert_user_to_schema(user, counts.get(user.id, 0)).to_response(),
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in user retrieval",
            extra={"user_id": user_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/users/{user_id}/actions", response_model=UserActionResponse)
async def apply_user_action(
    user_id: str,
    request: UserActionRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Ban, unban, verify, change role, force a password reset or (de)activate a user."""
    admin_user_service = AdminUserService(db)

    try:
        user, message = await admin_user_service.apply_action(user_id, request, admin)
        counts = await admin_user_service.booking_counts([user.id])

        response_data = UserActionResponse(
            message=message,
            user=_convert_user_to_schema(user, counts.get(user.id, 0)),
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in user action",
            extra={"user_id": user_id, "action": request.action.value, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/audit-logs", response_model=PaginatedResponse[AuditLogEntry])
async def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    target_type: Optional[str] = Query(None, alias="targetType"),
    target_id: Optional[str] = Query(None, alias="targetId"),
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Recorded administrative actions, newest first."""
    audit_service = AuditService(db)

    try:
        entries, total = await audit_service.list_entries(
            target_type=target_type, target_id=target_id, page=page, limit=limit
        )
        response_data = PaginatedResponse[AuditLogEntry](
            data=[_convert_audit_entry_to_schema(e) for e in entries],
            pagination=Pagination.build(page, limit, total),
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error in audit log list", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e
