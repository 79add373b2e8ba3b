"""FastAPI dependencies for database, authentication, and idempotency."""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User, UserRole
from .database import get_db
from .exceptions import AuthenticationError, AuthorizationError, ValidationError
from .security import decode_access_token


def _extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an ``Authorization: Bearer ...`` header."""
    if not authorization:
        raise AuthenticationError(detail="Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError as e:
        raise AuthenticationError(detail="Invalid authorization header format") from e

    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    return token


async def _load_user(db: AsyncSession, token: str) -> User:
    payload = decode_access_token(token)

    try:
        user_id = UUID(str(payload["sub"]))
    except ValueError as e:
        raise AuthenticationError(detail="Invalid token payload") from e

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError(detail="User no longer exists")

    if user.is_banned:
        raise AuthorizationError(detail="Account has been banned")

    if not user.is_active:
        raise AuthorizationError(detail="Account is deactivated")

    return user


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Authentication dependency that validates Bearer tokens.

    Returns:
        User: The authenticated user

    Raises:
        AuthenticationError: If the token is missing, invalid or expired
        AuthorizationError: If the account is banned or deactivated
    """
    token = _extract_bearer_token(authorization)
    return await _load_user(db, token)


async def get_optional_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Return the authenticated user, or None for anonymous requests."""
    if not authorization:
        return None
    token = _extract_bearer_token(authorization)
    return await _load_user(db, token)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Allow only administrators through."""
    if user.role != UserRole.ADMIN:
        raise AuthorizationError(
            detail="Admin access required",
            required_role=UserRole.ADMIN.value,
        )
    return user


async def get_idempotency_key(
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key")
) -> Optional[str]:
    """
    Extract and validate an optional idempotency key from request headers.

    Raises:
        ValidationError: If the key is longer than 255 characters
    """
    if not idempotency_key:
        return None

    if len(idempotency_key) > 255:
        raise ValidationError(detail="Idempotency key must be between 1 and 255 characters")

    return idempotency_key


DB_DEPENDENCY = Depends(get_db)
CURRENT_USER_DEPENDENCY = Depends(get_current_user)
OPTIONAL_USER_DEPENDENCY = Depends(get_optional_user)
ADMIN_DEPENDENCY = Depends(require_admin)
IDEMPOTENCY_KEY_DEPENDENCY = Depends(get_idempotency_key)
