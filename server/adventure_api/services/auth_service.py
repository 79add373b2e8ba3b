"""Authentication service: accounts, tokens and one-time passwords."""

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..core.security import create_access_token, generate_otp, hash_password, verify_password
from ..models.user import User, UserRole
from ..schemas.auth import (
    LoginRequest,
    OTPPurpose,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyOTPRequest,
)
from .notifications import EmailSender

logger = logging.getLogger(__name__)


class AuthService:
    """Service for account and credential operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    def issue_token(self, user: User) -> dict[str, Any]:
        """Build the token response payload for a user."""
        token = create_access_token(
            subject=str(user.id),
            email=user.email,
            role=str(getattr(user.role, "value", user.role)),
        )
        return {
            "access_token": token,
            "token_type": "bearer",
            "expires_in": settings.access_token_expire_minutes * 60,
            "user": {
                "id": str(user.id),
                "name": user.name,
                "email": user.email,
                "role": str(getattr(user.role, "value", user.role)),
                "is_verified": user.is_verified,
            },
        }

    async def register(self, request: RegisterRequest) -> User:
        """
        Create a customer account.

        Raises:
            ConflictError: If the email is already registered
        """
        if await self.get_user_by_email(request.email):
            raise ConflictError(detail="An account with this email already exists")

        user = User(
            name=request.name.strip(),
            email=request.email.lower(),
            password_hash=hash_password(request.password),
            phone=request.phone,
            role=UserRole.USER,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info("User registered", extra={"user_id": str(user.id)})
        return user

    async def authenticate(self, request: LoginRequest) -> User:
        """
        Check credentials.

        Raises:
            AuthenticationError: If the email or password is wrong
            AuthorizationError: If the account is banned or deactivated
        """
        user = await self.get_user_by_email(request.email)
        if user is None or not verify_password(request.password, user.password_hash):
            logger.warning("Login failed", extra={"email": request.email.lower()})
            raise AuthenticationError(detail="Invalid email or password")

        if user.is_banned:
            raise AuthorizationError(detail="Account has been banned")
        if not user.is_active:
            raise AuthorizationError(detail="Account is deactivated")

        logger.info("User logged in", extra={"user_id": str(user.id)})
        return user

    async def send_otp(self, email: str, purpose: OTPPurpose, sender: EmailSender) -> int:
        """
        Issue a one-time password and hand it to the email sender.

        Returns:
            Seconds until the code expires

        Raises:
            NotFoundError: If no account uses the email
        """
        user = await self.get_user_by_email(email)
        if user is None:
            raise NotFoundError(resource_type="user", detail="No account found with this email")

        otp = generate_otp()
        user.otp_hash = hash_password(otp)
        user.otp_expires_at = datetime.utcnow() + timedelta(seconds=settings.otp_ttl_seconds)
        await self.db.commit()

        await sender.send_otp(user.email, user.name, otp, purpose.value)

        logger.info("OTP issued", extra={"user_id": str(user.id), "purpose": purpose.value})
        return settings.otp_ttl_seconds

    async def _check_otp(self, email: str, otp: str) -> User:
        user = await self.get_user_by_email(email)
        if user is None or not user.otp_hash:
            raise ValidationError(detail="Invalid or expired OTP")
        if user.otp_expires_at is None or user.otp_expires_at < datetime.utcnow():
            raise ValidationError(detail="OTP has expired")
        if not verify_password(otp, user.otp_hash):
            logger.warning("OTP mismatch", extra={"user_id": str(user.id)})
            raise ValidationError(detail="Invalid or expired OTP")
        return user

    async def verify_otp(self, request: VerifyOTPRequest) -> User:
        """Check an OTP and mark the account verified; the OTP stays usable for a reset."""
        user = await self._check_otp(request.email, request.otp)
        if not user.is_verified:
            user.is_verified = True
            user.verified_at = datetime.utcnow()
            await self.db.commit()
        return user

    async def reset_password(self, request: ResetPasswordRequest) -> User:
        """Set a new password with a valid OTP, then invalidate the OTP."""
        user = await self._check_otp(request.email, request.otp)

        user.password_hash = hash_password(request.new_password)
        user.password_reset_required = False
        user.otp_hash = None
        user.otp_expires_at = None
        await self.db.commit()

        logger.info("Password reset", extra={"user_id": str(user.id)})
        return user
