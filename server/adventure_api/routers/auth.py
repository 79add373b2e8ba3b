"""Authentication router for accounts and one-time passwords."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CURRENT_USER_DEPENDENCY, DB_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.user import User
from ..schemas.auth import (
    LoginRequest,
    OTPSentResponse,
    OTPVerifiedResponse,
    RegisterRequest,
    ResetPasswordRequest,
    SendOTPRequest,
    TokenResponse,
    UserSummary,
    VerifyOTPRequest,
)
from ..schemas.common import MessageResponse
from ..services.auth_service import AuthService
from ..services.notifications import EmailSender, get_email_sender

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

EMAIL_SENDER_DEPENDENCY = Depends(get_email_sender)


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(request: RegisterRequest, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Create a customer account and sign it in."""
    auth_service = AuthService(db)

    try:
        user = await auth_service.register(request)
        token = TokenResponse.model_validate(auth_service.issue_token(user))
        return JSONResponse(status_code=201, content=token.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error in registration", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Exchange email and password for a bearer token."""
    auth_service = AuthService(db)

    try:
        user = await auth_service.authenticate(request)
        token = TokenResponse.model_validate(auth_service.issue_token(user))
        return JSONResponse(status_code=200, content=token.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error in login", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/me", response_model=UserSummary)
async def me(user: User = CURRENT_USER_DEPENDENCY) -> JSONResponse:
    """The signed-in account."""
    summary = UserSummary(
        id=str(user.id),
        name=user.name,
        email=user.email,
        role=str(getattr(user.role, "value", user.role)),
        is_verified=user.is_verified,
    )
    return JSONResponse(status_code=200, content=summary.to_response())


@router.post("/send-otp", response_model=OTPSentResponse)
async def send_otp(
    request: SendOTPRequest,
    db: AsyncSession = DB_DEPENDENCY,
    sender: EmailSender = EMAIL_SENDER_DEPENDENCY,
) -> JSONResponse:
    """Email a one-time password for verification or password reset."""
    auth_service = AuthService(db)

    try:
        expires_in = await auth_service.send_otp(request.email, request.type, sender)
        return JSONResponse(status_code=200, content=OTPSentResponse(expires_in=expires_in).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error sending OTP",
            extra={"purpose": request.type.value, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/verify-otp", response_model=OTPVerifiedResponse)
async def verify_otp(request: VerifyOTPRequest, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Check a one-time password."""
    auth_service = AuthService(db)

    try:
        await auth_service.verify_otp(request)
        return JSONResponse(status_code=200, content=OTPVerifiedResponse().to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error verifying OTP", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(request: ResetPasswordRequest, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Set a new password using a one-time password."""
    auth_service = AuthService(db)

    try:
        await auth_service.reset_password(request)
        return JSONResponse(
            status_code=200,
            content=MessageResponse(message="Password reset successfully").to_response(),
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error resetting password", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e
