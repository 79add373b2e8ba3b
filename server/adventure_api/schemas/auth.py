"""Authentication-related Pydantic schemas."""

from enum import Enum
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from .common import CamelModel


class OTPPurpose(str, Enum):
    """Why a one-time password was requested."""
    RESET = "reset"
    VERIFICATION = "verification"
    LOGIN = "login"


class RegisterRequest(CamelModel):
    """Request schema for account registration."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=20)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(CamelModel):
    """Request schema for password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class SendOTPRequest(CamelModel):
    """Request schema for sending a one-time password."""

    email: EmailStr
    type: OTPPurpose = OTPPurpose.RESET


class VerifyOTPRequest(CamelModel):
    """Request schema for checking a one-time password."""

    email: EmailStr
    otp: str = Field(..., min_length=4, max_length=10)


class ResetPasswordRequest(CamelModel):
    """Request schema for resetting a password with an OTP."""

    email: EmailStr
    otp: str = Field(..., min_length=4, max_length=10)
    new_password: str = Field(..., min_length=6, max_length=128)


class TokenResponse(CamelModel):
    """Bearer token issued after login or registration."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: "UserSummary"


class UserSummary(CamelModel):
    """Minimal user view embedded in auth responses."""

    id: str
    name: str
    email: str
    role: str
    is_verified: bool


class OTPSentResponse(CamelModel):
    """Acknowledgement that an OTP was issued."""

    message: str = "OTP sent successfully"
    expires_in: int


class OTPVerifiedResponse(CamelModel):
    """Acknowledgement that an OTP matched."""

    message: str = "OTP verified successfully"
    verified: bool = True


TokenResponse.model_rebuild()
