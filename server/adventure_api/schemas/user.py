"""User dashboard and admin user schemas."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field, field_validator, model_validator

from ..models.user import UserRole
from .common import CamelModel


class Address(CamelModel):
    """Postal address."""

    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None


class ContactPerson(CamelModel):
    """Emergency contact stored on a profile."""

    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=5)
    relationship: str = Field(..., min_length=1)


class Profile(CamelModel):
    """User profile response schema."""

    id: str
    name: str
    email: str
    role: UserRole
    phone: Optional[str] = None
    avatar: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[Address] = None
    emergency_contact: Optional[ContactPerson] = None
    preferences: Dict[str, Any] = Field(default_factory=dict)
    is_verified: bool
    created_at: datetime


class UpdateProfileRequest(CamelModel):
    """Request schema for editing one's own profile."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    avatar: Optional[str] = Field(None, max_length=500)
    date_of_birth: Optional[date] = None
    address: Optional[Address] = None
    emergency_contact: Optional[ContactPerson] = None
    preferences: Optional[Dict[str, Any]] = None

    @field_validator("name", "preferences")
    @classmethod
    def reject_null(cls, v):
        # Both columns are NOT NULL; omit the key to leave them unchanged
        if v is None:
            raise ValueError("cannot be null")
        return v


class CreateReviewRequest(CamelModel):
    """Request schema for a customer review."""

    event_id: str
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    review: str = Field(..., min_length=10, max_length=2000)


class AdminUser(CamelModel):
    """User as seen in the back-office."""

    id: str
    name: str
    email: str
    role: UserRole
    phone: Optional[str] = None
    is_active: bool
    is_verified: bool
    is_banned: bool
    ban_reason: Optional[str] = None
    banned_at: Optional[datetime] = None
    password_reset_required: bool
    created_at: datetime
    booking_count: int = 0


class UserAction(str, Enum):
    """Administrative actions on a user account."""
    BAN = "ban"
    UNBAN = "unban"
    VERIFY = "verify"
    UNVERIFY = "unverify"
    CHANGE_ROLE = "changeRole"
    RESET_PASSWORD = "resetPassword"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"


class UserActionRequest(CamelModel):
    """Request schema for an admin user action."""

    action: UserAction
    reason: Optional[str] = Field(None, max_length=500)
    role: Optional[UserRole] = None

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @model_validator(mode="after")
    def check_required_arguments(self) -> "UserActionRequest":
        if self.action == UserAction.BAN and not self.reason:
            raise ValueError("Ban reason is required")
        if self.action == UserAction.CHANGE_ROLE and self.role is None:
            raise ValueError("Role is required for changeRole")
        return self


class UserActionResponse(CamelModel):
    """Result of an admin user action."""

    success: bool = True
    message: str
    user: AdminUser


class AuditLogEntry(CamelModel):
    """One recorded administrative action."""

    id: str
    admin_id: Optional[str] = None
    admin_email: str
    action: str
    target_type: str
    target_id: str
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
