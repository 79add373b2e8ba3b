"""Team member schemas."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import EmailStr, Field, field_validator

from ..models.team import TeamType
from .common import CamelModel


class TeamMember(CamelModel):
    """Team member response schema."""

    id: str
    name: str
    role: str
    team_type: TeamType
    experience: Optional[str] = None
    image: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    bio: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    social_media: Dict[str, str] = Field(default_factory=dict)
    is_active: bool
    order: int
    created_at: datetime


def _clean_specialties(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    return [value.strip() for value in values if value and value.strip()]


class CreateTeamMemberRequest(CamelModel):
    """Request schema for adding a team member."""

    name: str = Field(..., min_length=1, max_length=100)
    role: str = Field(..., min_length=1, max_length=100)
    team_type: TeamType = TeamType.CORE_TEAM
    experience: Optional[str] = Field(None, max_length=50)
    image: Optional[str] = Field(None, max_length=500)
    specialties: List[str] = Field(default_factory=list)
    bio: Optional[str] = Field(None, max_length=1000)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    social_media: Dict[str, str] = Field(default_factory=dict)
    is_active: bool = True
    order: int = Field(0, ge=0)

    @field_validator("specialties")
    @classmethod
    def drop_blank_specialties(cls, v: List[str]) -> List[str]:
        return _clean_specialties(v)


class UpdateTeamMemberRequest(CamelModel):
    """Partial update of a team member; omitted fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[str] = Field(None, min_length=1, max_length=100)
    team_type: Optional[TeamType] = None
    experience: Optional[str] = Field(None, max_length=50)
    image: Optional[str] = Field(None, max_length=500)
    specialties: Optional[List[str]] = None
    bio: Optional[str] = Field(None, max_length=1000)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    social_media: Optional[Dict[str, str]] = None
    is_active: Optional[bool] = None
    order: Optional[int] = Field(None, ge=0)

    @field_validator("specialties")
    @classmethod
    def drop_blank_specialties(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_specialties(v)

    @field_validator("name", "role", "team_type", "specialties", "social_media", "is_active", "order")
    @classmethod
    def reject_null(cls, v):
        # Required columns; omit the key to leave them unchanged
        if v is None:
            raise ValueError("cannot be null")
        return v
