"""Testimonial-related Pydantic schemas."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import EmailStr, Field

from .common import CamelModel


class TestimonialStatusFilter(str, Enum):
    """Moderation state filter for the admin list."""
    PENDING = "pending"
    APPROVED = "approved"


class Testimonial(CamelModel):
    """Testimonial response schema."""

    id: str
    user_id: Optional[str] = None
    event_id: Optional[str] = None
    customer_name: str
    customer_email: Optional[str] = None
    event_name: Optional[str] = None
    rating: int
    title: Optional[str] = None
    review: str
    images: List[str] = Field(default_factory=list)
    approved: bool
    is_public: bool
    is_featured: bool
    admin_response: Optional[str] = None
    created_at: datetime


class CreateTestimonialRequest(CamelModel):
    """Manual testimonial entry from the back-office."""

    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_email: EmailStr
    event_name: str = Field(..., min_length=1, max_length=200)
    rating: int = Field(..., ge=1, le=5)
    review: str = Field(..., min_length=1, max_length=2000)
    title: Optional[str] = Field(None, max_length=200)
    images: List[str] = Field(default_factory=list)
    approved: bool = True
    is_featured: bool = False


class UpdateTestimonialRequest(CamelModel):
    """Moderation update for a testimonial."""

    approved: Optional[bool] = None
    is_public: Optional[bool] = None
    is_featured: Optional[bool] = None
    admin_response: Optional[str] = Field(None, max_length=1000)
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    review: Optional[str] = Field(None, min_length=1, max_length=2000)
