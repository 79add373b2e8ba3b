"""Common Pydantic schemas."""

import math
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema that speaks camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_response(self) -> dict:
        """Dump as a JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class Violation(BaseModel):
    """Validation error violation."""

    path: str = Field(..., description="JSON path to the invalid field")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: Optional[str] = Field(None, description="Application-specific error code")
    retryable: Optional[bool] = Field(None, description="Whether the operation can be retried")
    violations: Optional[List[Violation]] = Field(None, description="Validation errors")


class Pagination(CamelModel):
    """Page-number pagination metadata."""

    page: int = Field(..., ge=1, description="Current page (1-based)")
    limit: int = Field(..., ge=1, description="Page size")
    total: int = Field(..., ge=0, description="Total matching records")
    pages: int = Field(..., ge=0, description="Total number of pages")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if total else 0)


class PaginatedResponse(CamelModel, Generic[T]):
    """List payload with pagination metadata."""

    data: List[T] = Field(default_factory=list)
    pagination: Pagination


class MessageResponse(CamelModel):
    """Simple acknowledgement."""

    success: bool = True
    message: str
