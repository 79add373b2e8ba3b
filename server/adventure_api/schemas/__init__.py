"""Pydantic schemas for request/response validation."""

from .common import CamelModel, MessageResponse, PaginatedResponse, Pagination, Problem, Violation

__all__ = [
    "CamelModel",
    "MessageResponse",
    "PaginatedResponse",
    "Pagination",
    "Problem",
    "Violation",
]
