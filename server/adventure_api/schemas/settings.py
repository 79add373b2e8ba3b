"""Site settings schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from .common import CamelModel


class SiteSettings(CamelModel):
    """Full settings view for administrators."""

    id: str
    site_name: str
    site_url: Optional[str] = None
    branding: Dict[str, Any] = Field(default_factory=dict)
    contact: Dict[str, Any] = Field(default_factory=dict)
    seo: Dict[str, Any] = Field(default_factory=dict)
    payment: Dict[str, Any] = Field(default_factory=dict)
    booking: Dict[str, Any] = Field(default_factory=dict)
    features: Dict[str, Any] = Field(default_factory=dict)
    version: str
    updated_at: datetime


class PublicSiteSettings(CamelModel):
    """Settings safe to expose to anonymous visitors."""

    site_name: str
    site_url: Optional[str] = None
    branding: Dict[str, Any] = Field(default_factory=dict)
    contact: Dict[str, Any] = Field(default_factory=dict)
    seo: Dict[str, Any] = Field(default_factory=dict)
    payment: Dict[str, Any] = Field(default_factory=dict)
    booking: Dict[str, Any] = Field(default_factory=dict)
    features: Dict[str, Any] = Field(default_factory=dict)


class UpdateSettingsRequest(CamelModel):
    """
    Settings update.

    Either ``section`` plus ``data`` (merged into that section), or any of
    the top-level sections, each merged into its stored value.
    """

    section: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    site_name: Optional[str] = Field(None, min_length=1, max_length=100)
    site_url: Optional[str] = Field(None, max_length=255)
    branding: Optional[Dict[str, Any]] = None
    contact: Optional[Dict[str, Any]] = None
    seo: Optional[Dict[str, Any]] = None
    payment: Optional[Dict[str, Any]] = None
    booking: Optional[Dict[str, Any]] = None
    features: Optional[Dict[str, Any]] = None
