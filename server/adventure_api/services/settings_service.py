"""Site settings singleton service."""

import copy
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings as app_settings
from ..core.exceptions import ValidationError
from ..models.site_settings import SETTINGS_SECTIONS, SiteSettings
from ..models.user import User
from ..schemas.settings import UpdateSettingsRequest
from .audit_service import AuditService

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: dict[str, Any] = {
    "site_name": "Adventure Escapes",
    "site_url": None,
    "branding": {"logo": None, "favicon": None, "primaryColor": "#0f766e", "secondaryColor": "#f59e0b"},
    "contact": {"email": None, "phone": None, "whatsapp": None, "address": None, "socialLinks": {}},
    "seo": {"metaTitle": "Adventure Escapes", "metaDescription": "", "keywords": []},
    "payment": {
        "currency": app_settings.currency,
        "razorpay": {"enabled": True, "keyId": app_settings.razorpay_key_id},
    },
    "booking": {
        "advanceBookingDays": 2,
        "maxParticipantsPerBooking": 20,
        "cancellationPolicy": "",
        "refundPolicy": "",
    },
    "features": {"testimonials": True, "stories": True, "wishlist": True, "reviews": True},
}

# Payment keys never shown to anonymous visitors
PRIVATE_PAYMENT_KEYS = ("razorpay",)


def _merge(current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``changes`` into a copy of ``current``."""
    merged = copy.deepcopy(current or {})
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def bump_version(version: str) -> str:
    """Increment the patch number of a ``major.minor.patch`` version."""
    parts = (version or "1.0.0").split(".")
    try:
        parts[-1] = str(int(parts[-1]) + 1)
    except ValueError:
        return "1.0.1"
    return ".".join(parts)


def public_view(site: SiteSettings) -> dict[str, Any]:
    """Settings safe for anonymous visitors."""
    payment = {k: v for k, v in (site.payment or {}).items() if k not in PRIVATE_PAYMENT_KEYS}
    return {
        "site_name": site.site_name,
        "site_url": site.site_url,
        "branding": site.branding or {},
        "contact": site.contact or {},
        "seo": site.seo or {},
        "payment": payment,
        "booking": site.booking or {},
        "features": site.features or {},
    }


class SettingsService:
    """Service for reading and updating the active site settings."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def get_active(self) -> SiteSettings:
        """Return the active settings, creating the defaults on first read."""
        stmt = select(SiteSettings).where(SiteSettings.is_active.is_(True))
        site = (await self.db.execute(stmt)).scalar_one_or_none()
        if site is not None:
            return site

        site = SiteSettings(is_active=True, **copy.deepcopy(DEFAULT_SETTINGS))
        self.db.add(site)
        try:
            await self.db.commit()
        except IntegrityError:
            # Another request created the singleton first
            await self.db.rollback()
            return (await self.db.execute(stmt)).scalar_one()

        await self.db.refresh(site)
        logger.info("Default site settings created", extra={"settings_id": str(site.id)})
        return site

    async def update(self, request: UpdateSettingsRequest, admin: User) -> SiteSettings:
        """
        Merge a section update into the active settings.

        Raises:
            ValidationError: If the section is unknown or the payload is empty
        """
        site = await self.get_active()
        changed: list[str] = []

        if request.section is not None:
            if request.section not in SETTINGS_SECTIONS:
                raise ValidationError(
                    detail=f"Unknown settings section: {request.section}",
                    errors=[f"section must be one of {', '.join(SETTINGS_SECTIONS)}"],
                )
            if not request.data:
                raise ValidationError(detail="data is required when section is given")
            setattr(site, request.section, _merge(getattr(site, request.section), request.data))
            changed.append(request.section)

        for section in SETTINGS_SECTIONS:
            value = getattr(request, section)
            if section in request.model_fields_set and value is not None:
                setattr(site, section, _merge(getattr(site, section), value))
                changed.append(section)

        for field in ("site_name", "site_url"):
            if field in request.model_fields_set and getattr(request, field) is not None:
                setattr(site, field, getattr(request, field))
                changed.append(field)

        if not changed:
            raise ValidationError(detail="No settings supplied")

        site.version = bump_version(site.version)
        site.last_updated_by = admin.id
        self.audit.record(admin, "settings.update", "settings", str(site.id),
                          {"sections": sorted(set(changed)), "version": site.version})
        await self.db.commit()
        await self.db.refresh(site)

        logger.info(
            "Site settings updated",
            extra={"sections": sorted(set(changed)), "version": site.version, "admin_id": str(admin.id)}
        )
        return site
