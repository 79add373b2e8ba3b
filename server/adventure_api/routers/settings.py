"""Site settings router."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import ADMIN_DEPENDENCY, DB_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.user import User
from ..schemas.settings import PublicSiteSettings, SiteSettings, UpdateSettingsRequest
from ..services.settings_service import SettingsService, public_view

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["settings"])


def _convert_settings_to_schema(settings_model) -> SiteSettings:
    """Convert settings model to schema."""
    return SiteSettings(
        id=str(settings_model.id),
        site_name=settings_model.site_name,
        site_url=settings_model.site_url,
        branding=settings_model.branding or {},
        contact=settings_model.contact or {},
        seo=settings_model.seo or {},
        payment=settings_model.payment or {},
        booking=settings_model.booking or {},
        features=settings_model.features or {},
        version=settings_model.version,
        updated_at=settings_model.updated_at,
    )


@router.get("/settings", response_model=PublicSiteSettings)
async def get_public_settings(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Public site settings; payment credentials are omitted."""
    settings_service = SettingsService(db)

    try:
        site = await settings_service.get_active()
        return JSONResponse(status_code=200, content=PublicSiteSettings(**public_view(site)).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error reading settings", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/admin/settings", response_model=SiteSettings)
async def get_admin_settings(
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Full site settings."""
    settings_service = SettingsService(db)

    try:
        site = await settings_service.get_active()
        return JSONResponse(status_code=200, content=_convert_settings_to_schema(site).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error reading admin settings", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("/admin/settings", response_model=SiteSettings)
async def update_settings(
    request: UpdateSettingsRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """
    Merge changes into the site settings.

    Nested keys not mentioned in the update keep their values; the settings
    version is bumped on every successful update.
    """
    settings_service = SettingsService(db)

    try:
        site = await settings_service.update(request, admin)
        return JSONResponse(status_code=200, content=_convert_settings_to_schema(site).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error updating settings",
            extra={"section": request.section, "admin_id": str(admin.id), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
