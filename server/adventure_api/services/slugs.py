"""Slug and identifier helpers shared by the content services."""

import re
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lower-case, hyphen-separated ASCII slug."""
    slug = _NON_ALNUM.sub("-", text.lower()).strip("-")
    return slug or "item"


async def unique_slug(db: AsyncSession, model: Any, base: str, exclude_id: Optional[UUID] = None) -> str:
    """Append -2, -3, ... to ``base`` until no row of ``model`` uses it."""
    candidate = base
    suffix = 2
    while True:
        stmt = select(model.id).where(model.slug == candidate)
        if exclude_id is not None:
            stmt = stmt.where(model.id != exclude_id)
        if (await db.execute(stmt)).first() is None:
            return candidate
        candidate = f"{base}-{suffix}"
        suffix += 1


def parse_uuid(value: Any) -> Optional[UUID]:
    """Parse a UUID, returning None for anything that is not one."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None
