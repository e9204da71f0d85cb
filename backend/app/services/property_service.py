"""Read-only access to catalog properties."""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.retry import retry_read
from app.models.property import Property
from app.services.errors import NotFound


async def get_property(session: AsyncSession, property_id: uuid.UUID) -> Property:
    """Return the property or raise ``NotFound``."""

    async def _load() -> Property | None:
        return await session.get(Property, property_id)

    property = await retry_read(_load, session=session)
    if property is None:
        raise NotFound("Property not found")
    return property
