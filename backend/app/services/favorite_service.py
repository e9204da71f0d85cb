"""Tenant favorites with free-tier limits."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.retry import retry_read
from app.models.favorite import Favorite
from app.models.user import User
from app.services import property_service, quota_service, user_service
from app.services.errors import DomainError, DuplicateFavorite, NotFound
from app.services.quota_service import QuotaKind

logger = logging.getLogger(__name__)


async def list_favorites(
    session: AsyncSession, *, tenant_id: uuid.UUID
) -> Sequence[Favorite]:
    async def _load() -> Sequence[Favorite]:
        result = await session.execute(
            select(Favorite)
            .where(Favorite.tenant_id == tenant_id)
            .order_by(Favorite.created_at.desc())
        )
        return result.scalars().all()

    return await retry_read(_load, session=session)


async def add_favorite(
    session: AsyncSession, *, user: User, property_id: uuid.UUID
) -> Favorite:
    """Save ``property_id`` for ``user`` unless the tier limit is reached."""
    await property_service.get_property(session, property_id)
    existing = await session.execute(
        select(Favorite.id).where(
            Favorite.tenant_id == user.id, Favorite.property_id == property_id
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicateFavorite("Property already in favorites")

    await user_service.lock_user(session, user.id)
    current = await quota_service.count_favorites(session, tenant_id=user.id)
    try:
        quota_service.enforce(user.subscription_tier, QuotaKind.FAVORITE, current)
    except DomainError:
        await session.rollback()
        raise

    favorite = Favorite(tenant_id=user.id, property_id=property_id)
    session.add(favorite)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicateFavorite("Property already in favorites") from exc
    await session.refresh(favorite)
    logger.info("Tenant %s favorited property %s", user.id, property_id)
    return favorite


async def remove_favorite(
    session: AsyncSession, *, tenant_id: uuid.UUID, property_id: uuid.UUID
) -> None:
    result = await session.execute(
        delete(Favorite).where(
            Favorite.tenant_id == tenant_id, Favorite.property_id == property_id
        )
    )
    if result.rowcount == 0:
        await session.rollback()
        raise NotFound("Favorite not found")
    await session.commit()
