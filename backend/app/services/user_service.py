"""User data access helpers."""
from __future__ import annotations

import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.mixins import utcnow
from app.models.user import User


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Return a user by email address."""
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Return a user by ID."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def lock_user(session: AsyncSession, user_id: uuid.UUID) -> None:
    """Take the user's row write lock for the rest of the transaction.

    Serializes quota-counted writes for a single tenant. A no-op update is
    used so the lock is acquired on backends without ``SELECT ... FOR UPDATE``.
    """
    await session.execute(
        update(User).where(User.id == user_id).values(updated_at=utcnow())
    )
