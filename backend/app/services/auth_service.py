"""Credential checks and token issuance."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.security import create_access_token, verify_password
from app.models.user import User
from app.services import user_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    expires_in: int


async def authenticate_user(
    session: AsyncSession, *, email: str, password: str
) -> User | None:
    """Return the active user matching the credentials, else ``None``."""
    user = await user_service.get_user_by_email(session, email=email.strip().lower())
    if user is None or not user.is_active:
        logger.info("Login rejected for unknown or inactive account")
        return None
    if not verify_password(password, user.hashed_password):
        logger.info("Login rejected for user %s: bad password", user.id)
        return None
    return user


def issue_token(user: User) -> IssuedToken:
    """Sign a bearer token carrying the user's role and tier as hints."""
    lifetime = get_settings().access_token_expire_minutes * 60
    token = create_access_token(
        str(user.id), role=user.role.value, tier=user.subscription_tier.value
    )
    return IssuedToken(access_token=token, expires_in=lifetime)
