"""Subscription-tier limits for favorites and active reservations."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import and_, func, not_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.favorite import Favorite
from app.models.reservation import (
    ACTIVE_RESERVATION_STATUSES,
    Reservation,
    ReservationStatus,
)
from app.models.user import SubscriptionTier, User
from app.services.errors import LimitReached

LIMIT_REACHED = "limit_reached"


class QuotaKind(str, enum.Enum):
    """Resources counted against a tier."""

    FAVORITE = "favorite"
    RESERVATION = "reservation"


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of a quota evaluation."""

    allowed: bool
    kind: QuotaKind
    limit: int | None
    reason: str | None = None


@dataclass(frozen=True)
class QuotaSnapshot:
    """Authoritative per-request view of a tenant's usage."""

    tier: SubscriptionTier
    active_reservation_count: int
    favorite_count: int
    reservation_limit: int | None
    favorite_limit: int | None

    @property
    def reservations_remaining(self) -> int | None:
        return _remaining(self.reservation_limit, self.active_reservation_count)

    @property
    def favorites_remaining(self) -> int | None:
        return _remaining(self.favorite_limit, self.favorite_count)


def _remaining(limit: int | None, current: int) -> int | None:
    if limit is None:
        return None
    return max(0, limit - current)


def get_limit(tier: SubscriptionTier, kind: QuotaKind) -> int | None:
    """Return the cap for ``kind`` on ``tier``; ``None`` means unlimited."""
    if tier == SubscriptionTier.PREMIUM:
        return None
    settings = get_settings()
    if kind == QuotaKind.FAVORITE:
        return settings.free_tier_favorite_limit
    return settings.free_tier_reservation_limit


def evaluate(
    tier: SubscriptionTier, kind: QuotaKind, current_count: int
) -> QuotaDecision:
    """Decide whether one more ``kind`` may be added at ``current_count``."""
    if current_count < 0:
        raise ValueError("current_count must be non-negative")
    limit = get_limit(tier, kind)
    if limit is None or current_count < limit:
        return QuotaDecision(allowed=True, kind=kind, limit=limit)
    return QuotaDecision(allowed=False, kind=kind, limit=limit, reason=LIMIT_REACHED)


def enforce(tier: SubscriptionTier, kind: QuotaKind, current_count: int) -> None:
    """Raise ``LimitReached`` when ``evaluate`` denies."""
    decision = evaluate(tier, kind, current_count)
    if decision.allowed:
        return
    noun = "favorites" if kind == QuotaKind.FAVORITE else "active reservations"
    raise LimitReached(
        f"Free tier limit reached. You can only have {decision.limit} {noun}. "
        f"Upgrade to premium for unlimited {noun}.",
        kind=kind.value,
        limit=decision.limit or 0,
    )


async def count_active_reservations(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    now: datetime | None = None,
) -> int:
    """Count pending/approved holds, ignoring pending ones already past expiry."""
    now = now or datetime.now(UTC)
    stale_pending = and_(
        Reservation.status == ReservationStatus.PENDING,
        Reservation.expiry_date < now,
    )
    stmt = (
        select(func.count())
        .select_from(Reservation)
        .where(
            Reservation.tenant_id == tenant_id,
            Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
            not_(stale_pending),
        )
    )
    return int((await session.execute(stmt)).scalar_one())


async def count_favorites(session: AsyncSession, *, tenant_id: uuid.UUID) -> int:
    stmt = select(func.count()).select_from(Favorite).where(
        Favorite.tenant_id == tenant_id
    )
    return int((await session.execute(stmt)).scalar_one())


async def snapshot(
    session: AsyncSession, *, user: User, now: datetime | None = None
) -> QuotaSnapshot:
    """Recompute usage for ``user`` from stored reservations and favorites."""
    reservations = await count_active_reservations(
        session, tenant_id=user.id, now=now
    )
    favorites = await count_favorites(session, tenant_id=user.id)
    return QuotaSnapshot(
        tier=user.subscription_tier,
        active_reservation_count=reservations,
        favorite_count=favorites,
        reservation_limit=get_limit(user.subscription_tier, QuotaKind.RESERVATION),
        favorite_limit=get_limit(user.subscription_tier, QuotaKind.FAVORITE),
    )
