"""Quota snapshot endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from app.api.deps import CurrentUser, SessionDep
from app.schemas.quota import QuotaSnapshotRead
from app.services import quota_service

router = APIRouter()


@router.get("", response_model=QuotaSnapshotRead, summary="Current tier usage")
async def read_quota(session: SessionDep, current_user: CurrentUser) -> QuotaSnapshotRead:
    """Return authoritative counts and remaining allowance for the caller."""
    snapshot = await quota_service.snapshot(session, user=current_user)
    return QuotaSnapshotRead.model_validate(snapshot)
