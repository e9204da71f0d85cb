"""Favorites endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Response, status

from app.api.deps import CurrentUser, SessionDep
from app.api.errors import to_http
from app.schemas.favorite import FavoriteCreate, FavoriteRead
from app.services import favorite_service

router = APIRouter()


@router.get("", response_model=list[FavoriteRead], summary="List favorites")
async def list_favorites(
    session: SessionDep, current_user: CurrentUser
) -> list[FavoriteRead]:
    favorites = await favorite_service.list_favorites(
        session, tenant_id=current_user.id
    )
    return [FavoriteRead.model_validate(favorite) for favorite in favorites]


@router.post(
    "",
    response_model=FavoriteRead,
    status_code=status.HTTP_201_CREATED,
    summary="Save a property",
)
async def add_favorite(
    payload: FavoriteCreate, session: SessionDep, current_user: CurrentUser
) -> FavoriteRead:
    try:
        favorite = await favorite_service.add_favorite(
            session, user=current_user, property_id=payload.property_id
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return FavoriteRead.model_validate(favorite)


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Remove a saved property",
)
async def remove_favorite(
    property_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> Response:
    try:
        await favorite_service.remove_favorite(
            session, tenant_id=current_user.id, property_id=property_id
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
