"""Login endpoint."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from app.api.deps import SessionDep
from app.core.config import get_settings
from app.schemas.auth import Token
from app.security.rate_limit import rate_limit
from app.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/token",
    response_model=Token,
    summary="Exchange email and password for a bearer token",
    dependencies=[rate_limit(get_settings().rate_limit_login)],
)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    session: SessionDep,
) -> Token:
    user = await auth_service.authenticate_user(
        session, email=form_data.username, password=form_data.password
    )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    issued = auth_service.issue_token(user)
    logger.info("Issued access token for user %s", user.id)
    return Token(access_token=issued.access_token, expires_in=issued.expires_in)
