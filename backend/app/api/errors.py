"""Translate service-layer errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from app.services.errors import (
    DomainError,
    DuplicateBooking,
    DuplicateFavorite,
    DuplicateReservation,
    InvalidConfiguration,
    InvalidTransition,
    LimitReached,
    NotAuthorized,
    NotFound,
    PropertyUnavailable,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (NotAuthorized, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (DuplicateReservation, status.HTTP_409_CONFLICT),
    (DuplicateBooking, status.HTTP_409_CONFLICT),
    (DuplicateFavorite, status.HTTP_409_CONFLICT),
    (PropertyUnavailable, status.HTTP_409_CONFLICT),
)


def to_http(exc: ValueError) -> HTTPException:
    """Map a ``ValueError`` raised by a service to an ``HTTPException``."""
    if isinstance(exc, LimitReached):
        return HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "code": exc.code,
                "message": exc.message,
                "kind": exc.kind,
                "limit": exc.limit,
                "upgrade_required": True,
            },
        )
    if isinstance(exc, InvalidConfiguration):
        logger.error("Invalid property configuration: %s", exc.message)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to process this property right now",
        )
    if isinstance(exc, DomainError):
        for error_cls, status_code in _STATUS_BY_ERROR:
            if isinstance(exc, error_cls):
                return HTTPException(
                    status_code=status_code,
                    detail={"code": exc.code, "message": exc.message},
                )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
