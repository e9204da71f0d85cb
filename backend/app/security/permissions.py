"""Role gates usable as route dependencies."""

from __future__ import annotations

from fastapi import Depends, HTTPException, status

from app.api.deps import CurrentUser
from app.models.user import User, UserRole


def require_roles(*allowed: UserRole):
    """Dependency returning the caller when their role is in ``allowed``."""

    async def _dependency(current_user: CurrentUser) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "not_authorized", "message": "Insufficient permissions"},
            )
        return current_user

    return Depends(_dependency)


require_admin = require_roles(UserRole.ADMIN)

__all__ = ["require_admin", "require_roles"]
