# athletehub/authz.py
from __future__ import annotations

from typing import Callable
from fastapi import Depends, HTTPException, status

from athletehub.auth import get_current_user


def require_role(*allowed_roles: str) -> Callable:
    """
    Usage:
        @router.post("/", status_code=201)
        def create(user: dict = Depends(require_role("coach", "manager"))):
            ...
    """
    allowed = set(r.strip().lower() for r in allowed_roles if r)

    def _dep(user: dict = Depends(get_current_user)) -> dict:
        role = (user.get("role") or "").strip().lower()
        if role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {role or 'unknown'} is not authorized to access this route",
            )
        return user

    return _dep
