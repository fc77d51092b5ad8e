# loveblooms/routes/deps.py
from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException

from ..errors import ShopError
from ..settings import settings


def http_error(e: ShopError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    return token.strip() if scheme.lower() == "bearer" else None


def require_admin(
    authorization: Optional[str] = Header(None),
    x_admin_token: Optional[str] = Header(None),
) -> str:
    """Admin routes accept `Authorization: Bearer <token>` or `x-admin-token`."""
    token = bearer_token(authorization) or x_admin_token
    if token != settings.admin_token:
        raise HTTPException(status_code=401, detail="admin token required")
    return settings.admin_username
