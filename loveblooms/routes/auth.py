# loveblooms/routes/auth.py
from __future__ import annotations
import logging
from typing import Optional
from fastapi import APIRouter, Header, HTTPException
from pydantic import BaseModel

from ..settings import settings
from .deps import bearer_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Env-based credentials (simple, no JWT to keep it minimal)

class LoginBody(BaseModel):
    username: str
    password: str

@router.post("/login")
def login(body: LoginBody):
    if body.username == settings.admin_username and body.password == settings.admin_password:
        return {"token": settings.admin_token}
    logger.warning("admin login refused for %r", body.username)
    raise HTTPException(status_code=401, detail="invalid credentials")

@router.get("/me")
def me(token: Optional[str] = None, authorization: Optional[str] = Header(None)):
    if (token or bearer_token(authorization)) == settings.admin_token:
        return {"ok": True, "username": settings.admin_username}
    raise HTTPException(status_code=401, detail="invalid token")
