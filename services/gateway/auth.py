from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request

from packages.features.users.users import get_user, is_admin

logger = logging.getLogger(__name__)

DEFAULT_SECRET = "changeme"
ALGORITHM = "HS256"


def _secret() -> str:
    return (os.getenv("JWT_SECRET") or "").strip() or DEFAULT_SECRET


def _expires_days() -> int:
    try:
        return max(1, int(os.getenv("JWT_EXPIRES_DAYS") or 7))
    except ValueError:
        return 7


def create_access_token(user: dict) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.get("id")),
        "role": str(user.get("role") or "client"),
        "iat": now,
        "exp": now + timedelta(days=_expires_days()),
    }
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    return jwt.decode(token, _secret(), algorithms=[ALGORITHM])


def _bearer_token(request: Request) -> str:
    header = request.headers.get("authorization") or ""
    if not header.lower().startswith("bearer "):
        return ""
    return header.split(" ", 1)[1].strip()


def get_optional_user(request: Request) -> Optional[dict]:
    """Resolve the bearer token to a user, or None when absent/invalid."""
    token = _bearer_token(request)
    if not token:
        return None
    try:
        payload = decode_token(token)
    except jwt.InvalidTokenError:
        return None
    u = get_user(str(payload.get("sub") or ""))
    if not u or not u.get("isActive", True):
        return None
    return u


def require_auth(request: Request) -> dict:
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="No token provided")
    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")
    u = get_user(str(payload.get("sub") or ""))
    if not u or not u.get("isActive", True):
        raise HTTPException(status_code=401, detail="Invalid token")
    return u


def require_admin(user: dict = Depends(require_auth)) -> dict:
    if not is_admin(user):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def secret_is_default() -> bool:
    return _secret() == DEFAULT_SECRET
