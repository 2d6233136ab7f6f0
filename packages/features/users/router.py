from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from packages.features.store import CamelModel
from services.gateway.auth import create_access_token, require_admin, require_auth

from .users import (
    add_favorite,
    authenticate,
    create_user,
    list_favorites,
    list_users,
    public_user,
    remove_favorite,
    update_user,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class RegisterIn(CamelModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1)
    phone: str = ""
    birth_date: str = ""
    gender: str = ""


class LoginIn(CamelModel):
    email: str
    password: str


class FavoriteIn(CamelModel):
    tour_slug: str = ""


class UserAdminUpdate(CamelModel):
    role: Optional[str] = None
    is_active: Optional[bool] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None


# ---------- Auth ----------
@router.post("/auth/register", status_code=201)
def auth_register(payload: RegisterIn):
    if "@" not in payload.email:
        raise HTTPException(status_code=400, detail="Invalid email address")
    # Public sign-up never grants an admin role
    u = create_user(
        payload.email,
        payload.password,
        payload.full_name,
        role="client",
        phone=payload.phone,
        birth_date=payload.birth_date,
        gender=payload.gender,
    )
    logger.info("Registered user %s", u["id"])
    return {"token": create_access_token(u), "user": public_user(u)}


@router.post("/auth/login")
def auth_login(payload: LoginIn):
    u = authenticate(payload.email, payload.password)
    if not u:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return {"token": create_access_token(u), "user": public_user(u)}


@router.get("/auth/me")
def auth_me(user: dict = Depends(require_auth)):
    return {"user": public_user(user)}


# ---------- Favorites ----------
@router.get("/api/favorites")
def favorites_list(user: dict = Depends(require_auth)):
    favs = list_favorites(user["id"])
    return {"favorites": favs, "count": len(favs)}


@router.post("/api/favorites")
def favorites_add(payload: FavoriteIn, user: dict = Depends(require_auth)):
    favs = add_favorite(user["id"], payload.tour_slug)
    return {"message": "Tour added to favorites", "favorites": favs}


@router.delete("/api/favorites/{tour_slug}")
def favorites_remove(tour_slug: str, user: dict = Depends(require_auth)):
    favs = remove_favorite(user["id"], tour_slug)
    return {"message": "Tour removed from favorites", "favorites": favs}


# ---------- Admin ----------
@router.get("/admin/users", dependencies=[Depends(require_admin)])
def admin_users_list():
    return list_users()


@router.put("/admin/users/{user_id}")
def admin_user_update(user_id: str, payload: UserAdminUpdate, admin: dict = Depends(require_admin)):
    u = update_user(user_id, payload.to_doc(partial=True), acting_user_id=admin["id"])
    logger.info("Admin %s updated user %s", admin["id"], user_id)
    return u
