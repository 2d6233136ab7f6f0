from __future__ import annotations

from typing import Any, Dict, List, Optional

import bcrypt

from packages.features.store import ConflictError, JsonCollection, NotFoundError, apply_fields

USERS = JsonCollection("users", "usr")

ADMIN_ROLES = ("admin", "super-admin")
ROLES = ("client",) + ADMIN_ROLES


def normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), str(hashed or "").encode("utf-8"))
    except ValueError:
        return False


def public_user(u: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in u.items() if k != "password"}


def is_admin(u: Optional[Dict[str, Any]]) -> bool:
    if not isinstance(u, dict):
        return False
    return str(u.get("role") or "").strip().lower() in ADMIN_ROLES


def find_by_email(email: str) -> Optional[Dict[str, Any]]:
    email = normalize_email(email)
    if not email:
        return None
    return USERS.find_one(lambda u: normalize_email(u.get("email")) == email)


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    return USERS.get(user_id)


def create_user(
    email: str,
    password: str,
    full_name: str,
    role: str = "client",
    phone: str = "",
    birth_date: str = "",
    gender: str = "",
) -> Dict[str, Any]:
    email = normalize_email(email)
    if not email or not password or not (full_name or "").strip():
        raise ValueError("Email, password, and full name are required")
    role = (role or "client").strip().lower()
    if role not in ROLES:
        raise ValueError("Invalid role")

    row = USERS.stamp_new(
        {
            "email": email,
            "password": hash_password(password),
            "fullName": full_name.strip(),
            "role": role,
            "isActive": True,
            "phone": (phone or "").strip(),
            "birthDate": (birth_date or "").strip(),
            "gender": (gender or "").strip(),
            "favorites": [],
        }
    )

    def _insert(items: List[Dict[str, Any]]) -> None:
        if any(normalize_email(u.get("email")) == email for u in items):
            raise ConflictError("Email already registered")
        items.append(row)

    USERS.mutate(_insert)
    return row


def authenticate(email: str, password: str) -> Optional[Dict[str, Any]]:
    u = find_by_email(email)
    if not u or not u.get("isActive", True):
        return None
    if not verify_password(password or "", u.get("password") or ""):
        return None
    return u


# ---------- Admin ----------
ADMIN_EDITABLE = ("role", "isActive", "fullName", "phone")


def list_users() -> List[Dict[str, Any]]:
    return [public_user(u) for u in USERS.all()]


def update_user(user_id: str, fields: Dict[str, Any], acting_user_id: str = "") -> Dict[str, Any]:
    """Apply an admin edit. Passwords and emails are never changed here."""
    changes = {k: v for k, v in (fields or {}).items() if k in ADMIN_EDITABLE and v is not None}
    if "role" in changes:
        changes["role"] = str(changes["role"] or "").strip().lower()
        if changes["role"] not in ROLES:
            raise ValueError(f"Invalid role. Must be one of: {', '.join(ROLES)}")
    if "fullName" in changes:
        changes["fullName"] = str(changes["fullName"] or "").strip()
        if not changes["fullName"]:
            raise ValueError("Full name cannot be empty")

    def _update(items: List[Dict[str, Any]]) -> Dict[str, Any]:
        u = next((x for x in items if str(x.get("id")) == str(user_id)), None)
        if not u:
            raise NotFoundError("User not found")
        if acting_user_id and str(user_id) == str(acting_user_id):
            if changes.get("isActive") is False or changes.get("role", u.get("role")) not in ADMIN_ROLES:
                raise ValueError("You cannot deactivate or demote your own account")
        apply_fields(u, changes)
        return public_user(u)

    return USERS.mutate(_update)


# ---------- Favorites ----------
def list_favorites(user_id: str) -> List[str]:
    u = USERS.get(user_id)
    if not u:
        raise NotFoundError("User not found")
    favs = u.get("favorites") or []
    return [str(x) for x in favs] if isinstance(favs, list) else []


def add_favorite(user_id: str, tour_slug: str) -> List[str]:
    tour_slug = (tour_slug or "").strip()
    if not tour_slug:
        raise ValueError("Tour slug is required")

    def _add(items: List[Dict[str, Any]]) -> List[str]:
        u = next((x for x in items if str(x.get("id")) == str(user_id)), None)
        if not u:
            raise NotFoundError("User not found")
        favs = [str(x) for x in (u.get("favorites") or [])]
        if tour_slug in favs:
            raise ValueError("Tour already in favorites")
        favs.append(tour_slug)
        u["favorites"] = favs
        return favs

    return USERS.mutate(_add)


def remove_favorite(user_id: str, tour_slug: str) -> List[str]:
    def _remove(items: List[Dict[str, Any]]) -> List[str]:
        u = next((x for x in items if str(x.get("id")) == str(user_id)), None)
        if not u:
            raise NotFoundError("User not found")
        favs = [str(x) for x in (u.get("favorites") or [])]
        if tour_slug not in favs:
            raise NotFoundError("Tour not in favorites")
        favs.remove(tour_slug)
        u["favorites"] = favs
        return favs

    return USERS.mutate(_remove)
