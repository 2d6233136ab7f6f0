from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from packages.features.store import JsonCollection, NotFoundError

# Stored with snake_case keys; the homepage player reads them as-is.
VIDEOS = JsonCollection("featured_videos", "vid")

PUBLIC_FIELDS = ("id", "title", "description", "video_url", "thumbnail_url", "display_order", "is_active")


class VideoUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


def _sort_key(v: Dict[str, Any]):
    return (int(v.get("display_order") or 0), str(v.get("createdAt") or ""))


def public_view(v: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v.get(k) for k in PUBLIC_FIELDS}


def list_videos(include_inactive: bool = False) -> List[Dict[str, Any]]:
    items = VIDEOS.load()
    if not include_inactive:
        items = [v for v in items if v.get("is_active", True)]
    items.sort(key=_sort_key)
    return items


def parse_bool(value: Any, default: bool = True) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def create_video(
    title: str,
    video_url: str,
    description: str = "",
    thumbnail_url: str = "",
    display_order: int = 0,
    is_active: bool = True,
) -> Dict[str, Any]:
    title = (title or "").strip()
    if not title:
        raise ValueError("Title is required")
    if not (video_url or "").strip():
        raise ValueError("Video file or video_url is required")
    return VIDEOS.insert(
        {
            "title": title,
            "description": (description or "").strip(),
            "video_url": video_url.strip(),
            "thumbnail_url": (thumbnail_url or "").strip(),
            "display_order": int(display_order or 0),
            "is_active": bool(is_active),
        }
    )


def update_video(video_id: str, payload: VideoUpdate) -> Dict[str, Any]:
    fields = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    row = VIDEOS.update(video_id, fields)
    if row is None:
        raise NotFoundError("Video not found")
    return row


def delete_video(video_id: str) -> bool:
    return VIDEOS.delete(video_id) is not None
