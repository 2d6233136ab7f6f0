from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from services.gateway.auth import require_admin
from services.storage.uploads.service import VIDEO_MAX_BYTES, store_upload

from .featured_videos import (
    VideoUpdate,
    create_video,
    delete_video,
    list_videos,
    parse_bool,
    public_view,
    update_video,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/featured-videos")
def featured_videos_public(all: str = ""):
    include_all = all.strip().lower() == "true"
    return [public_view(v) for v in list_videos(include_inactive=include_all)]


# ---------- Admin ----------
@router.get("/admin/featured-videos", dependencies=[Depends(require_admin)])
def admin_featured_videos():
    return {"success": True, "videos": list_videos(include_inactive=True)}


async def _upload(f: UploadFile, folder: str, label: str) -> str:
    data = await f.read()
    stored = await run_in_threadpool(
        store_upload,
        f.filename or "",
        f.content_type or "",
        data,
        folder=folder,
        label=label,
        max_bytes=VIDEO_MAX_BYTES,
    )
    return stored["url"]


@router.post("/admin/featured-videos", status_code=201, dependencies=[Depends(require_admin)])
async def admin_featured_video_create(
    title: str = Form(""),
    description: str = Form(""),
    display_order: int = Form(0),
    is_active: str = Form("true"),
    video_url: str = Form(""),
    thumbnail_url: str = Form(""),
    video: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
):
    if not title.strip():
        raise HTTPException(status_code=400, detail="Title is required")
    if not (video and video.filename) and not video_url.strip():
        raise HTTPException(status_code=400, detail="Video file is required")

    if video and video.filename:
        video_url = await _upload(video, "homepage/videos", "video")
    if thumbnail and thumbnail.filename:
        thumbnail_url = await _upload(thumbnail, "homepage/thumbnails", "thumb")

    row = create_video(
        title=title,
        video_url=video_url,
        description=description,
        thumbnail_url=thumbnail_url,
        display_order=display_order,
        is_active=parse_bool(is_active),
    )
    logger.info("Created featured video %s", row["id"])
    return {"success": True, "video": public_view(row)}


@router.put("/admin/featured-videos/{video_id}", dependencies=[Depends(require_admin)])
def admin_featured_video_update(video_id: str, payload: VideoUpdate):
    return {"success": True, "video": public_view(update_video(video_id, payload))}


@router.delete("/admin/featured-videos/{video_id}", dependencies=[Depends(require_admin)])
def admin_featured_video_delete(video_id: str):
    if not delete_video(video_id):
        raise HTTPException(status_code=404, detail="Video not found")
    return {"success": True, "message": "Video deleted successfully"}
