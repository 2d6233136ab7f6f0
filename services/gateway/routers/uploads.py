from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool

from services.gateway.auth import require_admin
from services.storage.uploads.service import status, store_upload, uploads_dir, validate

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_FILES = 10


@router.post("/api/uploads")
async def upload_image(file: UploadFile = File(None)):
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if not (file.content_type or "").lower().startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image uploads are allowed")
    data = await file.read()
    stored = await run_in_threadpool(
        store_upload, file.filename, file.content_type or "", data, folder="uploads"
    )
    return {"url": stored["url"]}


@router.post("/api/upload/single", dependencies=[Depends(require_admin)])
async def upload_single(
    file: UploadFile = File(None),
    folder: str = Form("uploads"),
    label: str = Form(""),
):
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    data = await file.read()
    stored = await run_in_threadpool(
        store_upload, file.filename, file.content_type or "", data, folder=folder, label=label
    )
    return {"success": True, **stored}


@router.post("/api/upload/multiple", dependencies=[Depends(require_admin)])
async def upload_multiple(
    files: List[UploadFile] = File(None),
    folder: str = Form("uploads"),
    label: str = Form(""),
):
    files = [f for f in (files or []) if f and f.filename]
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > MAX_FILES:
        raise HTTPException(status_code=400, detail=f"Too many files (max {MAX_FILES})")

    # Reject the whole batch before anything is stored
    payloads = [(f, await f.read()) for f in files]
    for f, data in payloads:
        validate((f.content_type or "").lower(), len(data))

    results = []
    for i, (f, data) in enumerate(payloads, start=1):
        stored = await run_in_threadpool(
            store_upload,
            f.filename,
            f.content_type or "",
            data,
            folder=folder,
            label=label,
            index=i if label else None,
        )
        results.append(stored)
    logger.info("Stored %d uploads (%d bytes)", len(results), sum(r["size"] for r in results))
    return {"success": True, "files": results, "count": len(results)}


@router.get("/api/upload/health")
def upload_health():
    return status()


# Locally stored uploads (STORAGE_PROVIDER=local), resolved against DATA_DIR per request
@router.get("/uploads/{key:path}")
def serve_upload(key: str):
    root = uploads_dir().resolve()
    path = (root / key).resolve()
    if not path.is_relative_to(root) or not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path)
