from __future__ import annotations

import logging
import os
import secrets
import time
from pathlib import Path, PurePosixPath
from typing import Optional

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from packages.features.store import data_dir

logger = logging.getLogger(__name__)

ALLOWED_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "video/mp4",
    "video/webm",
    "video/quicktime",
)

MAX_BYTES = 10 * 1024 * 1024
VIDEO_MAX_BYTES = 100 * 1024 * 1024

PROVIDERS = ("local", "s3", "r2", "supabase")


class StorageError(RuntimeError):
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


def provider() -> str:
    p = (os.getenv("STORAGE_PROVIDER") or "local").strip().lower()
    return p if p in PROVIDERS else "local"


def uploads_dir() -> Path:
    return data_dir() / "uploads"


def validate(content_type: str, size: int, max_bytes: int = MAX_BYTES) -> None:
    if (content_type or "").lower() not in ALLOWED_TYPES:
        raise ValueError("Invalid file type. Only images and videos are allowed.")
    if size <= 0:
        raise ValueError("Uploaded file is empty")
    if size > max_bytes:
        raise ValueError(f"File too large (max {max_bytes // (1024 * 1024)} MB)")


def object_key(folder: str, filename: str, label: str = "", index: Optional[int] = None) -> str:
    folder = "/".join(p for p in str(folder or "uploads").split("/") if p and p not in (".", ".."))
    ext = PurePosixPath(filename or "").suffix.lower()
    parts = []
    if label:
        parts.append(label)
    if index is not None:
        parts.append(str(index))
    parts.append(str(int(time.time() * 1000)))
    parts.append(secrets.token_hex(16))
    return f"{folder or 'uploads'}/{'-'.join(parts)}{ext}"


# ---------- Providers ----------
def _put_local(key: str, data: bytes) -> str:
    path = uploads_dir() / key
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    base = (os.getenv("PUBLIC_BASE_URL") or "http://127.0.0.1:8000").rstrip("/")
    return f"{base}/uploads/{key}"


def _put_s3(key: str, data: bytes, content_type: str) -> str:
    region = (os.getenv("S3_REGION") or "").strip()
    bucket = (os.getenv("S3_BUCKET") or "").strip()
    if not region or not bucket:
        raise StorageError("S3 not configured (S3_REGION/S3_BUCKET missing)")
    kwargs = {"region_name": region}
    if os.getenv("S3_ACCESS_KEY_ID") and os.getenv("S3_SECRET_ACCESS_KEY"):
        kwargs["aws_access_key_id"] = os.getenv("S3_ACCESS_KEY_ID")
        kwargs["aws_secret_access_key"] = os.getenv("S3_SECRET_ACCESS_KEY")
    client = boto3.client("s3", **kwargs)
    client.put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type, ACL="public-read")
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"


def _put_r2(key: str, data: bytes, content_type: str) -> str:
    endpoint = (os.getenv("R2_ENDPOINT") or "").strip()
    bucket = (os.getenv("R2_BUCKET_NAME") or "").strip()
    public_url = (os.getenv("R2_PUBLIC_URL") or "").strip().rstrip("/")
    if not (endpoint and bucket and public_url):
        raise StorageError("R2 not configured (R2_ENDPOINT/R2_BUCKET_NAME/R2_PUBLIC_URL missing)")
    client = boto3.client(
        "s3",
        region_name="auto",
        endpoint_url=endpoint,
        aws_access_key_id=os.getenv("R2_ACCESS_KEY_ID") or "",
        aws_secret_access_key=os.getenv("R2_SECRET_ACCESS_KEY") or "",
    )
    client.put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type)
    return f"{public_url}/{key}"


def _put_supabase(key: str, data: bytes, content_type: str) -> str:
    base = (os.getenv("SUPABASE_URL") or "").strip().rstrip("/")
    service_key = (os.getenv("SUPABASE_SERVICE_KEY") or "").strip()
    bucket = (os.getenv("SUPABASE_BUCKET") or "uploads").strip()
    if not base or not service_key:
        raise StorageError("Supabase not configured (SUPABASE_URL/SUPABASE_SERVICE_KEY missing)")

    resp = httpx.post(
        f"{base}/storage/v1/object/{bucket}/{key}",
        content=data,
        headers={
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
            "Content-Type": content_type,
            "x-upsert": "false",
        },
        timeout=60,
    )
    if resp.status_code not in (200, 201):
        raise StorageError(f"Supabase upload failed ({resp.status_code}): {resp.text}")
    return f"{base}/storage/v1/object/public/{bucket}/{key}"


def put_object(key: str, data: bytes, content_type: str) -> str:
    p = provider()
    try:
        if p == "s3":
            return _put_s3(key, data, content_type)
        if p == "r2":
            return _put_r2(key, data, content_type)
        if p == "supabase":
            return _put_supabase(key, data, content_type)
        return _put_local(key, data)
    except (BotoCoreError, ClientError, httpx.HTTPError, OSError) as exc:
        raise StorageError(str(exc)) from exc


def store_upload(
    filename: str,
    content_type: str,
    data: bytes,
    folder: str = "uploads",
    label: str = "",
    index: Optional[int] = None,
    max_bytes: int = MAX_BYTES,
) -> dict:
    """Validate and store one file. Returns ``{url, fileName, size, type}``."""
    content_type = (content_type or "").lower()
    validate(content_type, len(data or b""), max_bytes=max_bytes)
    key = object_key(folder, filename, label=label, index=index)
    url = put_object(key, data, content_type)
    logger.info("Stored upload %s (%d bytes) via %s", key, len(data), provider())
    return {"url": url, "fileName": key, "size": len(data), "type": content_type}


def status() -> dict:
    p = provider()
    if p == "s3":
        configured = bool(os.getenv("S3_REGION") and os.getenv("S3_BUCKET"))
        bucket = os.getenv("S3_BUCKET") or "not-set"
    elif p == "r2":
        configured = all(
            os.getenv(k)
            for k in ("R2_ENDPOINT", "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY", "R2_BUCKET_NAME", "R2_PUBLIC_URL")
        )
        bucket = os.getenv("R2_BUCKET_NAME") or "not-set"
    elif p == "supabase":
        configured = bool(os.getenv("SUPABASE_URL") and os.getenv("SUPABASE_SERVICE_KEY"))
        bucket = os.getenv("SUPABASE_BUCKET") or "uploads"
    else:
        configured = True
        bucket = str(uploads_dir())
    return {"status": "ready" if configured else "not-configured", "provider": p, "bucket": bucket}
