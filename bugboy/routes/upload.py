"""
/api/upload -- File uploads (multipart/form-data).

Files are not written anywhere: only their metadata is kept. The stored
name is generated (`<user>_<epoch ms>.<ext>`), with the extension taken
from the MIME type, never from the client's filename, which is kept only
as display text.
"""

import logging
import re
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request

from bugboy.capture import with_error_capture
from bugboy.deps import get_store
from bugboy.errors import BadRequest, Forbidden, NotFound, PayloadTooLarge, UnsupportedMediaType
from bugboy.responses import ok
from bugboy.store import MockStore

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "application/pdf": "pdf",
}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


def safe_name(name: str, fallback: str = "file") -> str:
    """Strip any path and replace characters outside [A-Za-z0-9._-]."""
    base = re.split(r"[\\/]", name or "")[-1].strip().lstrip(".")
    return _UNSAFE.sub("_", base)[:255] or fallback


def shape_file(f: dict) -> dict:
    return {
        "id": f["id"],
        "userId": f.get("user_id"),
        "filename": f["filename"],
        "originalName": f["original_name"],
        "mimeType": f["mime_type"],
        "size": f["size"],
        "uploadedAt": f["uploaded_at"],
        "url": f["url"],
    }


@router.post(
    "/api/upload",
    summary="Upload a file",
    description="multipart/form-data with a `file` part (JPEG, PNG, GIF or PDF, max 10 MB) and optional `userId`.",
    tags=["Files"],
)
@with_error_capture
async def upload_file(
    request: Request,
    store: MockStore = Depends(get_store),
):
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" not in content_type:
        raise BadRequest("Content-Type must be multipart/form-data")

    form = await request.form()
    file = form.get("file")
    user_id = form.get("userId")
    if file is None or isinstance(file, str):
        raise BadRequest("No file provided")
    if user_id is not None and not isinstance(user_id, str):
        raise BadRequest("userId must be a text field")

    mime_type = file.content_type or ""
    if mime_type not in ALLOWED_TYPES:
        raise UnsupportedMediaType(
            f"File type not allowed: {mime_type or 'unknown'}",
            allowedTypes=list(ALLOWED_TYPES),
        )

    contents = await file.read(MAX_FILE_SIZE + 1)
    await file.close()
    if len(contents) > MAX_FILE_SIZE:
        raise PayloadTooLarge(
            f"File too large. Maximum size is {MAX_FILE_SIZE // (1024 * 1024)}MB",
            actualSize=len(contents),
        )
    if not contents:
        raise BadRequest("File is empty")

    owner = user_id or None
    filename = f"{safe_name(owner or 'anonymous')}_{int(time.time() * 1000)}.{ALLOWED_TYPES[mime_type]}"

    stored = await store.uploads.create({
        "user_id": owner,
        "filename": filename,
        "original_name": safe_name(file.filename or ""),
        "mime_type": mime_type,
        "size": len(contents),
        "uploaded_at": datetime.now(timezone.utc),
        "url": f"/uploads/{filename}",
    })
    logger.info("Stored upload %s (%s, %d bytes)", stored["id"], mime_type, len(contents))

    return ok(shape_file(stored))


@router.get(
    "/api/upload",
    summary="List uploaded files",
    tags=["Files"],
)
@with_error_capture
async def list_files(
    user_id: str | None = Query(default=None, alias="userId"),
    type: str | None = Query(default=None, description="Only files with this MIME type."),
    store: MockStore = Depends(get_store),
):
    where = {}
    if user_id:
        where["user_id"] = user_id
    if type:
        where["mime_type"] = type

    files = await store.uploads.find_many(where=where or None, order_by=("uploaded_at", "desc"))
    files = files or []

    total_size = sum(f["size"] for f in files)
    return ok({
        "files": [shape_file(f) for f in files],
        "count": len(files),
        "totalSize": total_size,
        "totalSizeFormatted": f"{total_size / 1024 / 1024:.2f}MB",
    })


@router.delete(
    "/api/upload",
    summary="Delete a file",
    tags=["Files"],
)
@with_error_capture
async def delete_file(
    file_id: str | None = Query(default=None, alias="id"),
    user_id: str | None = Query(default=None, alias="userId"),
    store: MockStore = Depends(get_store),
):
    if not file_id:
        raise BadRequest("File ID is required")

    record = await store.uploads.find_unique(file_id)
    if record is None:
        raise NotFound("File not found", fileId=file_id)
    if user_id and record.get("user_id") != user_id:
        raise Forbidden("Not authorized to delete this file")

    deleted = await store.uploads.delete(file_id)
    return ok({"deleted": shape_file(deleted)})
