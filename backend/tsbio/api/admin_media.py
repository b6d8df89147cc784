"""
Admin Media Library Endpoints

Storage bucket browsing and the temp-upload flow used by the product editor:
the browser uploads to uploads/tmp_<userId>_..., then the product media
commit moves the object into the product folder.

Author: TSBIO
Date: 2026-01-22
"""
import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from pydantic import BaseModel, ConfigDict, Field

from tsbio.core.auth import (
    require_media_editor,
    require_media_manager,
    require_root,
    require_storage_admin,
)
from tsbio.core.errors import ApiError, StorageError
from tsbio.domain.media import (
    MediaKind,
    is_safe_path,
    normalize_path,
    now_stamp,
    owns_temp_path,
    pick_ext,
    slugify,
    temp_upload_path,
)
from tsbio.domain.profile import AdminContext
from tsbio.repositories.audit_repository import AuditRepository
from tsbio.services.storage import MediaStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/media", tags=["Admin Media"])

LIST_DEFAULT_LIMIT = 30
LIST_MAX_LIMIT = 100


class SignUploadRequest(BaseModel):
    filename: str = Field(..., min_length=1)
    kind: MediaKind = "image"


class MoveObjectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_path: str = Field(..., alias="from")
    to_path: str = Field(..., alias="to")


def _safe_path_or_400(raw: Optional[str]) -> str:
    path = normalize_path(raw)
    if not path:
        raise ApiError("MISSING_PATH")
    if not is_safe_path(path):
        raise ApiError("INVALID_PATH", detail=path)
    return path


@router.get("/list")
async def list_media(
    prefix: str = Query("uploads/"),
    limit: int = Query(LIST_DEFAULT_LIMIT),
    ctx: AdminContext = Depends(require_media_manager),
):
    """Objects and subfolders directly under prefix, newest first (limit clamped to 1..100)"""
    prefix = normalize_path(prefix)
    if prefix and not is_safe_path(prefix):
        raise ApiError("INVALID_PATH", detail=prefix)
    limit = max(1, min(limit, LIST_MAX_LIMIT))

    storage = MediaStorage()
    try:
        objects = storage.list(prefix, limit)
    except StorageError as e:
        raise ApiError("STORAGE_ERROR", detail=str(e))

    folder = prefix.rstrip("/")
    items = []
    for obj in objects:
        name = obj.get("name")
        # The placeholder keeps empty folders alive
        if not name or name == ".emptyFolderPlaceholder":
            continue
        path = f"{folder}/{name}" if folder else name
        # Folders have no id
        is_folder = obj.get("id") is None
        metadata = obj.get("metadata") or {}
        items.append({
            "name": name,
            "path": path,
            "isFolder": is_folder,
            "publicUrl": None if is_folder else storage.public_url(path),
            "size": metadata.get("size"),
            "contentType": metadata.get("mimetype"),
            "created_at": obj.get("created_at"),
        })

    return {"ok": True, "prefix": prefix, "items": items}


@router.post("/upload")
async def upload_media(
    folder: str = Query("banners"),
    file: UploadFile = File(None),
    ctx: AdminContext = Depends(require_root),
):
    """Upload an image into a library folder (root only)"""
    folder = normalize_path(folder).strip("/")
    if not folder or not is_safe_path(folder):
        raise ApiError("INVALID_PATH", detail=folder)
    if file is None:
        raise ApiError("MISSING_FILE")
    if not (file.content_type or "").startswith("image/"):
        raise ApiError("INVALID_IMAGE", detail="Only image uploads are allowed")

    base, _ = os.path.splitext(file.filename or "")
    path = f"{folder}/{now_stamp()}-{slugify(base) or 'image'}.{pick_ext(file.filename, file.content_type)}"
    data = await file.read()

    storage = MediaStorage()
    storage.ensure_bucket()
    try:
        storage.upload(path, data, file.content_type)
    except StorageError as e:
        raise ApiError("UPLOAD_FAILED", detail=str(e))

    public_url = storage.public_url(path)
    AuditRepository().write(ctx.profile_id, "media.upload", target=path, meta={
        "folder": folder,
        "size": len(data),
        "contentType": file.content_type,
    })
    return {"ok": True, "path": path, "publicUrl": public_url}


# =============================================================================
# Temp uploads
# =============================================================================

@router.post("/tmp-upload")
async def tmp_upload(
    kind: str = Query("image"),
    file: UploadFile = File(None),
    ctx: AdminContext = Depends(require_media_editor),
):
    """Upload a file to the caller's temp namespace; commit moves it to a product later"""
    if kind not in ("image", "video"):
        raise ApiError("INVALID_KIND", detail="kind must be image or video")
    if file is None:
        raise ApiError("MISSING_FILE")
    if not (file.content_type or "").startswith(f"{kind}/"):
        raise ApiError("INVALID_FILE_TYPE", detail=f"Expected {kind}/*")

    path = temp_upload_path(ctx.user.id, kind, file.filename or "")
    data = await file.read()

    storage = MediaStorage()
    storage.ensure_bucket()
    try:
        storage.upload(path, data, file.content_type)
    except StorageError as e:
        raise ApiError("UPLOAD_FAILED", detail=str(e))

    return {
        "ok": True,
        "item": {
            "kind": kind,
            "path": path,
            "url": storage.public_url(path),
            "name": file.filename,
            "contentType": file.content_type,
            "size": len(data),
        },
    }


@router.delete("/tmp-upload")
async def delete_tmp_upload(path: str = Query(""), ctx: AdminContext = Depends(require_media_editor)):
    """Delete one of the caller's own temp uploads"""
    path = normalize_path(path)
    if not owns_temp_path(path, ctx.user.id):
        raise ApiError("INVALID_PATH", detail="Not a temp upload of this user")

    try:
        MediaStorage().remove([path])
    except StorageError as e:
        raise ApiError("TMP_DELETE_FAILED", detail=str(e))

    return {"ok": True, "path": path}


@router.post("/tmp-sign-upload")
async def tmp_sign_upload(body: SignUploadRequest, ctx: AdminContext = Depends(require_media_editor)):
    """Signed upload URL for a temp path (large videos go browser -> storage directly)"""
    path = temp_upload_path(ctx.user.id, body.kind, body.filename)

    storage = MediaStorage()
    storage.ensure_bucket()
    try:
        signed = storage.create_signed_upload_url(path)
    except StorageError as e:
        raise ApiError("SIGNED_UPLOAD_FAILED", detail=str(e))

    return {
        "ok": True,
        "item": {
            "kind": body.kind,
            "path": path,
            "url": storage.public_url(path),
            "signedUrl": signed["signed_url"],
            "token": signed["token"],
        },
    }


# =============================================================================
# Objects
# =============================================================================

@router.delete("/object")
async def delete_object(path: str = Query(""), ctx: AdminContext = Depends(require_storage_admin)):
    path = _safe_path_or_400(path)

    try:
        MediaStorage().remove([path])
    except StorageError as e:
        raise ApiError("STORAGE_ERROR", detail=str(e))

    AuditRepository().write(ctx.profile_id, "media.delete", target=path)
    return {"ok": True, "path": path}


@router.patch("/object")
async def move_object(body: MoveObjectRequest, ctx: AdminContext = Depends(require_storage_admin)):
    """Rename / move an object. Same source and target is a no-op."""
    from_path = _safe_path_or_400(body.from_path)
    to_path = _safe_path_or_400(body.to_path)

    storage = MediaStorage()
    if from_path != to_path:
        try:
            storage.move(from_path, to_path)
        except StorageError as e:
            raise ApiError("STORAGE_ERROR", detail=str(e))
        AuditRepository().write(ctx.profile_id, "media.move", target=to_path, meta={"from": from_path})

    return {"ok": True, "path": to_path, "publicUrl": storage.public_url(to_path)}
