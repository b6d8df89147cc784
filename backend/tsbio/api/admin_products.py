"""
Admin Products API Endpoints
Product CRUD and the product media routes

Providers only see and edit their own products; admins and editors see all.

Author: TSBIO
Date: 2026-01-22
Updated: 2026-02-05 (media attach from library)
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel

from tsbio.core.auth import require_catalog_editor, require_media_manager
from tsbio.core.errors import ApiError
from tsbio.domain.media import AttachItem, IncomingMedia
from tsbio.domain.product import Product, ProductCreate, ProductUpdate
from tsbio.domain.profile import AdminContext
from tsbio.repositories.audit_repository import AuditRepository
from tsbio.repositories.product_repository import ProductRepository
from tsbio.services.media import FilePart, ProductMediaService
from tsbio.services.rich_text import sanitize_rich_text_html

router = APIRouter(prefix="/api/admin/products", tags=["Admin Products"])


# Request models
class CommitRequest(BaseModel):
    items: List[IncomingMedia] = []


class AttachRequest(BaseModel):
    items: List[AttachItem] = []


def _is_provider(ctx: AdminContext) -> bool:
    return not ctx.profile.is_root_admin and ctx.profile.role == "provider"


def _load_editable(repo: ProductRepository, product_id: str, ctx: AdminContext) -> Product:
    """Product the caller may edit, else PRODUCT_NOT_FOUND"""
    product = repo.find_by_id(product_id)
    if not product:
        raise ApiError("PRODUCT_NOT_FOUND")
    if _is_provider(ctx) and product.seller_id != ctx.profile_id:
        raise ApiError("PRODUCT_NOT_FOUND")
    return product


def _media_service(product_id: str, ctx: AdminContext) -> ProductMediaService:
    """Media service for a product the caller may edit"""
    repo = ProductRepository()
    if _is_provider(ctx):
        _load_editable(repo, product_id, ctx)
    return ProductMediaService(products=repo)


# =============================================================================
# CRUD
# =============================================================================

@router.get("")
async def list_products(
    kind: Optional[str] = Query(None, pattern="^(farm|tsbio)$"),
    category_id: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    include_archived: bool = Query(False),
    search: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    ctx: AdminContext = Depends(require_catalog_editor),
):
    repo = ProductRepository()

    products, total = repo.find_all(
        kind=kind,
        category_id=category_id,
        seller_id=ctx.profile_id if _is_provider(ctx) else None,
        active=active,
        include_archived=include_archived,
        search=search,
        limit=limit,
        offset=offset,
    )

    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(products),
        "data": [p.to_dict() for p in products],
    }


@router.post("")
async def create_product(body: ProductCreate, ctx: AdminContext = Depends(require_catalog_editor)):
    row = body.to_row()
    row["description"] = sanitize_rich_text_html(body.description)
    if not ctx.profile.is_root_admin or not body.seller_id:
        row["seller_id"] = ctx.profile_id

    product = ProductRepository().create(row)
    AuditRepository().write(ctx.profile_id, "product.create", target=str(product.id), meta={"name": product.name})
    return {"status": "success", "data": product.to_dict()}


@router.get("/{product_id}")
async def get_product(product_id: str, ctx: AdminContext = Depends(require_catalog_editor)):
    product = _load_editable(ProductRepository(), product_id, ctx)
    return {"status": "success", "data": product.to_dict()}


@router.patch("/{product_id}")
async def update_product(product_id: str, body: ProductUpdate, ctx: AdminContext = Depends(require_catalog_editor)):
    repo = ProductRepository()
    _load_editable(repo, product_id, ctx)

    fields = body.to_row()
    if "description" in fields:
        fields["description"] = sanitize_rich_text_html(fields["description"])
    if "seller_id" in fields and not ctx.profile.is_root_admin:
        del fields["seller_id"]

    product = repo.update(product_id, fields)
    AuditRepository().write(ctx.profile_id, "product.update", target=product_id, meta={"fields": sorted(fields)})
    return {"status": "success", "data": product.to_dict()}


@router.delete("/{product_id}")
async def archive_product(product_id: str, ctx: AdminContext = Depends(require_catalog_editor)):
    """Archive (soft delete); media stay in storage"""
    repo = ProductRepository()
    _load_editable(repo, product_id, ctx)

    repo.archive(product_id)
    AuditRepository().write(ctx.profile_id, "product.archive", target=product_id)
    return {"ok": True, "id": product_id}


# =============================================================================
# Media
# =============================================================================

@router.get("/{product_id}/media")
async def get_product_media(product_id: str, ctx: AdminContext = Depends(require_media_manager)):
    return _media_service(product_id, ctx).get_media(product_id)


@router.post("/{product_id}/media")
async def upload_product_media(
    product_id: str,
    kind: str = Query("image"),
    files: Optional[List[UploadFile]] = File(None),
    file: Optional[UploadFile] = File(None),
    ctx: AdminContext = Depends(require_media_manager),
):
    """Direct multipart upload; accepts form field "files" (multiple) or "file" """
    uploads = list(files or [])
    if file is not None:
        uploads.append(file)

    parts = [FilePart(u.filename or "", u.content_type, await u.read()) for u in uploads]
    return _media_service(product_id, ctx).upload(product_id, kind, parts, ctx.profile_id)


@router.delete("/{product_id}/media")
async def delete_product_media(
    product_id: str,
    path: str = Query(""),
    ctx: AdminContext = Depends(require_media_manager),
):
    return _media_service(product_id, ctx).remove(product_id, path, ctx.profile_id)


@router.post("/{product_id}/media/commit")
async def commit_product_media(
    product_id: str,
    body: CommitRequest,
    ctx: AdminContext = Depends(require_media_manager),
):
    """Move temp uploads (or reference library URLs) into the product's media"""
    return _media_service(product_id, ctx).commit(product_id, body.items, ctx.profile_id)


@router.post("/{product_id}/media/attach")
async def attach_product_media(
    product_id: str,
    body: AttachRequest,
    ctx: AdminContext = Depends(require_media_manager),
):
    """Copy media-library objects into the product folder"""
    return _media_service(product_id, ctx).attach(product_id, body.items, ctx.profile_id)
