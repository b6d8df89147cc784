"""
Admin Categories API Endpoints

Author: TSBIO
Date: 2026-01-24
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tsbio.core.auth import require_content_editor
from tsbio.domain.category import CategoryCreate, CategoryUpdate
from tsbio.domain.profile import AdminContext
from tsbio.repositories.audit_repository import AuditRepository
from tsbio.repositories.category_repository import CategoryRepository
from tsbio.services.rich_text import sanitize_rich_text_html

router = APIRouter(prefix="/api/admin/categories", tags=["Admin Categories"])


@router.get("")
async def list_categories(
    kind: Optional[str] = Query(None, pattern="^(product|news|rescue)$"),
    ctx: AdminContext = Depends(require_content_editor),
):
    categories = CategoryRepository().find_all(kind=kind)
    return {"status": "success", "data": [c.model_dump(mode="json") for c in categories]}


@router.post("")
async def create_category(body: CategoryCreate, ctx: AdminContext = Depends(require_content_editor)):
    row = body.model_dump()
    if row.get("description"):
        row["description"] = sanitize_rich_text_html(row["description"])

    category = CategoryRepository().create(row)
    AuditRepository().write(ctx.profile_id, "category.create", target=str(category.id), meta={"slug": category.slug})
    return {"status": "success", "data": category.model_dump(mode="json")}


@router.patch("/{category_id}")
async def update_category(category_id: str, body: CategoryUpdate, ctx: AdminContext = Depends(require_content_editor)):
    fields = body.model_dump(exclude_unset=True)
    if fields.get("description"):
        fields["description"] = sanitize_rich_text_html(fields["description"])

    category = CategoryRepository().update(category_id, fields)
    AuditRepository().write(ctx.profile_id, "category.update", target=category_id, meta={"fields": sorted(fields)})
    return {"status": "success", "data": category.model_dump(mode="json")}


@router.delete("/{category_id}")
async def delete_category(category_id: str, ctx: AdminContext = Depends(require_content_editor)):
    CategoryRepository().delete(category_id)
    AuditRepository().write(ctx.profile_id, "category.delete", target=category_id)
    return {"ok": True, "id": category_id}
