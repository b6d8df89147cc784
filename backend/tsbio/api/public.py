"""
Public API Endpoints
Storefront reads: home hero settings, product catalog, categories

Author: TSBIO
Date: 2026-01-23
"""
from typing import Optional

from fastapi import APIRouter, Query, Response

from tsbio.core.errors import ApiError
from tsbio.repositories.category_repository import CategoryRepository
from tsbio.repositories.product_repository import ProductRepository
from tsbio.services.settings import SettingsService

router = APIRouter(prefix="/api/public", tags=["Public"])


@router.get("/app-settings")
async def get_app_settings(response: Response):
    """
    Home hero copy. Never cached: admins expect banner edits to show at once.
    """
    response.headers["Cache-Control"] = "no-store, max-age=0"
    hero = SettingsService().get_home_hero_settings()
    return {"hero": hero.model_dump()}


@router.get("/products")
async def get_products(
    kind: Optional[str] = Query(None, pattern="^(farm|tsbio)$", description="farm or tsbio"),
    category_id: Optional[str] = Query(None, description="Filter by category"),
    featured: bool = Query(False, description="Only featured products"),
    flashsale: bool = Query(False, description="Only flash-sale products"),
    search: Optional[str] = Query(None, description="Search by name"),
    limit: int = Query(24, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Active, non-archived products, newest first"""
    repo = ProductRepository()

    products, total = repo.find_all(
        kind=kind,
        category_id=category_id,
        active=True,
        featured=featured,
        flashsale=flashsale,
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


@router.get("/products/{product_id}")
async def get_product(product_id: str):
    repo = ProductRepository()
    product = repo.find_by_id(product_id)

    if not product or not product.active or product.is_archived:
        raise ApiError("PRODUCT_NOT_FOUND")

    return {"status": "success", "data": product.to_dict()}


@router.get("/categories")
async def get_categories(kind: Optional[str] = Query(None, pattern="^(product|news|rescue)$")):
    categories = CategoryRepository().find_all(kind=kind, active_only=True)
    return {"status": "success", "data": [c.model_dump(mode="json") for c in categories]}
