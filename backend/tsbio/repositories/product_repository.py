"""
Product Repository - Data Access Layer for Products

Handles all PostgREST queries for the products table and returns Product
domain models.

Author: TSBIO
Date: 2026-01-21
Updated: 2026-02-12 (media column writes go through update_media)
"""
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from postgrest.exceptions import APIError

from tsbio.core.database import get_supabase_admin
from tsbio.core.errors import ApiError
from tsbio.domain.product import PRODUCT_COLUMNS, Product


class ProductRepository:
    """
    Repository for Product data access

    All products table queries are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        return self._client or get_supabase_admin()

    def _table(self):
        return self.client.table("products")

    def find_by_id(self, product_id: str) -> Optional[Product]:
        """
        Find product by ID

        Args:
            product_id: Product id

        Returns:
            Product or None if not found
        """
        try:
            res = self._table().select(PRODUCT_COLUMNS).eq("id", product_id).limit(1).execute()
        except APIError as e:
            raise ApiError("DB_ERROR", detail=e.message)

        rows = res.data or []
        return Product(**rows[0]) if rows else None

    def find_all(
        self,
        kind: Optional[str] = None,
        category_id: Optional[str] = None,
        seller_id: Optional[str] = None,
        active: Optional[bool] = None,
        featured: Optional[bool] = None,
        flashsale: Optional[bool] = None,
        include_archived: bool = False,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters

        Args:
            kind: 'farm' (farm_id set) or 'tsbio' (farm_id null)
            category_id: Filter by category
            seller_id: Filter by seller profile
            active: Filter by active flag
            featured: Only featured products
            flashsale: Only flash-sale products
            include_archived: Include archived products
            search: Search in name
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of products, total count)
        """
        query = self._table().select(PRODUCT_COLUMNS, count="exact")

        if kind == "farm":
            query = query.not_.is_("farm_id", "null")
        elif kind == "tsbio":
            query = query.is_("farm_id", "null")

        if category_id:
            query = query.eq("category_id", category_id)
        if seller_id:
            query = query.eq("seller_id", seller_id)
        if active is not None:
            query = query.eq("active", active)
        if featured:
            query = query.eq("is_featured", True)
        if flashsale:
            query = query.eq("is_flashsale", True)
        if not include_archived:
            query = query.eq("is_archived", False)
        if search:
            query = query.ilike("name", f"%{search.strip()}%")

        try:
            res = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
        except APIError as e:
            raise ApiError("DB_ERROR", detail=e.message)

        products = [Product(**row) for row in res.data or []]
        total = res.count if res.count is not None else len(products)
        return products, total

    def create(self, row: dict) -> Product:
        try:
            res = self._table().insert(row).execute()
        except APIError as e:
            raise ApiError("DB_INSERT_FAILED", detail=e.message)

        rows = res.data or []
        if not rows:
            raise ApiError("DB_INSERT_FAILED", detail="Insert returned no row")
        return Product(**rows[0])

    def update(self, product_id: str, fields: dict) -> Product:
        """
        Update product columns

        Raises:
            ApiError(NO_FIELDS) for an empty update
            ApiError(PRODUCT_NOT_FOUND) when no row matched
        """
        if not fields:
            raise ApiError("NO_FIELDS", detail="No fields to update")

        fields = {**fields, "updated_at": datetime.now(timezone.utc).isoformat()}
        try:
            res = self._table().update(fields).eq("id", product_id).execute()
        except APIError as e:
            raise ApiError("UPDATE_FAILED", detail=e.message)

        rows = res.data or []
        if not rows:
            raise ApiError("PRODUCT_NOT_FOUND")
        return Product(**rows[0])

    def archive(self, product_id: str) -> Product:
        """Soft delete: archived products disappear from the storefront"""
        return self.update(product_id, {"is_archived": True, "active": False})

    def update_media(
        self,
        product_id: str,
        media: List[dict],
        thumbnail_url: Optional[str],
        video_url: Optional[str],
        image_url: Optional[str] = None,
    ) -> None:
        """
        Persist the media array with its derived URL columns in one row update
        """
        fields = {
            "media": media,
            "thumbnail_url": thumbnail_url,
            "image_url": image_url if image_url is not None else thumbnail_url,
            "video_url": video_url,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self._table().update(fields).eq("id", product_id).execute()
        except APIError as e:
            raise ApiError("UPDATE_FAILED", detail=e.message)
