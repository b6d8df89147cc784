"""
Category Repository - Data Access Layer for categories

Author: TSBIO
Date: 2026-01-21
"""
from typing import List, Optional

from postgrest.exceptions import APIError

from tsbio.core.database import get_supabase_admin
from tsbio.core.errors import ApiError
from tsbio.domain.category import CATEGORY_COLUMNS, Category
from tsbio.domain.media import slugify


class CategoryRepository:
    """Reads and writes rows of the categories table"""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        return self._client or get_supabase_admin()

    def find_all(self, kind: Optional[str] = None, active_only: bool = False) -> List[Category]:
        query = self.client.table("categories").select(CATEGORY_COLUMNS)
        if kind:
            query = query.eq("kind", kind)
        if active_only:
            query = query.eq("is_active", True)
        try:
            res = query.order("sort_order").order("name").execute()
        except APIError as e:
            raise ApiError("DB_ERROR", detail=e.message)
        return [Category(**row) for row in res.data or []]

    def find_by_id(self, category_id: str) -> Optional[Category]:
        try:
            res = (
                self.client.table("categories")
                .select(CATEGORY_COLUMNS)
                .eq("id", category_id)
                .limit(1)
                .execute()
            )
        except APIError as e:
            raise ApiError("DB_ERROR", detail=e.message)
        rows = res.data or []
        return Category(**rows[0]) if rows else None

    def slug_exists(self, slug: str, kind: str, exclude_id: Optional[str] = None) -> bool:
        query = self.client.table("categories").select("id").eq("slug", slug).eq("kind", kind)
        if exclude_id:
            query = query.neq("id", exclude_id)
        try:
            res = query.limit(1).execute()
        except APIError as e:
            raise ApiError("DB_ERROR", detail=e.message)
        return bool(res.data)

    def unique_slug(self, text: str, kind: str) -> str:
        """slugify(text), suffixed -2, -3, ... until unused within the kind"""
        base = slugify(text) or "danh-muc"
        slug = base
        n = 2
        while self.slug_exists(slug, kind):
            slug = f"{base}-{n}"
            n += 1
        return slug

    def create(self, row: dict) -> Category:
        """
        Insert a category. A missing slug is derived from the name; an
        explicit slug already used within the kind raises SLUG_TAKEN.
        """
        kind = row.get("kind") or "product"
        if row.get("slug"):
            slug = slugify(row["slug"])
            if self.slug_exists(slug, kind):
                raise ApiError("SLUG_TAKEN", detail=slug)
        else:
            slug = self.unique_slug(row["name"], kind)

        try:
            res = self.client.table("categories").insert({**row, "kind": kind, "slug": slug}).execute()
        except APIError as e:
            raise ApiError("DB_INSERT_FAILED", detail=e.message)

        rows = res.data or []
        if not rows:
            raise ApiError("DB_INSERT_FAILED", detail="Insert returned no row")
        return Category(**rows[0])

    def update(self, category_id: str, fields: dict) -> Category:
        if not fields:
            raise ApiError("NO_FIELDS", detail="No fields to update")

        current = self.find_by_id(category_id)
        if not current:
            raise ApiError("CATEGORY_NOT_FOUND")

        if fields.get("slug"):
            fields = {**fields, "slug": slugify(fields["slug"])}
            if self.slug_exists(fields["slug"], current.kind, exclude_id=category_id):
                raise ApiError("SLUG_TAKEN", detail=fields["slug"])

        try:
            res = self.client.table("categories").update(fields).eq("id", category_id).execute()
        except APIError as e:
            raise ApiError("DB_UPDATE_FAILED", detail=e.message)

        rows = res.data or []
        if not rows:
            raise ApiError("CATEGORY_NOT_FOUND")
        return Category(**rows[0])

    def delete(self, category_id: str) -> None:
        try:
            res = self.client.table("categories").delete().eq("id", category_id).execute()
        except APIError as e:
            raise ApiError("DB_DELETE_FAILED", detail=e.message)
        if not res.data:
            raise ApiError("CATEGORY_NOT_FOUND")
