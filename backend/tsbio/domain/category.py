"""
Category Domain Model

Categories group products and CMS content (kind = product, news, rescue).

Author: TSBIO
Date: 2026-01-21
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

CATEGORY_KINDS = ("product", "news", "rescue")

CATEGORY_COLUMNS = "id, name, slug, kind, description, sort_order, is_active, created_at, updated_at"


class Category(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Any
    name: str
    slug: Optional[str] = None
    kind: str = "product"
    description: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    slug: Optional[str] = Field(None, max_length=140)
    kind: str = Field("product", pattern="^(product|news|rescue)$")
    description: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    slug: Optional[str] = Field(None, max_length=140)
    description: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None
