"""
Product Domain Model

Represents a product listed on the TSBIO marketplace: either a farm product
(nông sản, farm_id set) or a TSBIO bio-product (farm_id null).

Author: TSBIO
Date: 2026-01-21
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

ProductKind = Literal["farm", "tsbio"]

PRODUCT_COLUMNS = (
    "id, name, description, price_vnd, price_pi, farm_id, category_id, seller_id, "
    "stock_quantity, is_unlimited_stock, active, is_combo, is_featured, is_flashsale, "
    "flashsale_percent, flashsale_end_at, is_verified, is_archived, "
    "media, image_url, thumbnail_url, video_url, created_at, updated_at"
)


def to_db_values(row: dict) -> dict:
    """Decimal -> float and datetime -> ISO string for PostgREST payloads"""
    out = {}
    for key, value in row.items():
        if isinstance(value, Decimal):
            value = float(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        out[key] = value
    return out


class Product(BaseModel):
    """
    Product domain model - a row of the products table

    Fields:
        id: Product id
        name: Product name
        description: Sanitized rich-text HTML
        price_vnd: Price in VND
        price_pi: Price in Pi
        farm_id: Owning farm (farm products only)
        category_id: Product category
        seller_id: Provider profile that sells the product

        # Stock
        stock_quantity: Units in stock
        is_unlimited_stock: Stock is not tracked

        # Flags
        active, is_combo, is_featured, is_flashsale, is_verified, is_archived

        # Flash sale
        flashsale_percent: Discount percent (0-100)
        flashsale_end_at: End of the sale; no timer when null

        # Media
        media: JSON array of media items (see domain.media)
        image_url / thumbnail_url: First image
        video_url: Product video
    """

    model_config = ConfigDict(extra="ignore")

    id: Any = Field(..., description="Product id")
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None, description="Sanitized HTML description")

    price_vnd: Optional[Decimal] = Field(None, ge=0)
    price_pi: Optional[Decimal] = Field(None, ge=0)

    farm_id: Optional[str] = None
    category_id: Optional[str] = None
    seller_id: Optional[str] = None

    stock_quantity: int = 0
    is_unlimited_stock: bool = False

    active: bool = True
    is_combo: bool = False
    is_featured: bool = False
    is_flashsale: bool = False
    flashsale_percent: Optional[Decimal] = None
    flashsale_end_at: Optional[datetime] = None
    is_verified: bool = False
    is_archived: bool = False

    media: List[dict] = Field(default_factory=list)
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _null_media(cls, data):
        if isinstance(data, dict) and not isinstance(data.get("media"), list):
            data = {**data, "media": []}
        return data

    @property
    def kind(self) -> str:
        return "farm" if self.farm_id else "tsbio"

    @property
    def in_stock(self) -> bool:
        return self.is_unlimited_stock or self.stock_quantity > 0

    @property
    def flashsale_running(self) -> bool:
        """Flash sale flag is on and its end (if any) is in the future"""
        if not self.is_flashsale:
            return False
        if self.flashsale_end_at is None:
            return True
        end = self.flashsale_end_at
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        return end > datetime.now(timezone.utc)

    @property
    def flashsale_price_vnd(self) -> Optional[Decimal]:
        if not self.flashsale_running or self.price_vnd is None or not self.flashsale_percent:
            return None
        return (self.price_vnd * (Decimal(100) - self.flashsale_percent) / Decimal(100)).quantize(Decimal("1"))

    def to_dict(self) -> dict:
        """
        Convert to a JSON-ready dict with computed fields
        """
        data = self.model_dump(mode="json")

        data["kind"] = self.kind
        data["in_stock"] = self.in_stock
        data["flashsale_running"] = self.flashsale_running
        flash_price = self.flashsale_price_vnd
        data["flashsale_price_vnd"] = float(flash_price) if flash_price is not None else None

        for key in ("price_vnd", "price_pi", "flashsale_percent"):
            if data.get(key) is not None:
                data[key] = float(data[key])

        return data


class ProductCreate(BaseModel):
    """Schema for creating a new product (admin form)"""
    kind: ProductKind = "tsbio"
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price_vnd: Optional[Decimal] = Field(None, ge=0)
    price_pi: Optional[Decimal] = Field(None, ge=0)
    farm_id: Optional[str] = None
    category_id: Optional[str] = None
    stock_quantity: int = Field(0, ge=0)
    is_unlimited_stock: bool = False
    active: bool = True
    is_combo: bool = False
    is_featured: bool = False
    is_flashsale: bool = False
    flashsale_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    flashsale_end_at: Optional[datetime] = None
    is_verified: bool = False
    is_archived: bool = False
    # Root only; others always sell as themselves
    seller_id: Optional[str] = None

    @model_validator(mode="after")
    def _farm_needs_farm_id(self):
        if self.kind == "farm" and not self.farm_id:
            raise ValueError("farm_id is required for kind=farm")
        if self.kind == "tsbio":
            self.farm_id = None
        return self

    def to_row(self) -> dict:
        row = to_db_values(self.model_dump(exclude={"kind"}))
        return {k: v for k, v in row.items() if v is not None or k in ("farm_id", "category_id")}


class ProductUpdate(BaseModel):
    """Schema for updating an existing product (only provided fields change)"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price_vnd: Optional[Decimal] = Field(None, ge=0)
    price_pi: Optional[Decimal] = Field(None, ge=0)
    farm_id: Optional[str] = None
    category_id: Optional[str] = None
    stock_quantity: Optional[int] = Field(None, ge=0)
    is_unlimited_stock: Optional[bool] = None
    active: Optional[bool] = None
    is_combo: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_flashsale: Optional[bool] = None
    flashsale_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    flashsale_end_at: Optional[datetime] = None
    is_verified: Optional[bool] = None
    is_archived: Optional[bool] = None
    seller_id: Optional[str] = None

    def to_row(self) -> dict:
        return to_db_values(self.model_dump(exclude_unset=True))
