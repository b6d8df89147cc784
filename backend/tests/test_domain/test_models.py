"""
Unit tests for product, profile, wallet and settings models
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from tsbio.domain.product import Product, ProductCreate, ProductUpdate
from tsbio.domain.profile import Profile, ProfileUpdate, Wallet, WalletAdjustment
from tsbio.domain.settings import BannerPayload


class TestProduct:

    def test_kind_from_farm_id(self, sample_product_row):
        assert Product(**sample_product_row).kind == "farm"
        assert Product(**{**sample_product_row, "farm_id": None}).kind == "tsbio"

    def test_null_media_becomes_empty_list(self, sample_product_row):
        product = Product(**{**sample_product_row, "media": None})

        assert product.media == []

    def test_flashsale_price(self, sample_product_row):
        product = Product(**{
            **sample_product_row,
            "is_flashsale": True,
            "flashsale_percent": 25,
            "flashsale_end_at": datetime.now(timezone.utc) + timedelta(hours=2),
        })

        assert product.flashsale_running
        assert product.flashsale_price_vnd == Decimal("90000")
        assert product.to_dict()["flashsale_price_vnd"] == 90000.0

    def test_expired_flashsale(self, sample_product_row):
        product = Product(**{
            **sample_product_row,
            "is_flashsale": True,
            "flashsale_percent": 25,
            "flashsale_end_at": datetime.now(timezone.utc) - timedelta(minutes=1),
        })

        assert not product.flashsale_running
        assert product.flashsale_price_vnd is None

    def test_to_dict_prices_are_numbers(self, sample_product_row):
        data = Product(**sample_product_row).to_dict()

        assert data["price_vnd"] == 120000.0
        assert data["kind"] == "farm"
        assert data["in_stock"] is True


class TestProductCreate:

    def test_farm_requires_farm_id(self):
        with pytest.raises(ValidationError):
            ProductCreate(kind="farm", name="Bưởi da xanh")

    def test_tsbio_clears_farm_id(self):
        body = ProductCreate(kind="tsbio", name="Chế phẩm sinh học", farm_id="farm-1")

        assert body.farm_id is None
        assert body.to_row()["farm_id"] is None

    def test_flashsale_percent_range(self):
        with pytest.raises(ValidationError):
            ProductCreate(name="X", flashsale_percent=120)

    def test_to_row_uses_floats(self):
        row = ProductCreate(name="X", price_vnd=Decimal("1500.50")).to_row()

        assert row["price_vnd"] == 1500.5
        assert "kind" not in row

    def test_update_only_sends_provided_fields(self):
        assert ProductUpdate(name="Mới").to_row() == {"name": "Mới"}


class TestProfileAndWallet:

    def test_root_admin_needs_role_and_level(self):
        assert Profile(id="1", role="root_admin", level="super").is_root_admin
        assert not Profile(id="1", role="root_admin", level="basic").is_root_admin
        assert not Profile(id="1", role="admin", level="super").is_root_admin

    def test_profile_update_rejects_unknown_role(self):
        with pytest.raises(ValidationError):
            ProfileUpdate(role="superuser")

    def test_wallet_available(self):
        wallet = Wallet(id="w1", profile_id="p1", balance=Decimal("100"), locked=Decimal("30"))

        assert wallet.available == Decimal("70")

    def test_adjustment_must_be_non_zero(self):
        with pytest.raises(ValidationError):
            WalletAdjustment(amount=0)


class TestBannerPayload:

    def test_only_provided_keys_trimmed(self):
        payload = BannerPayload(headlineTop="  TSBIO  ", heroImageUrl="")

        assert payload.provided_values() == {
            "home.hero.headline_top": "TSBIO",
            "home.hero.image_url": "",
        }
