"""
Pytest fixtures and configuration for TSBIO Backend tests

This file provides shared fixtures that can be used across all test modules.
No test here talks to a real Supabase project: clients are MagicMocks and
route dependencies are overridden on the app.

Author: TSBIO
Date: 2026-02-12
"""
from unittest.mock import MagicMock, Mock

import pytest
from fastapi.testclient import TestClient

from tsbio.domain.profile import AdminContext, AuthUser, Profile
from tsbio.main import app

QUERY_METHODS = (
    "select", "eq", "neq", "in_", "ilike", "is_", "or_", "order", "range",
    "limit", "insert", "update", "upsert", "delete",
)

PUBLIC_URL_BASE = "https://abcd.supabase.co/storage/v1/object/public/media/"


@pytest.fixture
def supabase_query():
    """
    PostgREST query builder mock: every builder method returns the same
    mock, so chains like .select().eq().limit().execute() work.

    Set the result with supabase_query.execute.return_value = Mock(data=..., count=...)
    """
    query = MagicMock()
    for name in QUERY_METHODS:
        getattr(query, name).return_value = query
    query.not_ = query
    query.execute.return_value = Mock(data=[], count=0)
    return query


@pytest.fixture
def supabase_client(supabase_query):
    client = MagicMock()
    client.table.return_value = supabase_query
    return client


@pytest.fixture
def root_profile():
    return Profile(id="root-1", username="tsbio", email="root@tsbio.life", role="root_admin", level="super")


@pytest.fixture
def editor_profile():
    return Profile(id="editor-1", username="bientap", role="editor", level="basic")


@pytest.fixture
def member_profile():
    return Profile(id="member-1", username="nhavuon", role="member", level="basic")


@pytest.fixture
def root_ctx(root_profile):
    return AdminContext(user=AuthUser(id=root_profile.id, email=root_profile.email), profile=root_profile)


@pytest.fixture
def editor_ctx(editor_profile):
    return AdminContext(user=AuthUser(id=editor_profile.id), profile=editor_profile)


@pytest.fixture
def media_storage():
    """MediaStorage stand-in with deterministic public URLs"""
    storage = Mock()
    storage.bucket = "media"
    storage.public_url.side_effect = lambda path: PUBLIC_URL_BASE + path
    return storage


@pytest.fixture
def client():
    """
    TestClient over the real app; dependency overrides are cleared afterwards
    """
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_product_row():
    """
    Provides a products row as PostgREST returns it
    """
    return {
        "id": "11111111-1111-1111-1111-111111111111",
        "name": "Dâu tây Đà Lạt",
        "description": "<p>Dâu tây hữu cơ</p>",
        "price_vnd": 120000,
        "price_pi": 0.5,
        "farm_id": "farm-1",
        "category_id": None,
        "seller_id": "provider-1",
        "stock_quantity": 20,
        "is_unlimited_stock": False,
        "active": True,
        "is_combo": False,
        "is_featured": True,
        "is_flashsale": False,
        "flashsale_percent": None,
        "flashsale_end_at": None,
        "is_verified": True,
        "is_archived": False,
        "media": [],
        "image_url": None,
        "thumbnail_url": None,
        "video_url": None,
        "created_at": "2026-01-22T08:00:00+00:00",
        "updated_at": None,
    }
