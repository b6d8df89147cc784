"""
Domain Layer - Marketplace Entities

Pydantic models for profiles, wallets, products, categories and app
settings, plus the pure product media rules.

Author: TSBIO
Date: 2026-01-20
"""
from tsbio.domain.category import Category, CategoryCreate, CategoryUpdate
from tsbio.domain.media import MediaItem
from tsbio.domain.product import Product, ProductCreate, ProductUpdate
from tsbio.domain.profile import AdminContext, AuthUser, LedgerEntry, Profile, Wallet
from tsbio.domain.settings import BannerPayload, HomeHeroSettings

__all__ = [
    'AdminContext', 'AuthUser', 'BannerPayload', 'Category', 'CategoryCreate',
    'CategoryUpdate', 'HomeHeroSettings', 'LedgerEntry', 'MediaItem', 'Product',
    'ProductCreate', 'ProductUpdate', 'Profile', 'Wallet'
]
