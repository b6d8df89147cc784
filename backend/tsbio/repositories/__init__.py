"""
Repository Layer - Data Access

This layer handles all Supabase / SQL queries and returns domain models.
Repositories abstract away PostgREST and SQL details from business logic.

Author: TSBIO
Date: 2026-01-20
"""
from tsbio.repositories.audit_repository import AuditRepository
from tsbio.repositories.category_repository import CategoryRepository
from tsbio.repositories.product_repository import ProductRepository
from tsbio.repositories.profile_repository import ProfileRepository
from tsbio.repositories.settings_repository import SettingsRepository
from tsbio.repositories.wallet_repository import WalletRepository

__all__ = [
    'AuditRepository',
    'CategoryRepository',
    'ProductRepository',
    'ProfileRepository',
    'SettingsRepository',
    'WalletRepository'
]
