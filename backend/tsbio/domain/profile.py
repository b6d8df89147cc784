"""
Profile and Wallet Domain Models

profiles.id is the Supabase auth user id. Wallet balances are TSB tokens
held in tsb_wallets; every balance change is mirrored by one tsb_ledger row.

Author: TSBIO
Date: 2026-01-20
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ROOT_ROLE = "root_admin"
ROOT_LEVEL = "super"

ADMIN_ROLES = ("root_admin", "admin", "editor", "provider", "approval")
PROFILE_ROLES = ADMIN_ROLES + ("member",)
PROFILE_LEVELS = ("basic", "super")


class AuthUser(BaseModel):
    """User resolved from a Supabase access token"""
    id: str
    email: Optional[str] = None
    email_confirmed_at: Optional[datetime] = None


class Profile(BaseModel):
    """Row of the profiles table"""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Auth user id (uuid)")
    username: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str = Field("member", description="member, root_admin, admin, editor, provider, approval")
    level: str = Field("basic", description="basic or super")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_root_admin(self) -> bool:
        """Root admin rule: role = 'root_admin' AND level = 'super'"""
        return self.role == ROOT_ROLE and self.level == ROOT_LEVEL


class ProfileUpdate(BaseModel):
    """Fields a root admin may change on a profile"""
    full_name: Optional[str] = None
    role: Optional[str] = None
    level: Optional[str] = None

    @field_validator("role")
    @classmethod
    def _known_role(cls, v):
        if v is not None and v not in PROFILE_ROLES:
            raise ValueError(f"role must be one of {', '.join(PROFILE_ROLES)}")
        return v

    @field_validator("level")
    @classmethod
    def _known_level(cls, v):
        if v is not None and v not in PROFILE_LEVELS:
            raise ValueError(f"level must be one of {', '.join(PROFILE_LEVELS)}")
        return v


class AdminContext(BaseModel):
    """Caller of an admin route: auth user + profile"""
    user: AuthUser
    profile: Profile

    @property
    def profile_id(self) -> str:
        return self.profile.id


class Wallet(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    profile_id: str
    balance: Decimal = Decimal("0")
    locked: Decimal = Decimal("0")
    username: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def available(self) -> Decimal:
        return self.balance - self.locked


class LedgerEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    wallet_id: str
    profile_id: str
    amount: Decimal
    balance_after: Decimal
    entry_type: str
    note: Optional[str] = None
    actor_profile_id: Optional[str] = None
    created_at: Optional[datetime] = None


class WalletAdjustment(BaseModel):
    """Manual credit (amount > 0) or debit (amount < 0) by a root admin"""
    amount: Decimal
    entry_type: str = Field("admin_adjust", max_length=40)
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("amount")
    @classmethod
    def _non_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("amount must not be zero")
        return v
