"""
Profile Repository - Data Access Layer for profiles

Author: TSBIO
Date: 2026-01-20
"""
from typing import List, Optional, Tuple

from postgrest.exceptions import APIError

from tsbio.core.database import get_supabase_admin
from tsbio.core.errors import ApiError
from tsbio.domain.profile import Profile

PROFILE_COLUMNS = "id, username, email, full_name, role, level, created_at, updated_at"
WALLET_COLUMNS = "id, profile_id, balance, locked, created_at, updated_at"


class ProfileRepository:
    """Reads and updates rows of the profiles table through PostgREST"""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        return self._client or get_supabase_admin()

    def find_by_id(self, profile_id: str) -> Optional[Profile]:
        """
        Find profile by id

        Returns:
            Profile or None if not found
        """
        try:
            res = (
                self.client.table("profiles")
                .select(PROFILE_COLUMNS)
                .eq("id", profile_id)
                .limit(1)
                .execute()
            )
        except APIError as e:
            raise ApiError("DB_ERROR", detail=e.message)

        rows = res.data or []
        return Profile(**rows[0]) if rows else None

    def find_all(
        self,
        search: Optional[str] = None,
        role: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Profile], int]:
        """List profiles newest first with optional username/email search"""
        query = self.client.table("profiles").select(PROFILE_COLUMNS, count="exact")
        if role:
            query = query.eq("role", role)
        if search:
            term = search.replace(",", " ").strip()
            query = query.or_(f"username.ilike.%{term}%,email.ilike.%{term}%")

        try:
            res = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
        except APIError as e:
            raise ApiError("DB_ERROR", detail=e.message)

        profiles = [Profile(**row) for row in res.data or []]
        return profiles, res.count if res.count is not None else len(profiles)

    def update(self, profile_id: str, fields: dict) -> Optional[Profile]:
        if not fields:
            raise ApiError("NO_FIELDS", detail="No fields to update")
        try:
            res = self.client.table("profiles").update(fields).eq("id", profile_id).execute()
        except APIError as e:
            raise ApiError("DB_UPDATE_FAILED", detail=e.message)

        rows = res.data or []
        return Profile(**rows[0]) if rows else None

    def find_wallet(self, profile_id: str) -> Optional[dict]:
        """The profile's tsb_wallets row (PostgREST read, no DATABASE_URL needed)"""
        try:
            res = (
                self.client.table("tsb_wallets")
                .select(WALLET_COLUMNS)
                .eq("profile_id", profile_id)
                .limit(1)
                .execute()
            )
        except APIError as e:
            raise ApiError("DB_ERROR", detail=e.message)

        rows = res.data or []
        return rows[0] if rows else None
