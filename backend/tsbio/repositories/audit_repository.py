"""
Audit Repository - audit_logs writes and reads

Audit writes never fail the request that triggered them.

Author: TSBIO
Date: 2026-01-23
"""
import logging
from typing import List, Optional, Tuple

from postgrest.exceptions import APIError

from tsbio.core.database import get_supabase_admin
from tsbio.core.errors import ApiError

logger = logging.getLogger(__name__)

AUDIT_COLUMNS = "id, actor_profile_id, action, target, meta, created_at"


class AuditRepository:

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        return self._client or get_supabase_admin()

    def write(
        self,
        actor_profile_id: Optional[str],
        action: str,
        target: Optional[str] = None,
        meta: Optional[dict] = None,
    ) -> bool:
        """Insert one audit row; returns False (and logs) when the insert fails"""
        row = {
            "actor_profile_id": actor_profile_id,
            "action": action,
            "target": target,
            "meta": meta or {},
        }
        try:
            self.client.table("audit_logs").insert(row).execute()
            return True
        except (APIError, ApiError) as e:
            logger.warning(f"Audit write failed for {action}: {e}")
            return False

    def find_all(
        self,
        action: Optional[str] = None,
        actor_profile_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[dict], int]:
        query = self.client.table("audit_logs").select(AUDIT_COLUMNS, count="exact")
        if action:
            query = query.eq("action", action)
        if actor_profile_id:
            query = query.eq("actor_profile_id", actor_profile_id)
        try:
            res = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
        except APIError as e:
            raise ApiError("DB_ERROR", detail=e.message)

        rows = res.data or []
        return rows, res.count if res.count is not None else len(rows)
