"""
Settings Repository - app_settings key/value rows

Older projects have no unique constraint on app_settings.key, so a key can
hold several rows. Reads pick the newest row and writes update that row
(or insert the first one) instead of relying on ON CONFLICT.

Author: TSBIO
Date: 2026-01-23
Updated: 2026-03-02 (newest-row writes)
"""
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from postgrest.exceptions import APIError
from pydantic import TypeAdapter, ValidationError

from tsbio.core.database import get_supabase_admin
from tsbio.core.errors import ApiError

SETTINGS_COLUMNS = "id, key, value, updated_at, created_at"

_timestamp = TypeAdapter(datetime)


def _epoch(value) -> Optional[float]:
    if not value:
        return None
    try:
        parsed = _timestamp.validate_python(value)
    except ValidationError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def row_rank(row: dict):
    """Sort key for duplicate rows of one key: updated_at or created_at, then numeric id"""
    try:
        numeric_id = int(row.get("id"))
    except (TypeError, ValueError):
        numeric_id = 0
    stamp = _epoch(row.get("updated_at")) or _epoch(row.get("created_at"))
    return (stamp if stamp is not None else float("-inf"), numeric_id)


def newest_row(rows: List[dict]) -> Optional[dict]:
    if not rows:
        return None
    return max(rows, key=row_rank)


class SettingsRepository:

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        return self._client or get_supabase_admin()

    def _table(self):
        return self.client.table("app_settings")

    def rows_for_key(self, key: str, limit: int = 50) -> List[dict]:
        """Raw rows of one key (the table may hold duplicates of a key)"""
        res = self._table().select(SETTINGS_COLUMNS).eq("key", key).limit(limit).execute()
        return res.data or []

    def newest_values(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        """key -> value of its newest row, for the keys that have rows"""
        try:
            res = self._table().select(SETTINGS_COLUMNS).in_("key", list(keys)).execute()
        except APIError as e:
            raise ApiError("DB_ERROR", detail=e.message)

        grouped: Dict[str, List[dict]] = {}
        for row in res.data or []:
            grouped.setdefault(row.get("key"), []).append(row)
        return {key: newest_row(rows).get("value") for key, rows in grouped.items()}

    def save(self, key: str, value: str) -> None:
        """Update the newest row of key, or insert one when the key is new"""
        now = datetime.now(timezone.utc).isoformat()
        try:
            current = newest_row(self.rows_for_key(key))
            if current and current.get("id") is not None:
                self._table().update({"value": value, "updated_at": now}).eq("id", current["id"]).execute()
            else:
                self._table().insert({"key": key, "value": value, "updated_at": now}).execute()
        except APIError as e:
            raise ApiError("DB_UPSERT_FAILED", detail=e.message)

    def upsert_many(self, values: Dict[str, str]) -> None:
        for key, value in values.items():
            self.save(key, value)
