"""
App Settings Service - home hero copy and the admin banner editor

Author: TSBIO
Date: 2026-01-23
"""
import logging
from typing import Optional

from postgrest.exceptions import APIError

from tsbio.core.errors import ApiError
from tsbio.domain.settings import (
    BANNER_KEYS,
    HERO_KEY_FALLBACKS,
    BannerPayload,
    BannerSettings,
    HomeHeroSettings,
)
from tsbio.repositories.audit_repository import AuditRepository
from tsbio.repositories.settings_repository import SettingsRepository, newest_row

logger = logging.getLogger(__name__)


def _clean_value(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text.replace("\\n", "\n")


class SettingsService:

    def __init__(self, repo=None, audit=None):
        self.repo = repo or SettingsRepository()
        self.audit = audit or AuditRepository()

    def read_setting(self, key: str) -> Optional[str]:
        """
        Current value of a key, or None

        The table is not unique on key in older projects, so the newest row
        wins. Blank values count as unset; a literal backslash-n in the
        stored text becomes a newline. Read errors are logged and yield None.
        """
        try:
            rows = self.repo.rows_for_key(key)
        except (APIError, ApiError) as e:
            logger.warning(f"read_setting({key}) failed: {e}")
            return None

        if not rows:
            return None
        return _clean_value(newest_row(rows).get("value"))

    def get_home_hero_settings(self) -> HomeHeroSettings:
        """Hero copy for the storefront; each field falls back through older key names to the default"""
        values = {}
        for field, keys in HERO_KEY_FALLBACKS.items():
            for key in keys:
                value = self.read_setting(key)
                if value is not None:
                    values[field] = value
                    break
        return HomeHeroSettings(**values)

    def read_banner(self) -> BannerSettings:
        stored = self.repo.newest_values(BANNER_KEYS.values())
        return BannerSettings(**{
            field: stored.get(key) or ""
            for field, key in BANNER_KEYS.items()
        })

    def update_banner(self, payload: BannerPayload, actor_profile_id: Optional[str]) -> BannerSettings:
        """Upsert only the banner fields present in the payload"""
        values = payload.provided_values()
        self.repo.upsert_many(values)
        self.audit.write(actor_profile_id, "banner.update", target="home.hero", meta={
            "keys": sorted(values.keys()),
        })
        return self.read_banner()
