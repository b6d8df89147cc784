"""
Centralized application configuration for TSBIO

Settings are read from the environment and from backend/.env.

Author: TSBIO
Updated: 2026-02-03 (Supabase project ref consistency check)
"""
import json
import logging
from typing import List, Optional
from urllib.parse import urlparse

from jose import jwt
from jose.exceptions import JOSEError
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    API_TITLE: str = "TSBIO API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Backend for the TSBIO agricultural marketplace"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Supabase (URL + anon key are public, service role key is server-only)
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # Direct Postgres access (wallet ledger SQL, health check)
    DATABASE_URL: Optional[str] = None

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://tsbio.life" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000,https://tsbio.life"

    # Requests for REDIRECT_HOSTS are redirected to CANONICAL_HOST
    CANONICAL_HOST: str = "tsbio.life"
    REDIRECT_HOSTS: str = "www.tsbio.life"

    # Media
    MEDIA_BUCKET: str = "media"
    MAX_PRODUCT_IMAGES: int = 10
    MAX_PRODUCT_VIDEOS: int = 1

    # Pi Network
    ROOT_PI_UID: str = "ce691dfb-749a-4074-a221-53360ca3c64a"
    PI_API_BASE_URL: str = "https://api.minepi.com"
    PI_VERIFY_ACCESS_TOKEN: bool = False
    PI_API_TIMEOUT: float = 10.0

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    def get_redirect_hosts(self) -> List[str]:
        return [host.strip().lower() for host in self.REDIRECT_HOSTS.split(",") if host.strip()]

    @property
    def supabase_admin_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_ROLE_KEY)

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


def supabase_project_ref_from_key(key: Optional[str]) -> str:
    """
    Read the project ref claim from a Supabase API key (anon or service role).

    The key is a JWT; only its payload is inspected, the signature is not
    verified. Returns "" when the key is missing or unreadable.
    """
    if not key:
        return ""
    try:
        claims = jwt.get_unverified_claims(key)
    except (JOSEError, ValueError):
        return ""
    ref = claims.get("ref")
    return ref if isinstance(ref, str) else ""


def supabase_project_ref_from_url(url: Optional[str]) -> str:
    """Project ref is the first label of the Supabase host (https://<ref>.supabase.co)"""
    if not url:
        return ""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    return host.split(".")[0] if host else ""


def check_supabase_consistency(config: Optional[Settings] = None) -> bool:
    """
    True when SUPABASE_URL and SUPABASE_ANON_KEY point at the same project.

    Unknown refs (missing or non-JWT keys) are treated as consistent.
    """
    config = config or settings
    url_ref = supabase_project_ref_from_url(config.SUPABASE_URL)
    key_ref = supabase_project_ref_from_key(config.SUPABASE_ANON_KEY)
    if url_ref and key_ref and url_ref != key_ref:
        logger.warning(
            f"Supabase project mismatch: SUPABASE_URL ref '{url_ref}' != anon key ref '{key_ref}'"
        )
        return False
    return True


settings = Settings()
