"""
Supabase and PostgreSQL access

This module centralizes every way the backend reaches the database:
- Supabase admin client (service role; PostgREST tables + Storage + Auth admin)
- Supabase anon client (resolving user bearer tokens only)
- psycopg2 direct connections (wallet ledger SQL that needs row locks / joins)

Author: TSBIO
Updated: 2026-02-10
"""
import logging
import time
from typing import Optional

import psycopg2
from psycopg2.extras import RealDictCursor
from supabase import Client, ClientOptions, create_client

from .config import settings
from .errors import ApiError

logger = logging.getLogger(__name__)


# ============================================================================
# Supabase Clients
# ============================================================================

_admin_client: Optional[Client] = None
_anon_client: Optional[Client] = None


def get_supabase_admin() -> Client:
    """
    Service-role Supabase client (server only)

    FastAPI dependency as well:
        @router.get("/data")
        def get_data(sb: Client = Depends(get_supabase_admin)):
            ...

    Raises:
        ApiError(SUPABASE_ADMIN_ENV_MISSING) when URL or service key is missing
    """
    global _admin_client
    if _admin_client is None:
        if not settings.supabase_admin_configured:
            raise ApiError("SUPABASE_ADMIN_ENV_MISSING")
        _admin_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_ROLE_KEY,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )
    return _admin_client


def get_supabase_anon() -> Client:
    """Anon-key client, used to resolve user access tokens"""
    global _anon_client
    if _anon_client is None:
        if not settings.SUPABASE_URL:
            raise ApiError("MISSING_SUPABASE_URL")
        if not settings.SUPABASE_ANON_KEY:
            raise ApiError("MISSING_ANON_KEY")
        _anon_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_ANON_KEY,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )
    return _anon_client


def new_supabase_anon() -> Client:
    """Fresh anon client for one-off sign-ins (keeps the shared client session-free)"""
    if not settings.SUPABASE_URL or not settings.SUPABASE_ANON_KEY:
        raise ApiError("MISSING_ANON_KEY")
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_ANON_KEY,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )


def reset_clients() -> None:
    """Drop cached clients (settings changed, tests)"""
    global _admin_client, _anon_client
    _admin_client = None
    _anon_client = None


# ============================================================================
# psycopg2 Direct Connections (with retry)
# ============================================================================

def get_db_connection_dict_with_retry(max_retries=3, retry_delay=1.0):
    """
    Get a psycopg2 connection with RealDictCursor and automatic retry

    Handles intermittent Supabase pooler failures by retrying with
    exponential backoff. Non-connection errors fail immediately.

    Args:
        max_retries: Maximum number of connection attempts (default: 3)
        retry_delay: Initial delay between retries in seconds (default: 1.0)

    Returns:
        psycopg2 connection with RealDictCursor

    Raises:
        ApiError(DATABASE_UNAVAILABLE) if DATABASE_URL is missing or every attempt fails
    """
    database_url = settings.DATABASE_URL
    if not database_url:
        raise ApiError("DATABASE_UNAVAILABLE", detail="DATABASE_URL not configured")

    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            conn = psycopg2.connect(database_url, cursor_factory=RealDictCursor)

            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()

            return conn

        except psycopg2.OperationalError as e:
            last_error = e
            error_msg = str(e)

            if "SSL connection has been closed unexpectedly" in error_msg:
                logger.warning(f"SSL connection error on attempt {attempt}/{max_retries}: {error_msg}")
            else:
                logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {error_msg}")

            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)

    logger.error(f"All {max_retries} connection attempts failed")
    raise ApiError("DATABASE_UNAVAILABLE", detail=str(last_error))
