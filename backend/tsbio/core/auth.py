"""
Authentication dependencies for the TSBIO backend

Callers send the Supabase access token as `Authorization: Bearer <token>`.
The token is resolved through Supabase Auth, then the caller's profile row
decides what they may do. Only DB fields (profiles.role + profiles.level) are
trusted for roles.
"""
import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import AuthError

from tsbio.core.database import get_supabase_anon
from tsbio.core.errors import ApiError
from tsbio.domain.profile import AdminContext, AuthUser, Profile
from tsbio.repositories.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)

# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)


def get_user_from_token(token: Optional[str]) -> Optional[AuthUser]:
    """
    Resolve a Supabase access token to its auth user.

    Returns None for a missing, expired, or otherwise invalid token.
    """
    if not token:
        return None

    try:
        res = get_supabase_anon().auth.get_user(token)
    except AuthError as e:
        logger.debug(f"Bearer token rejected by Supabase Auth: {e}")
        return None

    user = getattr(res, "user", None)
    if not user:
        return None

    return AuthUser(
        id=str(user.id),
        email=user.email,
        email_confirmed_at=getattr(user, "email_confirmed_at", None),
    )


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[AuthUser]:
    """Authenticated user or None"""
    if not credentials:
        return None
    return get_user_from_token(credentials.credentials.strip())


async def get_current_user(
    user: Optional[AuthUser] = Depends(get_current_user_optional),
) -> AuthUser:
    """
    Dependency that requires a valid bearer token.

    Usage:
        @router.get("/protected")
        async def protected_route(user: AuthUser = Depends(get_current_user)):
            ...
    """
    if not user:
        raise ApiError("UNAUTHORIZED")
    return user


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    return credentials.credentials.strip() if credentials else None


def load_profile(profile_id: str, profiles: Optional[ProfileRepository] = None) -> Optional[Profile]:
    """Profile row of the caller (service-role read)"""
    return (profiles or ProfileRepository()).find_by_id(profile_id)


def is_root_admin(profile: Optional[Profile]) -> bool:
    return bool(profile) and profile.is_root_admin


def require_root_admin(profile_id: str, profiles: Optional[ProfileRepository] = None) -> Profile:
    """
    Root Admin gate.

    Raises:
        ApiError(USER_NOT_FOUND) when the profile does not exist
        ApiError(FORBIDDEN_NOT_ROOT) unless role = 'root_admin' AND level = 'super'
    """
    profile = load_profile(profile_id, profiles)
    if not profile:
        raise ApiError("USER_NOT_FOUND")
    if not is_root_admin(profile):
        raise ApiError("FORBIDDEN_NOT_ROOT")
    return profile


def require_admin_role(*roles: str):
    """
    Dependency factory for admin routes.

    Root admins always pass; other callers pass when profiles.role is one of
    `roles`.

    Usage:
        @router.get("/media/list")
        async def list_media(ctx: AdminContext = Depends(require_admin_role("admin", "editor"))):
            ...
    """
    allowed = set(roles)

    async def role_checker(user: AuthUser = Depends(get_current_user)) -> AdminContext:
        profile = load_profile(user.id)
        if not profile:
            raise ApiError("USER_NOT_FOUND")

        if profile.is_root_admin or profile.role in allowed:
            return AdminContext(user=user, profile=profile)

        raise ApiError(
            "FORBIDDEN_ROLE",
            detail=f"Required role: {', '.join(sorted(allowed)) or 'root_admin'}, your role: {profile.role}",
        )

    return role_checker


async def require_root(user: AuthUser = Depends(get_current_user)) -> AdminContext:
    """Dependency: bearer token of a root admin"""
    profile = require_root_admin(user.id)
    return AdminContext(user=user, profile=profile)


# Convenience dependencies for the role sets the admin UI uses
require_media_manager = require_admin_role("admin", "editor", "provider", "approval")
require_media_editor = require_admin_role("admin", "editor")
require_storage_admin = require_admin_role("admin")
require_catalog_editor = require_admin_role("admin", "editor", "provider")
require_content_editor = require_admin_role("admin", "editor")
