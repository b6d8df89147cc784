"""
Admin API Endpoints - root admin back-office
- ping (root check for the admin shell)
- home banner editor
- user management
- audit log

Author: TSBIO
Date: 2026-01-23
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query

from tsbio.core.auth import require_root, require_root_admin
from tsbio.core.errors import ApiError
from tsbio.domain.profile import AdminContext, ProfileUpdate
from tsbio.domain.settings import BannerPayload
from tsbio.repositories.audit_repository import AuditRepository
from tsbio.repositories.profile_repository import ProfileRepository
from tsbio.services.settings import SettingsService

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/ping")
async def ping(x_profile_id: Optional[str] = Header(None)):
    """Root check used by the admin layout; profile id comes from the x-profile-id header"""
    profile_id = (x_profile_id or "").strip()
    if not profile_id:
        raise ApiError("MISSING_PROFILE_ID")

    require_root_admin(profile_id)
    return {"ok": True, "role": "root_admin"}


# =============================================================================
# Banner
# =============================================================================

@router.get("/banner")
async def get_banner(ctx: AdminContext = Depends(require_root)):
    return {"ok": True, "settings": SettingsService().read_banner().model_dump()}


@router.put("/banner")
async def update_banner(payload: BannerPayload, ctx: AdminContext = Depends(require_root)):
    """Only the fields present in the body are written"""
    banner = SettingsService().update_banner(payload, ctx.profile_id)
    return {"ok": True, "settings": banner.model_dump()}


# =============================================================================
# Users
# =============================================================================

@router.get("/users")
async def list_users(
    search: Optional[str] = Query(None, description="Search username or email"),
    role: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AdminContext = Depends(require_root),
):
    profiles, total = ProfileRepository().find_all(search=search, role=role, limit=limit, offset=offset)
    items = [
        p.model_dump(mode="json", include={"id", "username", "email", "role", "level", "created_at"})
        for p in profiles
    ]
    return {"ok": True, "items": items, "total": total}


@router.patch("/users/{profile_id}")
async def update_user(profile_id: str, body: ProfileUpdate, ctx: AdminContext = Depends(require_root)):
    """Change role, level, or full name of a profile"""
    fields = body.model_dump(exclude_unset=True)
    if profile_id == ctx.profile_id and ("role" in fields or "level" in fields):
        raise ApiError("FORBIDDEN", detail="Root admin cannot change own role or level")

    repo = ProfileRepository()
    profile = repo.update(profile_id, fields)
    if not profile:
        raise ApiError("PROFILE_NOT_FOUND")

    AuditRepository().write(ctx.profile_id, "user.update", target=profile_id, meta=fields)
    return {"ok": True, "profile": profile.model_dump(mode="json")}


# =============================================================================
# Audit log
# =============================================================================

@router.get("/audit")
async def list_audit(
    action: Optional[str] = Query(None),
    actor_profile_id: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    ctx: AdminContext = Depends(require_root),
):
    rows, total = AuditRepository().find_all(
        action=action,
        actor_profile_id=actor_profile_id,
        limit=limit,
        offset=offset,
    )
    return {"ok": True, "items": rows, "total": total}
