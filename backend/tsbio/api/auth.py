"""
Authentication API endpoints for TSBIO
- Pi Network login
- Current user (auth + profile + wallet)
- Password change for email accounts

Author: TSBIO
Date: 2026-01-27
"""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from supabase import AuthError

from tsbio.core.auth import get_current_user
from tsbio.core.database import get_supabase_admin, new_supabase_anon
from tsbio.core.errors import ApiError
from tsbio.domain.profile import AuthUser
from tsbio.repositories.profile_repository import ProfileRepository
from tsbio.services.pi_auth import PiAuthService, PiLoginPayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

MIN_PASSWORD_LENGTH = 8


# =============================================================================
# Pydantic Models
# =============================================================================

class PasswordChange(BaseModel):
    current_password: str
    new_password: str


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/pi")
async def pi_login(payload: PiLoginPayload):
    """
    Pi Browser login

    Body: {accessToken, user: {uid, username}}
    Returns: {uid, username, accessToken, role, createdAt}
    """
    return PiAuthService().login(payload)


@router.get("/me")
async def get_me(user: AuthUser = Depends(get_current_user)):
    """Current auth user with profile and wallet rows (either may be null)"""
    repo = ProfileRepository()
    profile = repo.find_by_id(user.id)
    wallet = repo.find_wallet(user.id)

    return {
        "auth": {
            "id": user.id,
            "email": user.email,
            "email_confirmed_at": user.email_confirmed_at.isoformat() if user.email_confirmed_at else None,
        },
        "profile": profile.model_dump(mode="json") if profile else None,
        "wallet": wallet,
    }


@router.post("/change-password")
async def change_password(body: PasswordChange, user: AuthUser = Depends(get_current_user)):
    """
    Change the caller's password

    The current password is checked by signing in with it on a throwaway
    client; the new one is set through the Auth admin API.
    """
    if len(body.new_password) < MIN_PASSWORD_LENGTH:
        raise ApiError("WEAK_PASSWORD", detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if not user.email:
        raise ApiError("INVALID_PAYLOAD", detail="Account has no email password")

    try:
        new_supabase_anon().auth.sign_in_with_password({
            "email": user.email,
            "password": body.current_password,
        })
    except AuthError:
        raise ApiError("INVALID_CURRENT_PASSWORD")

    try:
        get_supabase_admin().auth.admin.update_user_by_id(user.id, {"password": body.new_password})
    except AuthError as e:
        logger.error(f"Password update failed for {user.id}: {e}")
        raise ApiError("PASSWORD_UPDATE_FAILED", detail=str(e))

    logger.info(f"Password changed for user {user.id}")
    return {"ok": True}
