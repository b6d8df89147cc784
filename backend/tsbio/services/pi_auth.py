"""
Pi Network Login

The Pi Browser SDK authenticates the user client-side and hands us
{accessToken, user: {uid, username}}. The access token can optionally be
checked against the Pi Platform API (GET /v2/me) before trusting the uid.

Author: TSBIO
Date: 2026-01-27
"""
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict

from tsbio.core.config import settings
from tsbio.core.errors import ApiError

logger = logging.getLogger(__name__)


class PiUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    uid: Optional[str] = None
    username: Optional[str] = None


class PiLoginPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    accessToken: Optional[str] = None
    user: Optional[PiUser] = None


class PiAuthService:
    """
    Resolves a Pi login payload to a session descriptor

    Usage:
        session = PiAuthService().login(payload)
    """

    def __init__(self, http_client: Optional[httpx.Client] = None):
        self._http = http_client

    def verify_access_token(self, access_token: str) -> dict:
        """
        GET {PI_API_BASE_URL}/v2/me with the user's token

        Raises:
            ApiError(PI_TOKEN_INVALID) when the Pi API rejects the token
            ApiError(PI_API_UNAVAILABLE) on transport failure or a malformed body
        """
        url = f"{settings.PI_API_BASE_URL.rstrip('/')}/v2/me"
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            if self._http is not None:
                response = self._http.get(url, headers=headers, timeout=settings.PI_API_TIMEOUT)
            else:
                with httpx.Client() as client:
                    response = client.get(url, headers=headers, timeout=settings.PI_API_TIMEOUT)
        except httpx.HTTPError as e:
            logger.error(f"Pi API request failed: {e}")
            raise ApiError("PI_API_UNAVAILABLE", detail=str(e))

        if response.status_code != 200:
            logger.warning(f"Pi API rejected access token: HTTP {response.status_code}")
            raise ApiError("PI_TOKEN_INVALID", detail=f"Pi API returned {response.status_code}")

        try:
            me = response.json()
        except ValueError as e:
            logger.error(f"Pi API returned a non-JSON body: {e}")
            raise ApiError("PI_API_UNAVAILABLE", detail="Malformed Pi API response")
        if not isinstance(me, dict):
            raise ApiError("PI_API_UNAVAILABLE", detail="Malformed Pi API response")
        return me

    def role_for(self, uid: str) -> str:
        return "admin" if uid == settings.ROOT_PI_UID else "user"

    def login(self, payload: PiLoginPayload) -> dict:
        """
        Returns:
            {uid, username, accessToken, role, createdAt}
        """
        user = payload.user
        if not payload.accessToken or not user or not user.uid or not user.username:
            raise ApiError("INVALID_PAYLOAD", detail="Missing accessToken or user fields.")

        if settings.PI_VERIFY_ACCESS_TOKEN:
            me = self.verify_access_token(payload.accessToken)
            if me.get("uid") != user.uid:
                raise ApiError("PI_TOKEN_INVALID", detail="Token does not belong to this uid")

        role = self.role_for(user.uid)
        logger.info(f"Pi login: {user.username} ({role})")
        return {
            "uid": user.uid,
            "username": user.username,
            "accessToken": payload.accessToken,
            "role": role,
            "createdAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
