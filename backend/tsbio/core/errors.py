"""
API error plumbing

Handlers raise ApiError with a string code. The code decides the HTTP status
unless one is given explicitly, and every error renders as:

    {"ok": false, "error": "<CODE>", "detail": "<optional detail>"}

Author: TSBIO
Date: 2026-01-20
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


ERROR_STATUS = {
    # 401
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "MISSING_PROFILE_ID": status.HTTP_401_UNAUTHORIZED,
    "PI_TOKEN_INVALID": status.HTTP_401_UNAUTHORIZED,
    # 403
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "FORBIDDEN_NOT_ROOT": status.HTTP_403_FORBIDDEN,
    "FORBIDDEN_ROLE": status.HTTP_403_FORBIDDEN,
    "USER_NOT_FOUND": status.HTTP_403_FORBIDDEN,
    # 404
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PRODUCT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CATEGORY_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PROFILE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "WALLET_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    # 400
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "INVALID_PAYLOAD": status.HTTP_400_BAD_REQUEST,
    "INVALID_KIND": status.HTTP_400_BAD_REQUEST,
    "INVALID_FILE": status.HTTP_400_BAD_REQUEST,
    "MISSING_FILE": status.HTTP_400_BAD_REQUEST,
    "INVALID_FILE_TYPE": status.HTTP_400_BAD_REQUEST,
    "INVALID_IMAGE": status.HTTP_400_BAD_REQUEST,
    "INVALID_VIDEO": status.HTTP_400_BAD_REQUEST,
    "INVALID_PATH": status.HTTP_400_BAD_REQUEST,
    "MISSING_PATH": status.HTTP_400_BAD_REQUEST,
    "IMAGE_LIMIT_EXCEEDED": status.HTTP_400_BAD_REQUEST,
    "VIDEO_LIMIT_EXCEEDED": status.HTTP_400_BAD_REQUEST,
    "TOO_MANY_IMAGES": status.HTTP_400_BAD_REQUEST,
    "TOO_MANY_VIDEOS": status.HTTP_400_BAD_REQUEST,
    "NO_ITEMS": status.HTTP_400_BAD_REQUEST,
    "NO_FIELDS": status.HTTP_400_BAD_REQUEST,
    "STORAGE_ERROR": status.HTTP_400_BAD_REQUEST,
    "INSUFFICIENT_BALANCE": status.HTTP_400_BAD_REQUEST,
    "INVALID_CURRENT_PASSWORD": status.HTTP_400_BAD_REQUEST,
    "WEAK_PASSWORD": status.HTTP_400_BAD_REQUEST,
    "SLUG_TAKEN": status.HTTP_409_CONFLICT,
    # upstream
    "PI_API_UNAVAILABLE": status.HTTP_502_BAD_GATEWAY,
    "DATABASE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(code: str) -> int:
    """HTTP status for an error code (500 for anything unknown)"""
    return ERROR_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)


class ApiError(Exception):
    """Error surfaced to the client as {ok, error, detail}"""

    def __init__(self, code: str, status_code: Optional[int] = None, detail: Any = None):
        super().__init__(code)
        self.code = code
        self.status_code = status_code or status_for(code)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.code, "detail": self.detail}


class StorageError(Exception):
    """Supabase Storage call failed; message is the storage error text"""


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.code}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"ok": False, "error": "VALIDATION_ERROR", "detail": errors},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
