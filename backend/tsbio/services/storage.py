"""
Media Storage - thin wrapper over a Supabase Storage bucket

Every call goes through the service-role client. Storage failures raise
StorageError carrying the storage message, so callers can map them to their
own error codes.

Author: TSBIO
Date: 2026-01-22
"""
import logging
from typing import List, Optional

from storage3.exceptions import StorageApiError

from tsbio.core.config import settings
from tsbio.core.database import get_supabase_admin
from tsbio.core.errors import StorageError

logger = logging.getLogger(__name__)


class MediaStorage:
    """
    Operations on one bucket (default: settings.MEDIA_BUCKET)

    Usage:
        storage = MediaStorage()
        storage.upload("banners/hero.jpg", data, "image/jpeg")
        url = storage.public_url("banners/hero.jpg")
    """

    def __init__(self, client=None, bucket: Optional[str] = None):
        self._client = client
        self.bucket = bucket or settings.MEDIA_BUCKET

    @property
    def client(self):
        return self._client or get_supabase_admin()

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def ensure_bucket(self, public: bool = True) -> None:
        """Create the bucket when missing. Failures are logged, never raised."""
        try:
            buckets = self.client.storage.list_buckets() or []
            names = {getattr(b, "id", None) or getattr(b, "name", None) for b in buckets}
            if self.bucket in names:
                return
            self.client.storage.create_bucket(self.bucket, options={"public": public})
            logger.info(f"Created storage bucket '{self.bucket}'")
        except StorageApiError as e:
            logger.warning(f"ensure_bucket({self.bucket}) failed: {e.message}")

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None, upsert: bool = False) -> str:
        """Upload bytes to path; returns the path"""
        options = {
            "content-type": content_type or "application/octet-stream",
            "cache-control": "3600",
            "upsert": "true" if upsert else "false",
        }
        try:
            self._bucket().upload(path, data, file_options=options)
        except StorageApiError as e:
            raise StorageError(e.message)
        return path

    def move(self, from_path: str, to_path: str, tolerate_existing: bool = False) -> None:
        """
        Move an object

        With tolerate_existing, an "already exists" failure counts as done
        (a retried commit finds the object already at its final path).
        """
        try:
            self._bucket().move(from_path, to_path)
        except StorageApiError as e:
            message = e.message or ""
            if tolerate_existing and "already exists" in message.lower():
                logger.info(f"move {from_path} -> {to_path}: target already exists")
                return
            raise StorageError(message)

    def copy(self, from_path: str, to_path: str) -> None:
        try:
            self._bucket().copy(from_path, to_path)
        except StorageApiError as e:
            raise StorageError(e.message)

    def remove(self, paths: List[str]) -> None:
        if not paths:
            return
        try:
            self._bucket().remove(paths)
        except StorageApiError as e:
            raise StorageError(e.message)

    def remove_quietly(self, paths: List[str]) -> bool:
        """Best-effort remove; returns False (and logs) on failure"""
        try:
            self.remove(paths)
            return True
        except StorageError as e:
            logger.warning(f"Storage remove failed for {paths}: {e}")
            return False

    def list(self, prefix: str = "", limit: int = 30) -> List[dict]:
        """Objects directly under prefix, newest first"""
        folder = prefix.rstrip("/")
        options = {
            "limit": limit,
            "offset": 0,
            "sortBy": {"column": "created_at", "order": "desc"},
        }
        try:
            return self._bucket().list(folder, options) or []
        except StorageApiError as e:
            raise StorageError(e.message)

    def public_url(self, path: str) -> str:
        url = self._bucket().get_public_url(path)
        return url.rstrip("?") if isinstance(url, str) else url

    def create_signed_upload_url(self, path: str) -> dict:
        """
        Signed URL the browser can PUT the file to directly

        Returns:
            {"signed_url": ..., "token": ..., "path": path}
        """
        try:
            res = self._bucket().create_signed_upload_url(path)
        except StorageApiError as e:
            raise StorageError(e.message)

        signed_url = res.get("signed_url") or res.get("signedUrl") or res.get("signedURL")
        if not signed_url:
            raise StorageError("Signed upload URL missing from storage response")
        return {"signed_url": signed_url, "token": res.get("token"), "path": res.get("path") or path}
