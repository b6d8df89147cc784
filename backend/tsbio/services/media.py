"""
Product Media Service

Every write to products.media goes through this service so the media rules
hold after each mutation (see tsbio.domain.media):
- at most MAX_PRODUCT_IMAGES images and MAX_PRODUCT_VIDEOS video
- display_order reassigned 1..n, images first
- first image primary; it becomes thumbnail_url and image_url

Three ways media reach a product:
- upload: multipart files written straight into the product folder
- commit: temp uploads moved into the product folder, or library URLs referenced in place
- attach: library objects copied into the product folder

Author: TSBIO
Date: 2026-01-22
Updated: 2026-02-05 (commit accepts video thumbnails)
"""
import logging
import os
from typing import List, NamedTuple, Optional

from tsbio.core.config import settings
from tsbio.core.errors import ApiError, StorageError
from tsbio.domain.media import (
    AttachItem,
    IncomingMedia,
    MediaItem,
    check_limits,
    compute_thumbnail_url,
    compute_video_url,
    epoch_ms,
    extract_storage_path_from_public_url,
    guess_type_from_name,
    is_safe_path,
    is_temp_path,
    normalize_media,
    normalize_path,
    now_stamp,
    pick_ext,
    product_folder,
    random_suffix,
    safe_ext_from_name,
    safe_media_array,
    slugify,
    split_media,
    to_json_array,
)
from tsbio.domain.product import Product
from tsbio.repositories.audit_repository import AuditRepository
from tsbio.repositories.product_repository import ProductRepository
from tsbio.services.storage import MediaStorage

logger = logging.getLogger(__name__)


class FilePart(NamedTuple):
    """One uploaded file, already read into memory"""
    filename: str
    content_type: Optional[str]
    data: bytes


class ProductMediaService:
    """
    Media pipeline for one product at a time

    Usage:
        service = ProductMediaService()
        result = service.commit(product_id, items, actor_profile_id)
    """

    def __init__(self, products=None, storage=None, audit=None):
        self.products = products or ProductRepository()
        self.storage = storage or MediaStorage()
        self.audit = audit or AuditRepository()
        self.max_images = settings.MAX_PRODUCT_IMAGES
        self.max_videos = settings.MAX_PRODUCT_VIDEOS

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, product_id: str) -> Product:
        product = self.products.find_by_id(product_id)
        if not product:
            raise ApiError("PRODUCT_NOT_FOUND")
        return product

    def _current_media(self, product: Product) -> List[MediaItem]:
        return safe_media_array(product.media, self.storage.bucket)

    def _persist(
        self,
        product: Product,
        images: List[MediaItem],
        videos: List[MediaItem],
        keep_existing_urls: bool = False,
    ) -> dict:
        """
        Normalize, write the row, and return the new media snapshot

        Derived URLs always follow the new array, so removing the last image
        or the video clears them. Only commit keeps the stored URLs when the
        array yields none.
        """
        media = normalize_media(images[:self.max_images], videos[:self.max_videos])
        thumbnail_url = compute_thumbnail_url(media)
        image_url = thumbnail_url
        video_url = compute_video_url(media)
        if keep_existing_urls:
            thumbnail_url = thumbnail_url or product.thumbnail_url
            image_url = image_url or product.image_url
            video_url = video_url or product.video_url

        media_json = to_json_array(media)
        self.products.update_media(
            product.id,
            media_json,
            thumbnail_url=thumbnail_url,
            video_url=video_url,
            image_url=image_url,
        )
        return {
            "ok": True,
            "media": media_json,
            "image_url": image_url,
            "thumbnail_url": thumbnail_url,
            "video_url": video_url,
        }

    def _final_path(self, product_id: str, kind: str, name: Optional[str]) -> str:
        fallback = ".mp4" if kind == "video" else ".jpg"
        return f"{product_folder(product_id, kind)}/{epoch_ms()}-{random_suffix()}{safe_ext_from_name(name, fallback)}"

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def get_media(self, product_id: str) -> dict:
        product = self._load(product_id)
        media = self._current_media(product)
        return {
            "ok": True,
            "media": to_json_array(media),
            "image_url": product.image_url,
            "thumbnail_url": product.thumbnail_url or compute_thumbnail_url(media),
            "video_url": product.video_url or compute_video_url(media),
        }

    def upload(self, product_id: str, kind: str, files: List[FilePart], actor_profile_id: Optional[str]) -> dict:
        """
        Upload files directly into products/{id}/images|video/

        Raises:
            ApiError(INVALID_KIND, MISSING_FILE, INVALID_FILE_TYPE,
                     IMAGE_LIMIT_EXCEEDED, VIDEO_LIMIT_EXCEEDED, UPLOAD_FAILED)
        """
        if kind not in ("image", "video"):
            raise ApiError("INVALID_KIND", detail="kind must be image or video")
        if not files:
            raise ApiError("MISSING_FILE")
        for f in files:
            if not (f.content_type or "").startswith(f"{kind}/"):
                raise ApiError("INVALID_FILE_TYPE", detail=f"{f.filename}: expected {kind}/*")

        product = self._load(product_id)
        images, videos = split_media(self._current_media(product))
        check_limits(
            len(images), len(videos),
            len(files) if kind == "image" else 0,
            len(files) if kind == "video" else 0,
            self.max_images, self.max_videos,
        )

        self.storage.ensure_bucket()
        added = []
        for f in files:
            base, _ = os.path.splitext(f.filename or "")
            path = f"{product_folder(product_id, kind)}/{now_stamp()}-{slugify(base) or kind}.{pick_ext(f.filename, f.content_type)}"
            try:
                self.storage.upload(path, f.data, f.content_type)
            except StorageError as e:
                raise ApiError("UPLOAD_FAILED", detail=str(e))
            added.append(MediaItem(url=self.storage.public_url(path), type=kind, path=path))

        if kind == "image":
            images = images + added
        else:
            videos = videos + added

        result = self._persist(product, images, videos)
        self.audit.write(actor_profile_id, "product.media.update", target=str(product_id), meta={
            "op": "upload",
            "kind": kind,
            "paths": [m.path for m in added],
        })
        return result

    def remove(self, product_id: str, path: str, actor_profile_id: Optional[str]) -> dict:
        """
        Remove the media item stored at path

        A path the product does not reference is a no-op returning the
        unchanged media. Deleting the storage object is best effort.
        """
        path = normalize_path(path)
        if not path:
            raise ApiError("MISSING_PATH")

        product = self._load(product_id)
        media = self._current_media(product)
        remaining = [m for m in media if m.path != path]

        if len(remaining) == len(media):
            return self.get_media(product_id)

        self.storage.remove_quietly([path])

        images, videos = split_media(remaining)
        result = self._persist(product, images, videos)
        self.audit.write(actor_profile_id, "product.media.update", target=str(product_id), meta={
            "op": "remove",
            "path": path,
        })
        return result

    def commit(self, product_id: str, items: List[IncomingMedia], actor_profile_id: Optional[str]) -> dict:
        """
        Commit temp uploads and library URLs to a product

        Items are processed in request order. The first storage failure
        aborts with COMMIT_FAILED; objects already moved stay where they are.

        Raises:
            ApiError(TOO_MANY_VIDEOS, TOO_MANY_IMAGES, PRODUCT_NOT_FOUND,
                     IMAGE_LIMIT_EXCEEDED, VIDEO_LIMIT_EXCEEDED,
                     INVALID_TMP_PATH, INVALID_THUMB_TMP_PATH,
                     MISSING_MEDIA_SOURCE, COMMIT_FAILED, UPDATE_FAILED)
        """
        new_images = [i for i in items if i.kind == "image"]
        new_videos = [i for i in items if i.kind == "video"]
        if len(new_videos) > self.max_videos:
            raise ApiError("TOO_MANY_VIDEOS", detail=f"Only {self.max_videos} video per product")
        if len(new_images) > self.max_images:
            raise ApiError("TOO_MANY_IMAGES", detail=f"Max {self.max_images} images")

        # Reject bad sources before anything moves
        for item in items:
            tmp_path = normalize_path(item.tmp_path)
            if tmp_path:
                if not is_temp_path(tmp_path) or not is_safe_path(tmp_path):
                    raise ApiError("INVALID_TMP_PATH", detail=tmp_path)
            elif not (item.url or "").strip():
                raise ApiError("MISSING_MEDIA_SOURCE", detail=item.name)
            thumb_tmp = normalize_path(item.thumbnail_tmp_path)
            if thumb_tmp and (not is_temp_path(thumb_tmp) or not is_safe_path(thumb_tmp)):
                raise ApiError("INVALID_THUMB_TMP_PATH", detail=thumb_tmp)

        self.storage.ensure_bucket()
        product = self._load(product_id)

        images, videos = split_media(self._current_media(product))
        check_limits(len(images), len(videos), len(new_images), len(new_videos), self.max_images, self.max_videos)

        committed = []
        for item in items:
            try:
                committed.append(self._commit_item(product_id, item))
            except StorageError as e:
                logger.error(f"Media commit failed for product {product_id}: {e}")
                raise ApiError("COMMIT_FAILED", detail=str(e))

        added_images, added_videos = split_media(committed)
        result = self._persist(product, images + added_images, videos + added_videos, keep_existing_urls=True)
        self.audit.write(actor_profile_id, "product.media.commit", target=str(product_id), meta={
            "images": len(added_images),
            "videos": len(added_videos),
        })
        return result

    def _commit_item(self, product_id: str, item: IncomingMedia) -> MediaItem:
        tmp_path = normalize_path(item.tmp_path)
        if tmp_path:
            path = self._final_path(product_id, item.kind, item.name or tmp_path)
            self.storage.move(tmp_path, path, tolerate_existing=True)
            url = self.storage.public_url(path)
        else:
            url = item.url.strip()
            path = extract_storage_path_from_public_url(url, self.storage.bucket)

        thumbnail_url = None
        if item.kind == "video":
            thumb_tmp = normalize_path(item.thumbnail_tmp_path)
            if thumb_tmp:
                thumb_path = (
                    f"products/{product_id}/video/thumbnail/"
                    f"{epoch_ms()}-{random_suffix()}{safe_ext_from_name(thumb_tmp, '.jpg')}"
                )
                self.storage.move(thumb_tmp, thumb_path, tolerate_existing=True)
                thumbnail_url = self.storage.public_url(thumb_path)
            elif item.thumbnail_url:
                thumbnail_url = item.thumbnail_url

        return MediaItem(url=url, type=item.kind, path=path, thumbnail_url=thumbnail_url)

    def attach(self, product_id: str, items: List[AttachItem], actor_profile_id: Optional[str]) -> dict:
        """
        Copy media-library objects into the product folder and append them

        Raises:
            ApiError(NO_ITEMS, PRODUCT_NOT_FOUND, IMAGE_LIMIT_EXCEEDED,
                     VIDEO_LIMIT_EXCEEDED, COPY_FAILED)
        """
        unique = {}
        for item in items or []:
            path = normalize_path(item.path)
            if not is_safe_path(path) or path in unique:
                continue
            unique[path] = item.type or guess_type_from_name(path)

        if not unique:
            raise ApiError("NO_ITEMS")

        product = self._load(product_id)
        images, videos = split_media(self._current_media(product))
        add_images = sum(1 for kind in unique.values() if kind == "image")
        check_limits(len(images), len(videos), add_images, len(unique) - add_images, self.max_images, self.max_videos)

        attached = []
        for src, kind in unique.items():
            base, _ = os.path.splitext(os.path.basename(src))
            dest = f"{product_folder(product_id, kind)}/{now_stamp()}_{slugify(base) or kind}.{pick_ext(src)}"
            try:
                self.storage.copy(src, dest)
            except StorageError as e:
                raise ApiError("COPY_FAILED", detail=f"{src}: {e}")
            attached.append(MediaItem(url=self.storage.public_url(dest), type=kind, path=dest))

        added_images, added_videos = split_media(attached)
        result = self._persist(product, images + added_images, videos + added_videos)
        self.audit.write(actor_profile_id, "product.media.update", target=str(product_id), meta={
            "op": "attach",
            "paths": [m.path for m in attached],
        })
        result["attached"] = to_json_array(attached)
        return result
