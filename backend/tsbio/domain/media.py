"""
Product Media Domain Rules

products.media is a JSON array of MediaItem. Rules applied on every mutation:
- at most MAX_IMAGES images and MAX_VIDEOS video
- display_order is reassigned 1..n, images first (in array order), then video
- the first image is primary and its URL becomes the product thumbnail

Also holds the storage path helpers shared by the media routes.

Author: TSBIO
Date: 2026-01-22
"""
import json
import re
import secrets
import time
import unicodedata
from datetime import datetime, timezone
from typing import Any, Iterable, List, Literal, Optional
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field

from tsbio.core.errors import ApiError

MediaKind = Literal["image", "video"]
MEDIA_KINDS = ("image", "video")

MAX_IMAGES = 10
MAX_VIDEOS = 1

VIDEO_EXTENSIONS = ("mp4", "mov", "webm", "avi", "mkv", "m4v")

# Temp uploads live flat under uploads/ so the (non-recursive) library listing shows them.
# tmp/<userId>/... is the older layout, still accepted on commit and delete.
TEMP_PREFIX = "uploads/tmp_"
LEGACY_TEMP_PREFIX = "tmp/"


class MediaItem(BaseModel):
    """One element of products.media"""

    model_config = ConfigDict(extra="ignore")

    url: str
    type: MediaKind
    display_order: int = 0
    path: Optional[str] = None
    is_primary: Optional[bool] = None
    thumbnail_url: Optional[str] = None

    def to_json(self) -> dict:
        return self.model_dump(exclude_none=True)


class IncomingMedia(BaseModel):
    """Item of a media commit request: a temp upload or a library URL"""

    model_config = ConfigDict(extra="ignore")

    kind: MediaKind
    tmp_path: Optional[str] = None
    url: Optional[str] = None
    name: Optional[str] = None
    # Optional video thumbnail (generated client-side)
    thumbnail_url: Optional[str] = None
    thumbnail_tmp_path: Optional[str] = None


class AttachItem(BaseModel):
    """Library object to copy into a product's folder"""

    model_config = ConfigDict(extra="ignore")

    path: str = ""
    type: Optional[MediaKind] = None


class MediaSnapshot(BaseModel):
    """Media state returned by every product media route"""
    ok: bool = True
    media: List[dict] = Field(default_factory=list)
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None


# ============================================================================
# Media array rules
# ============================================================================

def extract_storage_path_from_public_url(public_url: Optional[str], bucket: str = "media") -> Optional[str]:
    """
    Storage object path of a Supabase public URL, or None.

    https://<ref>.supabase.co/storage/v1/object/public/media/products/1/a.jpg -> products/1/a.jpg
    """
    if not public_url:
        return None
    marker = f"/storage/v1/object/public/{bucket}/"
    idx = public_url.find(marker)
    if idx == -1:
        return None
    return unquote(public_url[idx + len(marker):])


def safe_media_array(raw: Any, bucket: str = "media") -> List[MediaItem]:
    """
    Parse products.media leniently.

    Non-arrays yield []. Items without a valid type or a string url are
    dropped; a missing path is recovered from the public URL.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []

    items = []
    for m in raw:
        if not isinstance(m, dict):
            continue
        if m.get("type") not in MEDIA_KINDS or not isinstance(m.get("url"), str):
            continue

        order = m.get("display_order")
        if isinstance(order, bool) or not isinstance(order, (int, float)):
            order = 0

        path = m.get("path")
        if not isinstance(path, str):
            path = extract_storage_path_from_public_url(m["url"], bucket)

        is_primary = m.get("is_primary")
        thumb = m.get("thumbnail_url")

        items.append(MediaItem(
            url=m["url"],
            type=m["type"],
            display_order=int(order),
            path=path,
            is_primary=is_primary if isinstance(is_primary, bool) else None,
            thumbnail_url=thumb if isinstance(thumb, str) else None,
        ))
    return items


def split_media(media: Iterable[MediaItem]):
    """(images, videos), each in array order"""
    media = list(media)
    return [m for m in media if m.type == "image"], [m for m in media if m.type == "video"]


def normalize_media(images: List[MediaItem], videos: List[MediaItem]) -> List[MediaItem]:
    """
    Reassign display_order 1..n (images, then videos) and mark the first
    image primary. The primary image carries its own URL as thumbnail_url.
    """
    order = 1
    normalized = []
    for idx, img in enumerate(images):
        normalized.append(img.model_copy(update={
            "display_order": order,
            "is_primary": idx == 0,
            "thumbnail_url": img.url if idx == 0 else img.thumbnail_url,
        }))
        order += 1
    for vid in videos:
        normalized.append(vid.model_copy(update={"display_order": order}))
        order += 1
    return normalized


def compute_thumbnail_url(media: Iterable[MediaItem]) -> Optional[str]:
    """URL of the lowest-ordered image"""
    images = sorted((m for m in media if m.type == "image"), key=lambda m: m.display_order)
    return images[0].url if images else None


def compute_video_url(media: Iterable[MediaItem]) -> Optional[str]:
    for m in media:
        if m.type == "video":
            return m.url
    return None


def check_limits(
    current_images: int,
    current_videos: int,
    add_images: int,
    add_videos: int,
    max_images: int = MAX_IMAGES,
    max_videos: int = MAX_VIDEOS,
) -> None:
    """
    Raises:
        ApiError(IMAGE_LIMIT_EXCEEDED) when images would exceed max_images
        ApiError(VIDEO_LIMIT_EXCEEDED) when videos would exceed max_videos
    """
    if current_images + add_images > max_images:
        raise ApiError(
            "IMAGE_LIMIT_EXCEEDED",
            detail=f"Max {max_images} images. Remaining: {max(0, max_images - current_images)}",
        )
    if add_videos and current_videos + add_videos > max_videos:
        raise ApiError("VIDEO_LIMIT_EXCEEDED", detail=f"Only {max_videos} video per product")


def to_json_array(media: Iterable[MediaItem]) -> List[dict]:
    return [m.to_json() for m in media]


# ============================================================================
# Names and paths
# ============================================================================

def sanitize_name(name: str) -> str:
    """Lowercase, whitespace -> '-', keep [a-z0-9._-], max 80 chars"""
    name = re.sub(r"\s+", "-", (name or "").lower())
    return re.sub(r"[^a-z0-9._-]+", "", name)[:80]


def ext_from_name(name: str) -> str:
    """Extension after the last dot, lowercased ('' when none)"""
    i = (name or "").rfind(".")
    if i == -1:
        return ""
    return name[i + 1:].lower()


def pick_ext(filename: str, mime: Optional[str] = None) -> str:
    """Extension from the filename, else from the MIME subtype, else 'bin'"""
    m = re.search(r"\.([a-zA-Z0-9]{1,8})$", filename or "")
    if m:
        return m.group(1).lower()
    parts = (mime or "").split("/")
    from_mime = parts[1] if len(parts) > 1 else ""
    return (from_mime or "bin").lower()


def safe_ext_from_name(name: Optional[str], fallback: str) -> str:
    """Dotted extension ('.jpg') or fallback"""
    m = re.search(r"\.[a-z0-9]+$", (name or "").lower())
    return m.group(0) if m else fallback


def slugify(text: str) -> str:
    """ASCII slug; Vietnamese diacritics folded ('Dâu Tây Đà Lạt' -> 'dau-tay-da-lat')"""
    raw = (text or "").strip().replace("đ", "d").replace("Đ", "D").lower()
    normalized = unicodedata.normalize("NFKD", raw)
    normalized = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return re.sub(r"[^a-z0-9]+", "-", normalized).strip("-")


def guess_type_from_name(name: str) -> str:
    lower = (name or "").lower()
    if re.search(r"\.(%s)$" % "|".join(VIDEO_EXTENSIONS), lower):
        return "video"
    return "image"


def now_stamp(now: Optional[datetime] = None) -> str:
    """UTC ISO timestamp safe for object names: 2026-01-22T08-15-30-123Z"""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"


def random_suffix() -> str:
    return secrets.token_hex(6)


def epoch_ms() -> int:
    return int(time.time() * 1000)


def normalize_path(path: Optional[str]) -> str:
    return (path or "").strip().lstrip("/")


def is_safe_path(path: str) -> bool:
    """Relative object path: non-empty, no '..', not a URL"""
    if not path:
        return False
    if ".." in path:
        return False
    if path.startswith("http://") or path.startswith("https://"):
        return False
    return True


def is_temp_path(path: Optional[str]) -> bool:
    return bool(path) and (path.startswith(TEMP_PREFIX) or path.startswith(LEGACY_TEMP_PREFIX))


def owns_temp_path(path: str, user_id: str) -> bool:
    """Temp object uploaded by user_id (either layout)"""
    if not path or not user_id or ".." in path:
        return False
    return path.startswith(f"{TEMP_PREFIX}{user_id}_") or path.startswith(f"{LEGACY_TEMP_PREFIX}{user_id}/")


def temp_upload_path(user_id: str, kind: str, filename: str) -> str:
    """uploads/tmp_<userId>_<kind>_<ms>_<rnd>.<ext>"""
    safe_name = sanitize_name(filename) or f"{kind}.{ext_from_name(filename) or 'bin'}"
    ext = ext_from_name(safe_name)
    return f"{TEMP_PREFIX}{user_id or 'unknown'}_{kind}_{epoch_ms()}_{random_suffix()}.{ext or 'bin'}"


def product_folder(product_id: str, kind: str) -> str:
    return f"products/{product_id}/{'video' if kind == 'video' else 'images'}"
