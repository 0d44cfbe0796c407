"""
FridgeMind API — Meal Photo Storage Service
=============================================

What:  Uploads and deletes meal photos in the `meal-photos` bucket and
       resolves blob paths for the file-serving route.
Why:   Eating-out logs keep a photo URL; users may later delete the photo.
How:   The bucket is a directory under STORAGE_ROOT, written with aiofiles.
       Object keys are `{user_id}/{epoch_ms}-{6 random chars}.jpg` and public
       URLs are `{PUBLIC_BASE_URL}/storage/meal-photos/{key}`.

Failure policy:
    Upload and delete never raise. Upload returns None and delete returns
    False; callers treat the photo as optional.

Ownership:
    A photo can only be deleted by the user whose id is the first segment
    of its key.
"""

import logging
import secrets
import string
import time
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from fridgemind.config import settings
from fridgemind.exceptions import NotFoundError, ValidationError
from fridgemind.services.media import decode_base64_media

logger = logging.getLogger(__name__)

MEAL_PHOTOS_BUCKET = "meal-photos"

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


class StorageService:
    """Local object storage for meal photos."""

    def __init__(self, storage_root: Optional[str] = None, public_base_url: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
            public_base_url: Override the URL prefix returned to clients.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.bucket_root = self.storage_root / MEAL_PHOTOS_BUCKET
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")

    def _new_object_key(self, user_id: uuid.UUID) -> str:
        suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
        return f"{user_id}/{int(time.time() * 1000)}-{suffix}.jpg"

    def public_url(self, object_key: str) -> str:
        return f"{self.public_base_url}/storage/{MEAL_PHOTOS_BUCKET}/{object_key}"

    def resolve_blob_path(self, object_key: str) -> Path:
        """
        Map an object key to a file inside the bucket.

        Raises:
            ValidationError: The key escapes the bucket (e.g. `../`).
            NotFoundError: No such blob.
        """
        full_path = (self.bucket_root / object_key).resolve()
        if not full_path.is_relative_to(self.bucket_root):
            raise ValidationError(message="Invalid file path", field="path")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=object_key)
        return full_path

    async def upload_meal_photo(self, base64_image: str, user_id: uuid.UUID) -> Optional[str]:
        """
        Store a base64 meal photo and return its public URL.

        Accepts raw base64 or a `data:image/...;base64,` URL.
        Returns None on any failure (bad base64, oversized, I/O error).
        """
        try:
            media = decode_base64_media(base64_image, field="image")
        except ValidationError as e:
            logger.warning("Meal photo rejected for user %s: %s", user_id, e.message)
            return None

        object_key = self._new_object_key(user_id)
        target = self.bucket_root / object_key
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(media.data)
        except OSError as e:
            logger.error("Failed to store meal photo %s: %s", object_key, str(e))
            return None

        logger.info("Meal photo stored: %s (%d bytes)", object_key, len(media.data))
        return self.public_url(object_key)

    async def delete_meal_photo(self, photo_url: str, user_id: uuid.UUID) -> bool:
        """
        Delete a meal photo by its public URL.

        Returns True only if the blob belonged to `user_id` and was removed.
        """
        marker = f"/{MEAL_PHOTOS_BUCKET}/"
        if marker not in photo_url:
            logger.warning("Not a meal photo URL: %s", photo_url)
            return False

        object_key = photo_url.split(marker, 1)[1].split("?", 1)[0]
        if object_key.split("/", 1)[0] != str(user_id):
            logger.warning("User %s attempted to delete photo owned by another user", user_id)
            return False

        try:
            path = self.resolve_blob_path(object_key)
            await aiofiles.os.remove(path)
        except (ValidationError, NotFoundError) as e:
            logger.warning("Meal photo delete refused for %s: %s", object_key, e.message)
            return False
        except OSError as e:
            logger.error("Failed to delete meal photo %s: %s", object_key, str(e))
            return False

        logger.info("Meal photo deleted: %s", object_key)
        return True


# ── Singleton Instance ────────────────────────────────────────────────────
storage_service = StorageService()
