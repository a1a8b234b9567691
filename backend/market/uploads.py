from __future__ import annotations

import logging
import time
from typing import Iterable

from django.conf import settings
from django.core.files.storage import Storage, default_storage

from .session_store import SessionStore

logger = logging.getLogger("dalaghub.uploads")


def storage_key(user_id: int, filename: str, *, now_us: int | None = None) -> str:
    ext = str(filename or "").rsplit(".", 1)[-1]
    stamp = now_us if now_us is not None else time.time_ns() // 1000
    return f"{user_id}/{stamp}.{ext}"


class ImageUploader:
    """Stores listing images under `<bucket>/<user-id>/<timestamp>.<ext>`.

    Size limits are the caller's job. Existing keys are never overwritten.
    """

    def __init__(self, session: SessionStore, *, storage: Storage | None = None, bucket: str | None = None):
        self.session = session
        self.storage = storage if storage is not None else default_storage
        self.bucket = bucket or settings.PRODUCT_IMAGES_BUCKET
        self.is_uploading = False

    def upload_image(self, file) -> str | None:
        user_id = self.session.user_id
        if user_id is None:
            return None

        self.is_uploading = True
        try:
            path = f"{self.bucket}/{storage_key(user_id, getattr(file, 'name', ''))}"
            if self.storage.exists(path):
                logger.warning("upload key already exists", extra={"storage_key": path, "user_id": user_id})
                return None

            saved = self.storage.save(path, file)
            return self.storage.url(saved)
        except Exception:
            logger.exception("upload failed", extra={"user_id": user_id})
            return None
        finally:
            self.is_uploading = False

    def upload_multiple(self, files: Iterable) -> list[str]:
        urls: list[str] = []
        for file in files:
            url = self.upload_image(file)
            if url:
                urls.append(url)
        return urls
