from __future__ import annotations

import logging
import posixpath
from urllib.parse import unquote

from celery import shared_task
from django.conf import settings
from django.core.files.storage import default_storage

logger = logging.getLogger("dalaghub.tasks")


def storage_key_from_url(url: str, prefix: str) -> str | None:
    """Return the storage key inside `url` if it lives under `prefix`."""

    raw = unquote(str(url or "").split("?", 1)[0])
    idx = raw.find(prefix)
    if idx < 0 or (idx > 0 and raw[idx - 1] != "/"):
        return None
    candidate = raw[idx:]
    if ".." in candidate.split("/"):
        return None
    key = posixpath.normpath(candidate)
    if not key.startswith(prefix):
        return None
    return key


@shared_task
def purge_product_images(seller_id: int, urls: list[str]) -> int:
    """Delete a removed listing's uploads from object storage.

    Only keys under the seller's own upload namespace are touched; placeholder
    and foreign URLs are skipped.
    """

    prefix = f"{settings.PRODUCT_IMAGES_BUCKET}/{seller_id}/"
    removed = 0
    for url in urls or []:
        key = storage_key_from_url(url, prefix)
        if not key:
            continue
        if default_storage.exists(key):
            default_storage.delete(key)
            removed += 1
            logger.info("image purged", extra={"event": "purge_product_images", "storage_key": key})
    return removed
