from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable

from django.conf import settings
from django.core.files.storage import default_storage
from django.db import connections


def _env_truthy(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class HealthStatus:
    ok: bool
    payload: dict


def _check_db() -> HealthStatus:
    try:
        with connections["default"].cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        return HealthStatus(ok=True, payload={"ok": True})
    except Exception as exc:
        return HealthStatus(ok=False, payload={"ok": False, "error": str(exc)})


def _check_migrations() -> HealthStatus:
    try:
        from django.db.migrations.executor import MigrationExecutor

        executor = MigrationExecutor(connections["default"])
        plan = executor.migration_plan(executor.loader.graph.leaf_nodes())
        pending = len(plan)
        return HealthStatus(ok=pending == 0, payload={"ok": pending == 0, "pending": pending})
    except Exception as exc:
        return HealthStatus(ok=False, payload={"ok": False, "error": str(exc)})


def _check_storage() -> HealthStatus:
    # Remote backends may need credentials for any call; only probe the image bucket prefix.
    backend = f"{default_storage.__class__.__module__}.{default_storage.__class__.__name__}"
    try:
        default_storage.exists(settings.PRODUCT_IMAGES_BUCKET)
        return HealthStatus(ok=True, payload={"ok": True, "backend": backend})
    except Exception as exc:
        return HealthStatus(ok=False, payload={"ok": False, "backend": backend, "error": str(exc)})


# name -> (env switch, check); checks with a switch are skipped unless enabled.
OPTIONAL_CHECKS: dict[str, tuple[str, Callable[[], HealthStatus]]] = {
    "migrations": ("HEALTH_CHECK_MIGRATIONS", _check_migrations),
    "storage": ("HEALTH_CHECK_STORAGE", _check_storage),
}


def build_health_payload() -> tuple[dict, bool]:
    """Return (payload, overall_ok)."""

    db = _check_db()
    payload: dict = {"db": db.payload}
    overall_ok = db.ok

    for name, (switch, check) in OPTIONAL_CHECKS.items():
        if not _env_truthy(switch, default=False):
            payload[name] = {"skipped": True}
            continue
        result = check()
        payload[name] = result.payload
        overall_ok = overall_ok and result.ok

    payload["status"] = "ok" if overall_ok else "degraded"
    return payload, overall_ok
