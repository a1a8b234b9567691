import pytest
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_health_endpoints_include_expected_sections():
    client = APIClient()

    # Default behavior: only DB is checked; other checks are present but skipped.
    r1 = client.get("/api/health/")
    assert r1.status_code == 200
    assert r1.data["db"] == {"ok": True}
    assert r1.data["migrations"] == {"skipped": True}
    assert r1.data["storage"] == {"skipped": True}
    assert r1.data["status"] == "ok"

    r2 = client.get("/api/v1/health/")
    assert r2.status_code == 200
    assert set(r2.data) == {"db", "migrations", "storage", "status"}


@pytest.mark.django_db
def test_health_optional_checks_can_be_enabled(monkeypatch):
    monkeypatch.setenv("HEALTH_CHECK_MIGRATIONS", "1")
    monkeypatch.setenv("HEALTH_CHECK_STORAGE", "yes")

    r = APIClient().get("/api/v1/health/")
    assert r.status_code in (200, 503)

    mig = r.data["migrations"]
    assert "ok" in mig
    assert isinstance(mig["pending"], int)

    storage = r.data["storage"]
    assert storage["ok"] is True
    assert storage["backend"] == "django.core.files.storage.filesystem.FileSystemStorage"
