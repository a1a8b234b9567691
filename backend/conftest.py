import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _isolated_runtime(settings, tmp_path):
    # Throttle counters live in the cache; uploads go to a throwaway media root.
    cache.clear()
    settings.MEDIA_ROOT = str(tmp_path / "media")
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True
    yield
    cache.clear()
