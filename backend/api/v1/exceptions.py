from __future__ import annotations

from typing import Any

from rest_framework.views import exception_handler as drf_exception_handler


def add_error_envelope(data: Any, *, request_id: str | None, code: str | None = None) -> None:
    """Add `request_id` and an `error` object to a dict error payload in place.

    DRF's own shapes (`detail`, per-field lists) are left untouched so that
    existing clients keep working.
    """

    if not isinstance(data, dict):
        return

    if request_id and "request_id" not in data:
        data["request_id"] = request_id

    if "detail" in data and "error" not in data:
        error = {"message": str(data.get("detail"))}
        if code:
            error["code"] = str(code)
        data["error"] = error


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    request = context.get("request")
    add_error_envelope(
        getattr(response, "data", None),
        request_id=getattr(request, "request_id", None),
        code=getattr(exc, "default_code", None),
    )
    return response
