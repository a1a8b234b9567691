import logging
import time
import uuid

from .v1.exceptions import add_error_envelope

logger = logging.getLogger("dalaghub.request")


def _get_client_ip(request) -> str | None:
    # Best-effort for logging only; proxy trust is not validated.
    xff = request.META.get("HTTP_X_FORWARDED_FOR")
    if xff:
        ip = str(xff).split(",")[0].strip()
        return ip or None
    ip = request.META.get("REMOTE_ADDR")
    return str(ip).strip() if ip else None


def _user_id(request) -> int | None:
    user = getattr(request, "user", None)
    if user is not None and getattr(user, "is_authenticated", False):
        return user.id
    return None


class RequestIdAndLoggingMiddleware:
    """Tag every request with an id and log API calls.

    - Reuses an incoming X-Request-ID, otherwise generates one.
    - Echoes X-Request-ID on the response.
    - Adds `request_id`/`error` to API error bodies built with Response(...)
      directly, which never pass through the DRF exception handler.
    - Logs one line per /api/ request.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        start = time.perf_counter()

        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.request_id = request_id

        response = self.get_response(request)
        is_api = request.path.startswith("/api/")

        status_code = getattr(response, "status_code", None)
        data = getattr(response, "data", None)
        if is_api and status_code is not None and int(status_code) >= 400 and isinstance(data, dict):
            add_error_envelope(data, request_id=request_id)
            if getattr(response, "is_rendered", False):
                # The body was rendered before middleware ran.
                response.content = response.rendered_content
                if response.has_header("Content-Length"):
                    response["Content-Length"] = str(len(response.content))

        response["X-Request-ID"] = request_id

        if is_api:
            match = getattr(request, "resolver_match", None)
            logger.info(
                "request",
                extra={
                    "request_id": request_id,
                    "user_id": _user_id(request),
                    "client_ip": _get_client_ip(request),
                    "method": request.method,
                    "path": request.path,
                    "view": getattr(match, "view_name", None),
                    "status_code": status_code,
                    "duration_ms": round((time.perf_counter() - start) * 1000.0, 2),
                },
            )

        return response
