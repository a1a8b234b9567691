from rest_framework.throttling import ScopedRateThrottle


class MethodScopedRateThrottle(ScopedRateThrottle):
    """Throttle write-ish requests per HTTP method.

    Views declare e.g. `throttle_scope_map = {"POST": "auth"}`; methods that
    are not in the map are not throttled. Rates come from
    `REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"]`.
    """

    def allow_request(self, request, view):
        scope_map = getattr(view, "throttle_scope_map", None) or {}
        scope = scope_map.get(str(request.method).upper())
        if not scope:
            return True

        # ScopedRateThrottle resolves the rate from `view.throttle_scope`.
        view.throttle_scope = scope
        return super().allow_request(request, view)
