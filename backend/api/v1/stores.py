"""Per-request session and catalog stores for API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from market import results
from market.auth_service import AuthService
from market.catalog_store import CatalogStore
from market.results import Result
from market.session_store import SessionStore

STATUS_BY_CODE = {
    results.VALIDATION: status.HTTP_400_BAD_REQUEST,
    results.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    results.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    results.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    results.REMOTE: status.HTTP_400_BAD_REQUEST,
}


def build_stores(request, *, refresh_token: str | None = None, autoload: bool = False) -> tuple[SessionStore, CatalogStore]:
    token = getattr(request, "auth", None)
    auth = AuthService(
        user=getattr(request, "user", None),
        access_token=str(token) if token is not None else None,
        refresh_token=refresh_token,
    )
    session = SessionStore(auth)
    session.tasks.drain()
    catalog = CatalogStore(session, autoload=autoload)
    return session, catalog


def get_session_store(request) -> SessionStore:
    store = getattr(request, "session_store", None)
    if store is None:
        raise RuntimeError("get_session_store() must be used within a StoreAPIView request")
    return store


def get_catalog_store(request) -> CatalogStore:
    store = getattr(request, "catalog_store", None)
    if store is None:
        raise RuntimeError("get_catalog_store() must be used within a StoreAPIView request")
    return store


def failure_response(result: Result) -> Response:
    return Response(
        {"success": False, "detail": result.error},
        status=STATUS_BY_CODE.get(result.code, status.HTTP_400_BAD_REQUEST),
    )


class StoreAPIView(APIView):
    """APIView that attaches session and catalog stores after authentication.

    Set `catalog_autoload = True` on views that need the full listing
    collection fetched before the handler runs.
    """

    catalog_autoload = False

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.prepare_stores(request)

    def prepare_stores(self, request, *, refresh_token: str | None = None) -> None:
        session, catalog = build_stores(request, refresh_token=refresh_token, autoload=self.catalog_autoload)
        request.session_store = session
        request.catalog_store = catalog

    def finalize_response(self, request, response, *args, **kwargs):
        session = getattr(request, "session_store", None)
        catalog = getattr(request, "catalog_store", None)
        if catalog is not None:
            catalog.close()
        if session is not None:
            session.close()
        return super().finalize_response(request, response, *args, **kwargs)
