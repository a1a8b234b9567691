from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenRefreshView

from market import catalog as catalog_data
from market.filters import ListingFilter
from market.uploads import ImageUploader

from ..health_checks import build_health_payload
from .serializers import (
    ImageUploadSerializer,
    ListingDetailSerializer,
    ListingSerializer,
    LoginSerializer,
    LogoutSerializer,
    ProductCreateSerializer,
    ProductReportSerializer,
    ProductStatusSerializer,
    RegisterSerializer,
    session_payload,
)
from .stores import StoreAPIView, failure_response, get_catalog_store, get_session_store
from .throttling import MethodScopedRateThrottle


class HealthView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        payload, ok = build_health_payload()
        return Response(payload, status=status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE)


class CatalogView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        return Response(catalog_data.as_dict())


class RegisterView(StoreAPIView):
    permission_classes = [AllowAny]
    throttle_classes = [MethodScopedRateThrottle]
    throttle_scope_map = {"POST": "auth"}

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        session = get_session_store(request)
        result = session.register(
            data["name"],
            data["email"],
            data["password"],
            data["location"],
            data["roles"],
            phone=data.get("phone") or "",
        )
        if not result.success:
            return failure_response(result)

        session.tasks.drain()
        return Response(session_payload(session), status=status.HTTP_201_CREATED)


class LoginView(StoreAPIView):
    permission_classes = [AllowAny]
    throttle_classes = [MethodScopedRateThrottle]
    throttle_scope_map = {"POST": "auth"}

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        session = get_session_store(request)
        result = session.login(serializer.validated_data["email"], serializer.validated_data["password"])
        if not result.success:
            return failure_response(result)

        session.tasks.drain()
        return Response(session_payload(session))


class LogoutView(StoreAPIView):
    permission_classes = [IsAuthenticated]

    def prepare_stores(self, request, *, refresh_token=None):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        super().prepare_stores(request, refresh_token=serializer.validated_data.get("refresh") or None)

    def post(self, request):
        get_session_store(request).logout()
        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(StoreAPIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        session = get_session_store(request)
        session.refresh_profile()
        return Response(session_payload(session))


class ProductListView(StoreAPIView):
    permission_classes = [AllowAny]

    @property
    def catalog_autoload(self):
        return self.request.method == "GET"

    def get(self, request):
        catalog = get_catalog_store(request)
        if catalog.error:
            return Response({"detail": catalog.error}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        qp = request.query_params
        listing_filter = ListingFilter(
            category=qp.get("category") or catalog_data.CATEGORY_ALL,
            query=qp.get("q") or "",
            location=qp.get("location") or "",
            subcategory=qp.get("subcategory") or "",
        )
        items = listing_filter.apply(catalog.products)
        return Response({"count": len(items), "results": ListingSerializer(items, many=True).data})

    def post(self, request):
        session = get_session_store(request)
        if session.is_authenticated and not session.is_seller:
            return Response({"detail": "Only sellers can add products"}, status=status.HTTP_403_FORBIDDEN)

        serializer = ProductCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        catalog = get_catalog_store(request)
        result = catalog.add_product(serializer.to_input())
        if not result.success:
            return failure_response(result)

        listing = catalog.get_product_by_id(result.data)
        return Response(ListingDetailSerializer(listing).data, status=status.HTTP_201_CREATED)


class MyProductsView(StoreAPIView):
    permission_classes = [IsAuthenticated]
    catalog_autoload = True

    def get(self, request):
        catalog = get_catalog_store(request)
        if catalog.error:
            return Response({"detail": catalog.error}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        items = ListingFilter(query=request.query_params.get("q") or "").apply(catalog.all_user_products)
        return Response({"count": len(items), "results": ListingSerializer(items, many=True).data})


class ProductDetailView(StoreAPIView):
    permission_classes = [AllowAny]

    def get(self, request, product_id: int):
        listing = get_catalog_store(request).get_product_by_id(product_id)
        if listing is None:
            return Response({"detail": "Product not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(ListingDetailSerializer(listing).data)

    def delete(self, request, product_id: int):
        result = get_catalog_store(request).delete_product(product_id)
        if not result.success:
            return failure_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProductStatusView(StoreAPIView):
    permission_classes = [IsAuthenticated]

    def patch(self, request, product_id: int):
        serializer = ProductStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        catalog = get_catalog_store(request)
        result = catalog.update_product_status(product_id, serializer.validated_data["status"])
        if not result.success:
            return failure_response(result)

        listing = catalog.get_product_by_id(product_id)
        return Response(ListingDetailSerializer(listing).data)


class ProductReportView(StoreAPIView):
    permission_classes = [AllowAny]
    throttle_classes = [MethodScopedRateThrottle]
    throttle_scope_map = {"POST": "report"}

    def post(self, request, product_id: int):
        serializer = ProductReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_catalog_store(request).report_product(
            product_id,
            serializer.validated_data["reason"],
            serializer.validated_data.get("description") or None,
        )
        if not result.success:
            return failure_response(result)
        return Response({"success": True, "id": result.data}, status=status.HTTP_201_CREATED)


class UserProductsView(StoreAPIView):
    permission_classes = [AllowAny]
    catalog_autoload = True

    def get(self, request, user_id: int):
        catalog = get_catalog_store(request)
        if catalog.error:
            return Response({"detail": catalog.error}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        items = catalog.get_products_by_user(user_id)
        return Response({"count": len(items), "results": ListingSerializer(items, many=True).data})


class ImageUploadView(StoreAPIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [MethodScopedRateThrottle]
    throttle_scope_map = {"POST": "upload"}

    def post(self, request):
        serializer = ImageUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        uploader = ImageUploader(get_session_store(request))
        urls = uploader.upload_multiple(serializer.validated_data["images"])
        if not urls:
            return Response({"detail": "Image upload failed"}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {"urls": [request.build_absolute_uri(url) for url in urls]},
            status=status.HTTP_201_CREATED,
        )


class ThrottledTokenRefreshView(TokenRefreshView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "auth"
