from django.urls import path

from .views import (
    CatalogView,
    HealthView,
    ImageUploadView,
    LoginView,
    LogoutView,
    MeView,
    MyProductsView,
    ProductDetailView,
    ProductListView,
    ProductReportView,
    ProductStatusView,
    RegisterView,
    ThrottledTokenRefreshView,
    UserProductsView,
)

urlpatterns = [
    path("health/", HealthView.as_view(), name="v1-health"),
    path("catalog/", CatalogView.as_view(), name="v1-catalog"),
    path("auth/register/", RegisterView.as_view(), name="v1-register"),
    path("auth/login/", LoginView.as_view(), name="v1-login"),
    path("auth/logout/", LogoutView.as_view(), name="v1-logout"),
    path("auth/token/refresh/", ThrottledTokenRefreshView.as_view(), name="v1-token-refresh"),
    path("me/", MeView.as_view(), name="v1-me"),
    path("products/", ProductListView.as_view(), name="v1-product-list"),
    path("products/mine/", MyProductsView.as_view(), name="v1-product-mine"),
    path("products/<int:product_id>/", ProductDetailView.as_view(), name="v1-product-detail"),
    path("products/<int:product_id>/status/", ProductStatusView.as_view(), name="v1-product-status"),
    path("products/<int:product_id>/report/", ProductReportView.as_view(), name="v1-product-report"),
    path("users/<int:user_id>/products/", UserProductsView.as_view(), name="v1-user-products"),
    path("uploads/", ImageUploadView.as_view(), name="v1-uploads"),
]
