from urllib.parse import unquote, urlsplit

from django.conf import settings
from rest_framework import serializers

from market.catalog import CATEGORIES, LOCATIONS, is_valid_pair
from market.catalog_store import ProductInput
from market.contact import phone_url, whatsapp_url
from market.models import ProductStatus, Role
from reports.models import ReportReason


def is_safe_image_url(url: str) -> bool:
    """Accept absolute http(s) URLs and root-relative paths without `..` segments."""

    parts = urlsplit(url)
    if ".." in unquote(parts.path).split("/"):
        return False
    if parts.scheme or parts.netloc:
        return parts.scheme in ("http", "https") and bool(parts.netloc)
    return url.startswith("/")


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    location = serializers.ChoiceField(choices=LOCATIONS)
    roles = serializers.ListField(
        child=serializers.ChoiceField(choices=Role.values),
        min_length=1,
        max_length=2,
    )


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False, allow_blank=True)


class ProfileSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    email = serializers.CharField()
    phone = serializers.CharField()
    location = serializers.CharField()
    created_at = serializers.DateTimeField()


def session_payload(session_store) -> dict:
    session = session_store.session
    profile = session_store.profile
    payload = {
        "user": {"id": session.user_id, "email": session.email} if session else None,
        "profile": ProfileSerializer(profile).data if profile else None,
        "roles": list(session_store.roles),
        "is_seller": session_store.is_seller,
    }
    if session is not None and session.refresh_token:
        payload["access"] = session.access_token
        payload["refresh"] = session.refresh_token
    return payload


class ListingSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField()
    category = serializers.CharField()
    subcategory = serializers.CharField()
    quantity = serializers.CharField()
    price = serializers.CharField()
    description = serializers.CharField()
    images = serializers.SerializerMethodField()
    location = serializers.CharField()
    status = serializers.CharField()
    seller_id = serializers.IntegerField()
    seller_name = serializers.CharField()
    seller_phone = serializers.CharField()
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()

    def get_images(self, obj):
        return obj.display_images()


class ListingDetailSerializer(ListingSerializer):
    whatsapp_url = serializers.SerializerMethodField()
    phone_url = serializers.SerializerMethodField()

    def get_whatsapp_url(self, obj):
        if not obj.seller_phone:
            return None
        return whatsapp_url(obj.seller_phone, obj.title)

    def get_phone_url(self, obj):
        if not obj.seller_phone:
            return None
        return phone_url(obj.seller_phone)


class ProductCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=140)
    category = serializers.ChoiceField(choices=list(CATEGORIES.keys()))
    subcategory = serializers.CharField(max_length=40)
    quantity = serializers.CharField(max_length=80)
    price = serializers.CharField(max_length=80, required=False, allow_blank=True, default="")
    location = serializers.ChoiceField(choices=LOCATIONS)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    images = serializers.ListField(
        child=serializers.CharField(max_length=500),
        required=False,
        default=list,
        max_length=3,
    )

    def validate_images(self, value):
        for url in value:
            if not is_safe_image_url(url):
                raise serializers.ValidationError("Invalid image URL")
        return value

    def validate(self, attrs):
        if not is_valid_pair(attrs["category"], attrs["subcategory"]):
            raise serializers.ValidationError({"subcategory": "Product type does not belong to the selected category"})
        return attrs

    def to_input(self) -> ProductInput:
        data = self.validated_data
        return ProductInput(
            title=data["title"],
            category=data["category"],
            subcategory=data["subcategory"],
            quantity=data["quantity"],
            location=data["location"],
            price=data.get("price") or "",
            description=data.get("description") or "",
            images=list(data.get("images") or []),
        )


class ProductStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ProductStatus.values)


class ProductReportSerializer(serializers.Serializer):
    reason = serializers.ChoiceField(choices=ReportReason.values)
    description = serializers.CharField(required=False, allow_blank=True, default="")


class ImageUploadSerializer(serializers.Serializer):
    images = serializers.ListField(child=serializers.ImageField(), min_length=1)

    def validate_images(self, value):
        if len(value) > settings.UPLOAD_MAX_FILES:
            raise serializers.ValidationError(f"Maximum {settings.UPLOAD_MAX_FILES} images allowed")
        limit = settings.UPLOAD_MAX_BYTES
        for image in value:
            if image.size > limit:
                raise serializers.ValidationError(f"{image.name} is larger than {limit // (1024 * 1024)}MB")
        return value
