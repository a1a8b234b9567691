from __future__ import annotations

from django.conf import settings
from django.db import models

from .catalog import CATEGORIES, DEFAULT_PRICE, LOCATIONS


class TimestampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


LOCATION_CHOICES = [(loc, loc) for loc in LOCATIONS]


class Profile(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        primary_key=True,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    name = models.CharField(max_length=120)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    location = models.CharField(max_length=40, choices=LOCATION_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Role(models.TextChoices):
    BUYER = "buyer", "Buyer"
    SELLER = "seller", "Seller"


class UserRole(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="roles")
    role = models.CharField(max_length=16, choices=Role.choices)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "role"], name="uq_user_role"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}:{self.role}"


class ProductCategory(models.TextChoices):
    CROPS = "crops", CATEGORIES["crops"]["label"]
    LIVESTOCK = "livestock", CATEGORIES["livestock"]["label"]


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    SOLD = "sold", "Sold"


class Product(TimestampedModel):
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="products")

    title = models.CharField(max_length=140)
    category = models.CharField(max_length=16, choices=ProductCategory.choices)
    subcategory = models.CharField(max_length=40)
    quantity = models.CharField(max_length=80)
    price = models.CharField(max_length=80, default=DEFAULT_PRICE)
    description = models.TextField(blank=True)
    images = models.JSONField(default=list, blank=True)
    location = models.CharField(max_length=40, choices=LOCATION_CHOICES)

    status = models.CharField(max_length=16, choices=ProductStatus.choices, default=ProductStatus.ACTIVE)

    class Meta:
        indexes = [
            models.Index(fields=["status", "created_at"], name="product_status_created_idx"),
            models.Index(fields=["seller", "created_at"], name="product_seller_created_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title
