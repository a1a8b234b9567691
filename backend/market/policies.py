"""Row-level access rules for listings.

Every read and write the stores make goes through one of these querysets, so
ownership and visibility are enforced where the rows are selected rather than
by callers.
"""

from __future__ import annotations

from django.db.models import Q, QuerySet

from .models import Product, ProductStatus


def public_products() -> QuerySet[Product]:
    return Product.objects.filter(status=ProductStatus.ACTIVE)


def owned_by(user_id: int | None) -> QuerySet[Product]:
    if user_id is None:
        return Product.objects.none()
    return Product.objects.filter(seller_id=user_id)


def visible_to(user_id: int | None) -> QuerySet[Product]:
    """Active listings, plus the caller's own listings in any status."""

    q = Q(status=ProductStatus.ACTIVE)
    if user_id is not None:
        q |= Q(seller_id=user_id)
    return Product.objects.filter(q)
