from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Iterable

from django.db import DatabaseError, transaction
from django.utils import timezone

from reports.models import ProductReport, ReportReason

from . import policies, results
from .catalog import DEFAULT_PRICE, PLACEHOLDER_IMAGE
from .models import Product, ProductStatus, Profile
from .observable import Store
from .results import Result
from .session_store import SessionStore
from .tasks import purge_product_images

logger = logging.getLogger("dalaghub.catalog")


@dataclass(frozen=True)
class Listing:
    """A product row joined with its seller's name and phone.

    The seller fields are copied at fetch time and go stale if the profile
    changes before the next `fetch_products`.
    """

    id: int
    title: str
    category: str
    subcategory: str
    quantity: str
    price: str
    description: str
    images: tuple[str, ...]
    location: str
    status: str
    seller_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    seller_name: str = ""
    seller_phone: str = ""

    @classmethod
    def from_row(cls, row: Product, seller: Profile | None = None) -> "Listing":
        return cls(
            id=row.id,
            title=row.title,
            category=row.category,
            subcategory=row.subcategory,
            quantity=row.quantity,
            price=row.price,
            description=row.description,
            images=tuple(row.images or ()),
            location=row.location,
            status=row.status,
            seller_id=row.seller_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            seller_name=seller.name if seller is not None else "",
            seller_phone=seller.phone if seller is not None else "",
        )

    def display_images(self) -> list[str]:
        return list(self.images) or [PLACEHOLDER_IMAGE]

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["images"] = self.display_images()
        return data


@dataclass
class ProductInput:
    title: str
    category: str
    subcategory: str
    quantity: str
    location: str
    price: str = ""
    description: str = ""
    images: list[str] = field(default_factory=list)


def _seller_profiles(seller_ids: Iterable[int]) -> dict[int, Profile]:
    ids = {sid for sid in seller_ids if sid is not None}
    if not ids:
        return {}
    return {p.user_id: p for p in Profile.objects.filter(user_id__in=ids)}


class CatalogStore(Store):
    """In-memory listing collection for one session.

    `products` holds every active listing, newest first. `all_user_products`
    holds the signed-in seller's own listings in any status. Both are replaced
    wholesale by `fetch_products`; mutations never patch them in place.
    """

    def __init__(self, session: SessionStore, *, autoload: bool = True):
        super().__init__()
        self.session = session
        self.products: list[Listing] = []
        self.all_user_products: list[Listing] = []
        self.is_loading = False
        self.error: str | None = None

        self._identity = session.user_id
        self._unsubscribe = session.subscribe(self._on_session_change)

        if autoload:
            self.fetch_products()

    def close(self) -> None:
        self._unsubscribe()

    def _on_session_change(self, session: SessionStore) -> None:
        if session.user_id == self._identity:
            return
        self._identity = session.user_id
        self.fetch_products()

    def fetch_products(self) -> Result:
        user_id = self.session.user_id
        self.is_loading = True
        self._notify()

        try:
            active_rows = list(policies.public_products().order_by("-created_at"))
            user_rows = list(policies.owned_by(user_id).order_by("-created_at")) if user_id is not None else []

            seller_ids = {row.seller_id for row in active_rows}
            if user_rows:
                seller_ids.add(user_id)
            sellers = _seller_profiles(seller_ids)
        except DatabaseError as exc:
            logger.warning("product fetch failed", exc_info=True, extra={"event": "fetch_products", "user_id": user_id})
            self.error = str(exc)
            self.is_loading = False
            self._notify()
            return Result.fail(str(exc), code=results.REMOTE)

        self.products = [Listing.from_row(row, sellers.get(row.seller_id)) for row in active_rows]
        self.all_user_products = [Listing.from_row(row, sellers.get(row.seller_id)) for row in user_rows]
        self.error = None
        self.is_loading = False
        self._notify()
        return Result.ok()

    def add_product(self, data: ProductInput) -> Result:
        user_id = self.session.user_id
        if user_id is None:
            return Result.fail(results.LOGIN_REQUIRED_TO_ADD, code=results.NOT_AUTHENTICATED)

        price = str(data.price or "").strip() or DEFAULT_PRICE

        try:
            row = Product.objects.create(
                seller_id=user_id,
                title=data.title,
                category=data.category,
                subcategory=data.subcategory,
                quantity=data.quantity,
                price=price,
                description=data.description or "",
                images=list(data.images or []),
                location=data.location,
                status=ProductStatus.ACTIVE,
            )
        except DatabaseError as exc:
            logger.warning("product insert failed", exc_info=True, extra={"user_id": user_id})
            return Result.fail(str(exc), code=results.REMOTE)

        logger.info("product created", extra={"event": "add_product", "product_id": row.id, "user_id": user_id})
        self.fetch_products()
        return Result.ok(row.id)

    def _cached(self, product_id) -> Listing | None:
        key = str(product_id)
        for listing in self.products:
            if str(listing.id) == key:
                return listing
        for listing in self.all_user_products:
            if str(listing.id) == key:
                return listing
        return None

    def get_product_by_id(self, product_id) -> Listing | None:
        cached = self._cached(product_id)
        if cached is not None:
            return cached

        # Remote lookup; the result is not added to the cache.
        try:
            row = policies.visible_to(self.session.user_id).filter(pk=product_id).first()
            if row is None:
                return None
            seller = Profile.objects.filter(user_id=row.seller_id).first()
        except (ValueError, TypeError):
            return None
        except DatabaseError:
            logger.warning("product lookup failed", exc_info=True, extra={"product_id": str(product_id)})
            return None

        return Listing.from_row(row, seller)

    def get_products_by_user(self, user_id) -> list[Listing]:
        """Active listings of `user_id` from the cache.

        Sold listings never appear here; the owner's full set is
        `all_user_products`.
        """

        key = str(user_id)
        return [listing for listing in self.products if str(listing.seller_id) == key]

    def delete_product(self, product_id) -> Result:
        user_id = self.session.user_id
        if user_id is None:
            return Result.fail(results.LOGIN_REQUIRED, code=results.NOT_AUTHENTICATED)

        try:
            row = policies.owned_by(user_id).filter(pk=product_id).first()
            if row is None:
                return Result.fail("Product not found", code=results.NOT_FOUND)
            images = list(row.images or [])
            row.delete()
        except (ValueError, TypeError):
            return Result.fail("Product not found", code=results.NOT_FOUND)
        except DatabaseError as exc:
            logger.warning("product delete failed", exc_info=True, extra={"product_id": str(product_id)})
            return Result.fail(str(exc), code=results.REMOTE)

        if images:
            transaction.on_commit(lambda: purge_product_images.delay(user_id, images))

        logger.info("product deleted", extra={"event": "delete_product", "product_id": str(product_id), "user_id": user_id})
        self.fetch_products()
        return Result.ok()

    def update_product_status(self, product_id, status: str) -> Result:
        if status not in ProductStatus.values:
            return Result.fail("Status must be 'active' or 'sold'", code=results.VALIDATION)

        user_id = self.session.user_id
        if user_id is None:
            return Result.fail(results.LOGIN_REQUIRED, code=results.NOT_AUTHENTICATED)

        try:
            updated = policies.owned_by(user_id).filter(pk=product_id).update(status=status, updated_at=timezone.now())
        except (ValueError, TypeError):
            return Result.fail("Product not found", code=results.NOT_FOUND)
        except DatabaseError as exc:
            logger.warning("status update failed", exc_info=True, extra={"product_id": str(product_id)})
            return Result.fail(str(exc), code=results.REMOTE)

        if not updated:
            return Result.fail("Product not found", code=results.NOT_FOUND)

        self.fetch_products()
        return Result.ok()

    def report_product(self, product_id, reason: str, description: str | None = None) -> Result:
        if reason not in ReportReason.values:
            return Result.fail("Choose a valid report reason", code=results.VALIDATION)

        user_id = self.session.user_id

        try:
            if not policies.visible_to(user_id).filter(pk=product_id).exists():
                return Result.fail("Product not found", code=results.NOT_FOUND)
            report = ProductReport.objects.create(
                product_id=product_id,
                reporter_id=user_id,
                reason=reason,
                description=description or "",
            )
        except (ValueError, TypeError):
            return Result.fail("Product not found", code=results.NOT_FOUND)
        except DatabaseError as exc:
            logger.warning("report insert failed", exc_info=True, extra={"product_id": str(product_id)})
            return Result.fail(str(exc), code=results.REMOTE)

        logger.info("product reported", extra={"event": "report_product", "product_id": str(product_id), "user_id": user_id})
        return Result.ok(report.id)
