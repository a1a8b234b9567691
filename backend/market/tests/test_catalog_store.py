from datetime import timedelta
from unittest import mock

import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.db import DatabaseError
from django.utils import timezone

from market import policies, results
from market.auth_service import AuthService
from market.catalog_store import CatalogStore, ProductInput
from market.models import Product, ProductStatus, Profile, Role, UserRole
from market.session_store import SessionStore
from reports.models import ProductReport

User = get_user_model()

pytestmark = pytest.mark.django_db


def make_member(email, *, roles=(Role.SELLER,), name="Seller", phone="+252611234567"):
    user = User.objects.create_user(username=email, email=email, password="pass1234")
    Profile.objects.create(user=user, name=name, email=email, phone=phone, location="Mogadishu")
    for role in roles:
        UserRole.objects.create(user=user, role=role)
    return user


def make_product(seller, title, *, minutes_ago=0, **extra):
    fields = {
        "category": "crops",
        "subcategory": "Maize",
        "quantity": "100 kg",
        "location": "Mogadishu",
    }
    fields.update(extra)
    product = Product.objects.create(seller=seller, title=title, **fields)
    Product.objects.filter(pk=product.pk).update(created_at=timezone.now() - timedelta(minutes=minutes_ago))
    product.refresh_from_db()
    return product


def session_for(user=None):
    session = SessionStore(AuthService(user=user))
    session.tasks.drain()
    return session


@pytest.fixture
def seller():
    return make_member("seller@example.com", name="Abdi Farah", phone="+252615550000")


@pytest.fixture
def other_seller():
    return make_member("other@example.com", name="Other Seller", phone="+252619990000")


def test_fetch_lists_active_products_newest_first_with_seller_join(seller, other_seller):
    old = make_product(seller, "Old maize", minutes_ago=30)
    new = make_product(other_seller, "New goats", minutes_ago=1, category="livestock", subcategory="Goat")
    make_product(seller, "Sold rice", minutes_ago=5, status=ProductStatus.SOLD, subcategory="Rice")

    catalog = CatalogStore(session_for())

    assert [p.id for p in catalog.products] == [new.id, old.id]
    assert all(p.status == ProductStatus.ACTIVE for p in catalog.products)
    assert catalog.products[0].seller_name == "Other Seller"
    assert catalog.products[1].seller_phone == "+252615550000"
    assert catalog.all_user_products == []
    assert catalog.is_loading is False
    assert catalog.error is None


def test_all_user_products_holds_own_listings_in_any_status(seller, other_seller):
    active = make_product(seller, "Maize", minutes_ago=10)
    sold = make_product(seller, "Sesame", minutes_ago=2, status=ProductStatus.SOLD, subcategory="Sesame")
    make_product(other_seller, "Not mine")

    catalog = CatalogStore(session_for(seller))

    assert [p.id for p in catalog.all_user_products] == [sold.id, active.id]
    assert {p.seller_id for p in catalog.all_user_products} == {seller.id}
    assert sold.id not in [p.id for p in catalog.products]


def test_add_product_requires_login():
    catalog = CatalogStore(session_for())

    result = catalog.add_product(
        ProductInput(title="Maize", category="crops", subcategory="Maize", quantity="1 ton", location="Baidoa")
    )

    assert result.success is False
    assert result.error == results.LOGIN_REQUIRED_TO_ADD
    assert Product.objects.count() == 0


def test_add_product_defaults_price_and_refreshes(seller):
    catalog = CatalogStore(session_for(seller))

    result = catalog.add_product(
        ProductInput(
            title="Fresh bananas",
            category="crops",
            subcategory="Banana",
            quantity="20 bunches",
            location="Jowhar",
            price="  ",
        )
    )

    assert result.success is True
    row = Product.objects.get(pk=result.data)
    assert row.price == "Negotiable"
    assert row.status == ProductStatus.ACTIVE
    assert row.seller_id == seller.id
    assert catalog.products[0].id == row.id
    assert catalog.products[0].seller_name == "Abdi Farah"
    assert catalog.products[0].display_images() == ["/placeholder.svg"]


def test_get_product_by_id_reads_cache_then_remote(seller, other_seller):
    mine_sold = make_product(seller, "My sold maize", status=ProductStatus.SOLD)
    theirs_sold = make_product(other_seller, "Their sold goat", status=ProductStatus.SOLD)
    theirs_active = make_product(other_seller, "Their goat")

    catalog = CatalogStore(session_for(seller))

    assert catalog.get_product_by_id(theirs_active.id).title == "Their goat"
    assert catalog.get_product_by_id(str(mine_sold.id)).title == "My sold maize"
    assert catalog.get_product_by_id(theirs_sold.id) is None
    assert catalog.get_product_by_id(999999) is None
    assert catalog.get_product_by_id("not-a-number") is None


def test_get_product_by_id_remote_lookup_is_not_cached(seller):
    catalog = CatalogStore(session_for(), autoload=False)
    product = make_product(seller, "Late arrival")

    listing = catalog.get_product_by_id(product.id)

    assert listing.id == product.id
    assert listing.seller_name == "Abdi Farah"
    assert catalog.products == []


def test_get_products_by_user_returns_active_only(seller, other_seller):
    active = make_product(seller, "Sorghum", subcategory="Sorghum")
    make_product(seller, "Gone", status=ProductStatus.SOLD)
    make_product(other_seller, "Camel", category="livestock", subcategory="Camel")

    catalog = CatalogStore(session_for())

    assert [p.id for p in catalog.get_products_by_user(seller.id)] == [active.id]
    assert [p.id for p in catalog.get_products_by_user(str(seller.id))] == [active.id]


def test_delete_product_only_by_owner(seller, other_seller):
    product = make_product(seller, "Keep me")
    catalog = CatalogStore(session_for(other_seller))

    result = catalog.delete_product(product.id)

    assert result.success is False
    assert result.code == results.NOT_FOUND
    assert Product.objects.filter(pk=product.id).exists()


def test_delete_product_requires_login(seller):
    product = make_product(seller, "Keep me")
    catalog = CatalogStore(session_for())

    result = catalog.delete_product(product.id)

    assert result.error == results.LOGIN_REQUIRED
    assert Product.objects.filter(pk=product.id).exists()


def test_delete_product_removes_row_and_purges_images(seller, django_capture_on_commit_callbacks):
    key = f"{settings.PRODUCT_IMAGES_BUCKET}/{seller.id}/1700000000000000.png"
    saved = default_storage.save(key, ContentFile(b"png-bytes"))
    product = make_product(seller, "With image", images=[default_storage.url(saved), "/placeholder.svg"])

    catalog = CatalogStore(session_for(seller))
    assert [p.id for p in catalog.products] == [product.id]

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        result = catalog.delete_product(product.id)

    assert result.success is True
    assert len(callbacks) == 1
    assert not Product.objects.filter(pk=product.id).exists()
    assert not default_storage.exists(saved)
    assert catalog.products == []
    assert catalog.all_user_products == []


def test_delete_product_leaves_other_sellers_images(seller, other_seller, django_capture_on_commit_callbacks):
    theirs = default_storage.save(
        f"{settings.PRODUCT_IMAGES_BUCKET}/{other_seller.id}/123.jpg", ContentFile(b"jpg-bytes")
    )
    product = make_product(seller, "Borrowed photo", images=[default_storage.url(theirs)])

    with django_capture_on_commit_callbacks(execute=True):
        result = CatalogStore(session_for(seller)).delete_product(product.id)

    assert result.success is True
    assert default_storage.exists(theirs)


def test_delete_product_ignores_dot_dot_image_paths(seller, other_seller, django_capture_on_commit_callbacks):
    bucket = settings.PRODUCT_IMAGES_BUCKET
    theirs = default_storage.save(f"{bucket}/{other_seller.id}/123.jpg", ContentFile(b"jpg-bytes"))
    catalog = CatalogStore(session_for(seller))
    created = catalog.add_product(
        ProductInput(
            title="Sneaky maize",
            category="crops",
            subcategory="Maize",
            quantity="1 ton",
            location="Baidoa",
            images=[f"/media/{bucket}/{seller.id}/../{other_seller.id}/123.jpg"],
        )
    )
    assert created.success is True

    with django_capture_on_commit_callbacks(execute=True):
        assert catalog.delete_product(created.data).success is True

    assert not Product.objects.filter(pk=created.data).exists()
    assert default_storage.exists(theirs)


def test_update_product_status(seller, other_seller):
    product = make_product(seller, "Goats", category="livestock", subcategory="Goat")
    catalog = CatalogStore(session_for(seller))

    invalid = catalog.update_product_status(product.id, "archived")
    assert invalid.code == results.VALIDATION

    stranger = CatalogStore(session_for(other_seller)).update_product_status(product.id, ProductStatus.SOLD)
    assert stranger.code == results.NOT_FOUND

    result = catalog.update_product_status(product.id, ProductStatus.SOLD)
    assert result.success is True
    product.refresh_from_db()
    assert product.status == ProductStatus.SOLD
    assert catalog.products == []
    assert [p.status for p in catalog.all_user_products] == [ProductStatus.SOLD]

    catalog.update_product_status(product.id, ProductStatus.ACTIVE)
    assert [p.id for p in catalog.products] == [product.id]


def test_report_product(seller, other_seller):
    product = make_product(seller, "Suspicious cow", category="livestock", subcategory="Cow")
    sold = make_product(seller, "Sold cow", category="livestock", subcategory="Cow", status=ProductStatus.SOLD)

    anonymous = CatalogStore(session_for(), autoload=False)
    result = anonymous.report_product(product.id, "fraud", "Price too good")
    assert result.success is True
    report = ProductReport.objects.get(pk=result.data)
    assert report.reporter_id is None
    assert report.description == "Price too good"

    signed_in = CatalogStore(session_for(other_seller), autoload=False)
    assert signed_in.report_product(product.id, "spam").success is True
    assert ProductReport.objects.filter(reporter=other_seller).count() == 1

    assert signed_in.report_product(product.id, "boring").code == results.VALIDATION
    assert signed_in.report_product(sold.id, "spam").code == results.NOT_FOUND
    assert signed_in.report_product(424242, "spam").code == results.NOT_FOUND


def test_catalog_refetches_when_session_identity_changes(seller):
    make_product(seller, "Mine")
    session = session_for()
    catalog = CatalogStore(session)
    assert catalog.all_user_products == []

    session.login("seller@example.com", "pass1234")
    assert [p.title for p in catalog.all_user_products] == ["Mine"]

    session.logout()
    assert catalog.all_user_products == []
    assert [p.title for p in catalog.products] == ["Mine"]


def test_fetch_failure_sets_error_state(seller):
    make_product(seller, "Unreachable")
    catalog = CatalogStore(session_for(), autoload=False)

    seen = []
    catalog.subscribe(lambda store: seen.append(store.is_loading))

    with mock.patch.object(policies, "public_products", side_effect=DatabaseError("connection refused")):
        result = catalog.fetch_products()

    assert result.success is False
    assert result.code == results.REMOTE
    assert catalog.error == "connection refused"
    assert catalog.is_loading is False
    assert seen == [True, False]

    assert catalog.fetch_products().success is True
    assert catalog.error is None
    assert len(catalog.products) == 1


def test_get_product_by_id_is_repeatable(seller):
    product = make_product(seller, "Steady sorghum", subcategory="Sorghum")
    cached = CatalogStore(session_for())
    remote = CatalogStore(session_for(), autoload=False)

    assert cached.get_product_by_id(product.id) == cached.get_product_by_id(product.id)
    assert remote.get_product_by_id(product.id) == remote.get_product_by_id(product.id)
    assert remote.get_product_by_id(product.id) == cached.get_product_by_id(product.id)


def test_reporting_leaves_the_listing_untouched(seller):
    product = make_product(seller, "Reported rice", subcategory="Rice", price="$50")
    catalog = CatalogStore(session_for())
    before = catalog.get_product_by_id(product.id)

    assert catalog.report_product(product.id, "inappropriate", "Wrong photos").success is True

    product.refresh_from_db()
    assert product.status == ProductStatus.ACTIVE
    assert product.price == "$50"
    assert CatalogStore(session_for()).get_product_by_id(product.id) == before
