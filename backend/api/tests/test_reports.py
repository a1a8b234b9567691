from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from market.models import Product, ProductStatus
from reports.models import ProductReport

User = get_user_model()


class ProductReportApiTests(APITestCase):
    def setUp(self):
        self.seller = User.objects.create_user(username="seller@example.com", password="pass1234")
        self.reporter = User.objects.create_user(username="reporter@example.com", password="pass1234")

        self.product = Product.objects.create(
            seller=self.seller,
            title="Camel for sale",
            category="livestock",
            subcategory="Camel",
            quantity="1 head",
            location="Garowe",
        )
        self.sold = Product.objects.create(
            seller=self.seller,
            title="Sold camel",
            category="livestock",
            subcategory="Camel",
            quantity="1 head",
            location="Garowe",
            status=ProductStatus.SOLD,
        )

    def url(self, product_id):
        return reverse("v1-product-report", kwargs={"product_id": product_id})

    def test_anonymous_report_is_recorded_without_reporter(self):
        r = self.client.post(self.url(self.product.id), {"reason": "fraud", "description": "Asked for deposit"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        self.assertTrue(r.data["success"])

        report = ProductReport.objects.get(pk=r.data["id"])
        self.assertEqual(report.product_id, self.product.id)
        self.assertIsNone(report.reporter_id)
        self.assertEqual(report.reason, "fraud")
        self.assertEqual(report.description, "Asked for deposit")

    def test_signed_in_report_records_reporter(self):
        self.client.force_authenticate(self.reporter)
        r = self.client.post(self.url(self.product.id), {"reason": "duplicate"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        self.assertEqual(ProductReport.objects.get(pk=r.data["id"]).reporter_id, self.reporter.id)

    def test_invalid_reason(self):
        r = self.client.post(self.url(self.product.id), {"reason": "boring"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("reason", r.data)
        self.assertEqual(ProductReport.objects.count(), 0)

    def test_hidden_or_missing_product(self):
        for product_id in (self.sold.id, 999999):
            r = self.client.post(self.url(product_id), {"reason": "spam"}, format="json")
            self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(ProductReport.objects.count(), 0)

    def test_report_survives_reporter_deletion(self):
        self.client.force_authenticate(self.reporter)
        r = self.client.post(self.url(self.product.id), {"reason": "spam"}, format="json")
        self.reporter.delete()

        report = ProductReport.objects.get(pk=r.data["id"])
        self.assertIsNone(report.reporter_id)
