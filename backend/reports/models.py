from __future__ import annotations

from django.conf import settings
from django.db import models


class ReportReason(models.TextChoices):
    SPAM = "spam", "Spam"
    INAPPROPRIATE = "inappropriate", "Inappropriate"
    FRAUD = "fraud", "Fraud"
    DUPLICATE = "duplicate", "Duplicate"
    OTHER = "other", "Other"


class ProductReport(models.Model):
    product = models.ForeignKey(
        "market.Product",
        on_delete=models.CASCADE,
        related_name="reports",
    )
    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="product_reports",
    )

    reason = models.CharField(max_length=40, choices=ReportReason.choices)
    description = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["product", "created_at"], name="rpt_product_created_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"ProductReport({self.id})"
