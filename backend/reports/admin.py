from django.contrib import admin

from .models import ProductReport


@admin.register(ProductReport)
class ProductReportAdmin(admin.ModelAdmin):
    list_display = ("id", "product", "reporter", "reason", "created_at")
    list_filter = ("reason",)
    search_fields = ("description", "reporter__email", "product__title")
    readonly_fields = ("created_at",)
