from django.contrib import admin

from .models import Product, ProductStatus, Profile, UserRole


class UserRoleInline(admin.TabularInline):
    model = UserRole
    fk_name = "user"
    extra = 0


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "name", "email", "phone", "location", "created_at")
    list_filter = ("location",)
    search_fields = ("name", "email", "phone")
    readonly_fields = ("created_at",)


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "role")
    list_filter = ("role",)
    search_fields = ("user__username", "user__email")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "title",
        "seller",
        "category",
        "subcategory",
        "location",
        "status",
        "created_at",
    )
    list_filter = ("status", "category", "subcategory", "location")
    search_fields = ("title", "description", "seller__email")
    readonly_fields = ("created_at", "updated_at")

    actions = ["mark_sold", "mark_active"]

    @admin.action(description="Mark selected products as sold")
    def mark_sold(self, request, queryset):
        queryset.update(status=ProductStatus.SOLD)

    @admin.action(description="Mark selected products as active")
    def mark_active(self, request, queryset):
        queryset.update(status=ProductStatus.ACTIVE)
