"""Admin registration for catalog models."""

from django.contrib import admin
from django.utils import timezone

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "category", "price", "stock", "is_active", "updated_at")
    search_fields = ("title", "category")
    list_filter = ("is_active", "category")
    readonly_fields = ("created_at", "updated_at")

    def save_model(self, request, obj, form, change):
        obj.updated_at = timezone.now()
        super().save_model(request, obj, form, change)
