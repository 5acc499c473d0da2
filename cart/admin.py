"""Admin registration for cart models.

Carts show their lines inline so support can see what a customer is about to
check out. The clear action goes through the service so the total stays in
sync with the lines.
"""

from django.contrib import admin, messages

from .models import Cart, CartItem
from .services import clear_cart


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    fields = ("product_id", "product_title", "quantity", "unit_price", "created_at", "updated_at")
    readonly_fields = ("product_title", "unit_price", "created_at", "updated_at")


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "total", "updated_at", "created_at")
    search_fields = ("user__username", "user__email")
    ordering = ("-updated_at",)
    readonly_fields = ("total", "created_at", "updated_at")
    inlines = [CartItemInline]
    list_select_related = ("user",)
    actions = ["action_clear_cart"]

    @admin.action(description="Clear cart")
    def action_clear_cart(self, request, queryset):
        cleared = 0
        for cart in queryset.select_related("user"):
            clear_cart(user=cart.user)
            cleared += 1
        messages.success(request, f"Cleared {cleared} cart(s).")


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ("id", "cart", "product_id", "product_title", "quantity", "unit_price", "updated_at")
    search_fields = ("product_title", "cart__user__email")
    ordering = ("id",)
    readonly_fields = ("created_at", "updated_at")
    raw_id_fields = ("cart",)
