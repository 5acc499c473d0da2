from django.contrib import admin, messages

from .models import IdempotencyKey, Order, OrderItem
from .services import InvalidStatusTransition, transition_order_status


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("product_id", "product_title", "quantity", "unit_price", "line_total")
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "number", "status", "user", "total", "tracking_number", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("number", "user__email", "tracking_number")
    date_hierarchy = "created_at"
    readonly_fields = ("number", "user", "total", "shipping_address", "payment_info", "status", "created_at", "updated_at")
    inlines = [OrderItemInline]
    actions = ["action_confirm", "action_cancel"]

    def _transition(self, request, queryset, status):
        moved = 0
        for order in queryset:
            try:
                transition_order_status(order=order, status=status)
                moved += 1
            except InvalidStatusTransition as exc:
                messages.error(request, f"{order.number}: {exc}")
        if moved:
            messages.success(request, f"Updated {moved} order(s) to {status}.")

    @admin.action(description="Confirm selected pending orders")
    def action_confirm(self, request, queryset):
        self._transition(request, queryset, Order.STATUS_CONFIRMED)

    @admin.action(description="Cancel selected pending orders")
    def action_cancel(self, request, queryset):
        self._transition(request, queryset, Order.STATUS_CANCELLED)


@admin.register(IdempotencyKey)
class IdempotencyKeyAdmin(admin.ModelAdmin):
    list_display = ("id", "key", "scope", "path", "method", "response_code", "created_at", "expires_at")
    list_filter = ("method", "response_code", "created_at")
    search_fields = ("key", "scope", "path")
    date_hierarchy = "created_at"
