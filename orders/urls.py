"""URL routes for the orders app (v1)."""

from django.urls import path

from .views import (
    AdminOpenOrdersView,
    AdminOrderListView,
    AdminOrderStatusView,
    AdminOrderTrackingView,
    OrderDetailView,
    OrderListCreateView,
)

app_name = "orders"

urlpatterns = [
    path("", OrderListCreateView.as_view(), name="order-list"),
    path("<int:order_id>/", OrderDetailView.as_view(), name="order-detail"),
    path("admin/", AdminOrderListView.as_view(), name="admin-order-list"),
    path("admin/open/", AdminOpenOrdersView.as_view(), name="admin-open-orders"),
    path("admin/<int:order_id>/status/", AdminOrderStatusView.as_view(), name="admin-order-status"),
    path("admin/<int:order_id>/tracking/", AdminOrderTrackingView.as_view(), name="admin-order-tracking"),
]
