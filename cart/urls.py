"""Cart URL routes (v1)."""

from django.urls import path

from .views import CartAddItemView, CartClearView, CartCountView, CartDetailView, CartItemView, CartLiveView

app_name = "cart"

urlpatterns = [
    path("", CartDetailView.as_view(), name="cart-detail"),
    path("live/", CartLiveView.as_view(), name="cart-live"),
    path("count/", CartCountView.as_view(), name="cart-count"),
    path("items/", CartAddItemView.as_view(), name="cart-add-item"),
    path("items/<int:product_id>/", CartItemView.as_view(), name="cart-item"),
    path("clear/", CartClearView.as_view(), name="cart-clear"),
]
