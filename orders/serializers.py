"""DRF serializers for Orders."""

from common.choices import OrderStatus
from rest_framework import serializers

from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    """API representation of an immutable order line."""

    class Meta:
        model = OrderItem
        fields = [
            "product_id",
            "product_title",
            "product_image_url",
            "quantity",
            "unit_price",
            "line_total",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """API representation of an order and its lines."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "number",
            "status",
            "total",
            "shipping_address",
            "payment_info",
            "tracking_number",
            "created_at",
            "updated_at",
            "items",
        ]
        read_only_fields = fields


class AdminOrderSerializer(OrderSerializer):
    user_id = serializers.IntegerField(read_only=True)
    user_email = serializers.EmailField(source="user.email", read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["user_id", "user_email"]
        read_only_fields = fields


class PlaceOrderSerializer(serializers.Serializer):
    """Checkout input."""

    shipping_address = serializers.CharField(max_length=1000, trim_whitespace=True)
    payment_info = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class TrackingNumberSerializer(serializers.Serializer):
    tracking_number = serializers.CharField(max_length=64, trim_whitespace=True)
