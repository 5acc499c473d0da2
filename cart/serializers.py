"""Cart serializers for read and write operations."""

from rest_framework import serializers

from .models import CartItem
from .selectors import cart_lines


class CartItemReadSerializer(serializers.ModelSerializer):
    """Read serializer for a cart line with its snapshot fields."""

    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = [
            "product_id",
            "product_title",
            "product_image_url",
            "quantity",
            "unit_price",
            "line_total",
        ]


class CartReadSerializer(serializers.Serializer):
    """Read serializer for the cart and its lines."""

    id = serializers.IntegerField(allow_null=True)
    items = CartItemReadSerializer(many=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    updated_at = serializers.DateTimeField(allow_null=True)

    @classmethod
    def from_cart(cls, *, cart):
        return cls(
            {
                "id": cart.pk,
                "items": cart_lines(cart=cart),
                "total": cart.total,
                "updated_at": cart.updated_at if cart.pk else None,
            }
        )


class AddItemSerializer(serializers.Serializer):
    """Write serializer for adding a product to the cart."""

    product_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateItemQuantitySerializer(serializers.Serializer):
    """Write serializer for setting a line's quantity. Zero removes the line."""

    quantity = serializers.IntegerField(min_value=0)


class LiveCartProductSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField()
    image_url = serializers.CharField(allow_blank=True)
    price = serializers.DecimalField(max_digits=12, decimal_places=2)
    quantity = serializers.IntegerField()
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2)


class LiveCartSerializer(serializers.Serializer):
    """Cart re-priced against the catalog at read time."""

    products = LiveCartProductSerializer(many=True)
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class CartCountSerializer(serializers.Serializer):
    item_count = serializers.IntegerField()
    total_items = serializers.IntegerField()
