"""DRF views for cart operations."""

from catalog.lookup import get_product_lookup
from catalog.services import CatalogError
from drf_spectacular.utils import OpenApiExample, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .selectors import cart_item_count, get_cart, live_cart_view
from .serializers import (
    AddItemSerializer,
    CartCountSerializer,
    CartReadSerializer,
    LiveCartSerializer,
    UpdateItemQuantitySerializer,
)
from .services import CartError, add_item, clear_cart, remove_item, set_quantity

CART_EXAMPLE = {
    "id": 1,
    "items": [
        {
            "product_id": 7,
            "product_title": "Mug",
            "product_image_url": "https://example.com/mug.png",
            "quantity": 2,
            "unit_price": "5.00",
            "line_total": "10.00",
        }
    ],
    "total": "10.00",
    "updated_at": "2025-01-01T12:00:00Z",
}

MUTATION_ERROR = inline_serializer(name="CartMutationError", fields={"detail": rf_serializers.CharField()})


def _mutation_failed():
    return Response({"detail": "Unable to update cart."}, status=status.HTTP_400_BAD_REQUEST)


class CartDetailView(APIView):
    """Return the authenticated user's cart."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Get cart",
        description="Returns the user's cart with snapshot-priced lines. Users without a cart get an empty one.",
        responses={200: CartReadSerializer},
        examples=[OpenApiExample("Cart", value=CART_EXAMPLE)],
    )
    def get(self, request):
        cart = get_cart(user=request.user)
        return Response(CartReadSerializer.from_cart(cart=cart).data, status=status.HTTP_200_OK)


class CartLiveView(APIView):
    """Return the cart re-priced against the catalog."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Get live-priced cart",
        description="Joins cart quantities with current catalog prices. Products no longer available are omitted.",
        responses={200: LiveCartSerializer},
        examples=[
            OpenApiExample(
                "Live",
                value={
                    "products": [
                        {
                            "id": 7,
                            "title": "Mug",
                            "image_url": "",
                            "price": "6.00",
                            "quantity": 2,
                            "line_total": "12.00",
                        }
                    ],
                    "total_amount": "12.00",
                },
            )
        ],
    )
    def get(self, request):
        view = live_cart_view(user=request.user, lookup=get_product_lookup())
        return Response(LiveCartSerializer(view).data, status=status.HTTP_200_OK)


class CartCountView(APIView):
    """Return unit and line counts for the cart badge."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Count cart items",
        responses={200: CartCountSerializer},
        examples=[OpenApiExample("Count", value={"item_count": 3, "total_items": 2})],
    )
    def get(self, request):
        return Response(CartCountSerializer(cart_item_count(user=request.user)).data, status=status.HTTP_200_OK)


class CartAddItemView(APIView):
    """Add a product to the cart."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Add item to cart",
        description="Adds a product to the user's cart. Re-adding a product increases its quantity.",
        request=AddItemSerializer,
        responses={200: CartReadSerializer, 400: MUTATION_ERROR},
        examples=[OpenApiExample("Mutation Error", value={"detail": "Unable to update cart."}, response_only=True)],
    )
    def post(self, request):
        serializer = AddItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            cart = add_item(user=request.user, lookup=get_product_lookup(), **serializer.validated_data)
        except (CatalogError, CartError):
            return _mutation_failed()
        return Response(CartReadSerializer.from_cart(cart=cart).data, status=status.HTTP_200_OK)


class CartItemView(APIView):
    """Update or remove a cart line addressed by product id."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Set cart item quantity",
        description="Overwrites a line's quantity. A quantity of zero removes the line.",
        request=UpdateItemQuantitySerializer,
        responses={200: CartReadSerializer, 400: MUTATION_ERROR},
    )
    def patch(self, request, product_id: int):
        serializer = UpdateItemQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            cart = set_quantity(user=request.user, product_id=product_id, quantity=serializer.validated_data["quantity"])
        except CartError:
            return _mutation_failed()
        return Response(CartReadSerializer.from_cart(cart=cart).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Remove cart item",
        description="Removes the product's line if present.",
        responses={200: CartReadSerializer},
    )
    def delete(self, request, product_id: int):
        cart = remove_item(user=request.user, product_id=product_id)
        return Response(CartReadSerializer.from_cart(cart=cart).data, status=status.HTTP_200_OK)


class CartClearView(APIView):
    """Remove every line from the cart."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Clear cart",
        request=None,
        responses={
            200: inline_serializer(
                name="CartCleared",
                fields={"success": rf_serializers.BooleanField(), "message": rf_serializers.CharField()},
            )
        },
        examples=[OpenApiExample("Cleared", value={"success": True, "message": "Cart cleared."})],
    )
    def post(self, request):
        clear_cart(user=request.user)
        return Response({"success": True, "message": "Cart cleared."}, status=status.HTTP_200_OK)
