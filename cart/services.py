"""Cart services: per-user cart mutations.

Every mutation runs in a single transaction and locks the cart row first, so
concurrent requests for the same user serialize on that lock. The cart total is
recomputed from the lines before the transaction commits.
"""

import logging
from decimal import Decimal
from typing import Optional

from catalog.lookup import ProductLookup, get_product_lookup
from catalog.services import ProductNotFound
from django.db import transaction
from django.utils import timezone

from .models import Cart, CartItem


class CartError(Exception):
    """Raised for cart mutation failures."""


class CartNotFound(CartError):
    def __init__(self, user_id=None):
        self.user_id = user_id
        super().__init__(f"No cart for user: {user_id}")


class ProductNotInCart(CartError):
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product not in cart: {product_id}")


logger = logging.getLogger("smartcart.cart")


def _lock_cart(*, user) -> Optional[Cart]:
    return Cart.objects.select_for_update().filter(user=user).first()


def _lock_or_create_cart(*, user) -> Cart:
    cart, created = Cart.objects.get_or_create(user=user)
    if created:
        logger.info(
            "cart.created",
            extra={"event": "cart.created", "cart_id": cart.id, "user_id": getattr(user, "id", None)},
        )
    return Cart.objects.select_for_update().get(id=cart.id)


def recompute_total(cart: Cart) -> Decimal:
    """Recompute and persist ``cart.total`` as the sum of its line totals."""

    lines = CartItem.objects.filter(cart=cart).values_list("unit_price", "quantity")
    total = sum((price * quantity for price, quantity in lines), Decimal("0.00"))
    cart.total = total.quantize(Decimal("0.01"))
    cart.updated_at = timezone.now()
    cart.save(update_fields=["total", "updated_at"])
    return cart.total


def add_item(*, user, product_id: int, quantity: int = 1, lookup: Optional[ProductLookup] = None) -> Cart:
    """Add a product to the user's cart, creating the cart on first use.

    Adding a product already in the cart increases that line's quantity; the
    snapshot taken on first add is kept. Raises ``ProductNotFound`` when the
    catalog does not return the product.
    """

    if quantity <= 0:
        raise CartError("Quantity must be positive")
    lookup = lookup or get_product_lookup()
    # Looked up before the cart row is locked.
    snapshot = lookup.fetch(product_id)
    if snapshot is None or not snapshot.is_active:
        raise ProductNotFound(product_id)

    with transaction.atomic():
        cart = _lock_or_create_cart(user=user)
        now = timezone.now()
        item = CartItem.objects.filter(cart=cart, product_id=snapshot.id).first()
        if item is not None:
            item.quantity = int(item.quantity) + quantity
            item.updated_at = now
            item.save(update_fields=["quantity", "updated_at"])
            event = "cart.item_updated"
        else:
            item = CartItem.objects.create(
                cart=cart,
                product_id=snapshot.id,
                quantity=quantity,
                product_title=snapshot.title,
                product_image_url=snapshot.image_url,
                unit_price=snapshot.price,
            )
            event = "cart.item_added"
        recompute_total(cart)

    logger.info(
        event,
        extra={
            "event": event,
            "cart_id": cart.id,
            "user_id": getattr(user, "id", None),
            "product_id": snapshot.id,
            "quantity": int(item.quantity),
        },
    )
    return cart


@transaction.atomic
def set_quantity(*, user, product_id: int, quantity: int) -> Cart:
    """Set a line's quantity; zero or less removes the line."""

    cart = _lock_cart(user=user)
    if cart is None:
        raise CartNotFound(getattr(user, "id", None))
    item = CartItem.objects.filter(cart=cart, product_id=product_id).first()
    if item is None:
        raise ProductNotInCart(product_id)

    if quantity <= 0:
        item.delete()
        event = "cart.item_removed"
    else:
        item.quantity = quantity
        item.updated_at = timezone.now()
        item.save(update_fields=["quantity", "updated_at"])
        event = "cart.item_updated"
    recompute_total(cart)
    logger.info(
        event,
        extra={
            "event": event,
            "cart_id": cart.id,
            "user_id": getattr(user, "id", None),
            "product_id": product_id,
            "quantity": max(quantity, 0),
        },
    )
    return cart


@transaction.atomic
def remove_item(*, user, product_id: int) -> Cart:
    """Remove a product's line from the user's cart if present.

    Without a stored cart, returns the unsaved empty projection.
    """

    cart = _lock_cart(user=user)
    if cart is None:
        return Cart(user=user, total=Decimal("0.00"))
    deleted, _ = CartItem.objects.filter(cart=cart, product_id=product_id).delete()
    if not deleted:
        return cart
    recompute_total(cart)
    logger.info(
        "cart.item_removed",
        extra={
            "event": "cart.item_removed",
            "cart_id": cart.id,
            "user_id": getattr(user, "id", None),
            "product_id": product_id,
        },
    )
    return cart


@transaction.atomic
def clear_cart(*, user) -> Optional[Cart]:
    """Delete every line and reset the total. A missing cart is a no-op."""

    cart = _lock_cart(user=user)
    if cart is None:
        return None
    CartItem.objects.filter(cart=cart).delete()
    cart.total = Decimal("0.00")
    cart.updated_at = timezone.now()
    cart.save(update_fields=["total", "updated_at"])
    logger.info(
        "cart.cleared",
        extra={"event": "cart.cleared", "cart_id": cart.id, "user_id": getattr(user, "id", None)},
    )
    return cart
