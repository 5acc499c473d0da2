"""Selectors for read-only cart queries."""

from decimal import Decimal
from typing import Optional

from catalog.lookup import ProductLookup

from .models import Cart, CartItem


def get_cart(*, user) -> Cart:
    """Return the user's cart, or an unsaved empty projection if none exists.

    The projection is never written; check ``cart.pk`` before assuming storage.
    """

    cart = Cart.objects.filter(user=user).first()
    if cart is None:
        return Cart(user=user, total=Decimal("0.00"))
    return cart


def find_cart(*, user) -> Optional[Cart]:
    return Cart.objects.filter(user=user).first()


def cart_lines(*, cart: Cart) -> list[CartItem]:
    """Return the cart's lines, or an empty list for an unsaved projection."""

    if cart.pk is None:
        return []
    return list(CartItem.objects.filter(cart=cart).order_by("id"))


def cart_item_count(*, user) -> dict:
    """Return total units and number of distinct lines in the user's cart."""

    lines = cart_lines(cart=get_cart(user=user))
    return {
        "item_count": sum(int(line.quantity) for line in lines),
        "total_items": len(lines),
    }


def live_cart_view(*, user, lookup: ProductLookup) -> dict:
    """Assemble the cart with live catalog pricing.

    Issues one bulk lookup for every product in the cart and joins the result
    to the cart quantities. Products the lookup does not return are dropped and
    do not count towards the total.
    """

    lines = cart_lines(cart=get_cart(user=user))
    if not lines:
        return {"products": [], "total_amount": Decimal("0.00")}

    quantities = {int(line.product_id): int(line.quantity) for line in lines}
    live = {snap.id: snap for snap in lookup.fetch_many(list(quantities))}

    products = []
    total = Decimal("0.00")
    for product_id, quantity in quantities.items():
        snap = live.get(product_id)
        if snap is None:
            continue
        line_total = snap.price * quantity
        total += line_total
        products.append(
            {
                "id": snap.id,
                "title": snap.title,
                "image_url": snap.image_url,
                "price": snap.price,
                "quantity": quantity,
                "line_total": line_total,
            }
        )
    return {"products": products, "total_amount": total}
