from decimal import Decimal

import pytest
from cart.models import Cart, CartItem
from cart.services import add_item
from cart.tests.factories import CartFactory, UserFactory
from catalog.models import Product
from catalog.services import InsufficientStock
from catalog.tests.factories import ProductFactory
from orders import services as order_services
from orders.models import Order, OrderItem
from orders.services import EmptyCart, OrderError, place_order


def _cart_with(user, *lines):
    for product, quantity in lines:
        add_item(user=user, product_id=product.id, quantity=quantity)


@pytest.mark.django_db
def test_place_order_snapshots_cart_and_takes_stock():
    user = UserFactory()
    mug = ProductFactory(title="Mug", price=Decimal("5.00"), stock=3)
    lamp = ProductFactory(title="Lamp", price=Decimal("10.00"), stock=4)
    _cart_with(user, (mug, 3), (lamp, 1))

    order = place_order(user=user, shipping_address="1 Main St", payment_info="Card ending 4242")

    assert order.status == Order.STATUS_PENDING
    assert order.total == Decimal("25.00")
    assert order.number == f"ORD-{order.id:06d}"
    assert order.shipping_address == "1 Main St"
    assert order.payment_info == "Card ending 4242"
    lines = {line.product_id: line for line in order.items.all()}
    assert lines[mug.id].quantity == 3
    assert lines[mug.id].unit_price == Decimal("5.00")
    assert lines[mug.id].line_total == Decimal("15.00")
    assert lines[lamp.id].product_title == "Lamp"
    mug.refresh_from_db()
    lamp.refresh_from_db()
    assert mug.stock == 0
    assert lamp.stock == 3
    cart = Cart.objects.get(user=user)
    assert cart.total == Decimal("0.00")
    assert not CartItem.objects.filter(cart=cart).exists()


@pytest.mark.django_db
def test_order_keeps_cart_price_after_catalog_change():
    user = UserFactory()
    product = ProductFactory(price=Decimal("5.00"), stock=5)
    _cart_with(user, (product, 2))
    Product.objects.filter(id=product.id).update(price=Decimal("8.00"))

    order = place_order(user=user, shipping_address="1 Main St")

    assert order.total == Decimal("10.00")
    assert order.items.get().unit_price == Decimal("5.00")


@pytest.mark.django_db
def test_insufficient_stock_leaves_everything_untouched():
    user = UserFactory()
    product = ProductFactory(title="Mug", stock=3)
    _cart_with(user, (product, 10))

    with pytest.raises(InsufficientStock) as exc:
        place_order(user=user, shipping_address="1 Main St")

    assert exc.value.product_id == product.id
    assert "Mug" in str(exc.value)
    product.refresh_from_db()
    assert product.stock == 3
    assert Order.objects.count() == 0
    assert CartItem.objects.get(cart__user=user).quantity == 10


@pytest.mark.django_db
def test_one_short_line_fails_the_whole_cart():
    user = UserFactory()
    plenty = ProductFactory(stock=50)
    scarce = ProductFactory(stock=1)
    _cart_with(user, (plenty, 5), (scarce, 2))

    with pytest.raises(InsufficientStock):
        place_order(user=user, shipping_address="1 Main St")

    plenty.refresh_from_db()
    assert plenty.stock == 50
    assert OrderItem.objects.count() == 0
    assert CartItem.objects.filter(cart__user=user).count() == 2


@pytest.mark.django_db
def test_stale_check_is_caught_by_conditional_decrement(monkeypatch):
    user = UserFactory()
    first = ProductFactory(stock=5)
    second = ProductFactory(stock=5)
    _cart_with(user, (first, 2), (second, 3))
    # Simulate a competing checkout draining stock between the check and the decrement.
    monkeypatch.setattr(order_services, "ensure_stock", lambda lines: None)
    Product.objects.filter(id=second.id).update(stock=1)

    with pytest.raises(InsufficientStock):
        place_order(user=user, shipping_address="1 Main St")

    first.refresh_from_db()
    second.refresh_from_db()
    assert first.stock == 5
    assert second.stock == 1
    assert Order.objects.count() == 0
    assert CartItem.objects.filter(cart__user=user).count() == 2


@pytest.mark.django_db
def test_empty_cart_raises():
    cart = CartFactory()

    with pytest.raises(EmptyCart):
        place_order(user=cart.user, shipping_address="1 Main St")
    with pytest.raises(EmptyCart):
        place_order(user=UserFactory(), shipping_address="1 Main St")

    assert Order.objects.count() == 0


@pytest.mark.django_db
def test_blank_shipping_address_is_rejected():
    user = UserFactory()
    _cart_with(user, (ProductFactory(), 1))

    with pytest.raises(OrderError):
        place_order(user=user, shipping_address="   ")

    assert Order.objects.count() == 0


@pytest.mark.django_db
def test_inactive_product_cannot_be_checked_out():
    user = UserFactory()
    product = ProductFactory(stock=5)
    _cart_with(user, (product, 1))
    Product.objects.filter(id=product.id).update(is_active=False)

    with pytest.raises(InsufficientStock):
        place_order(user=user, shipping_address="1 Main St")


@pytest.mark.django_db
def test_sequential_checkouts_never_oversell():
    product = ProductFactory(stock=3)
    users = [UserFactory() for _ in range(4)]
    for user in users:
        _cart_with(user, (product, 1))

    placed, rejected = 0, 0
    for user in users:
        try:
            place_order(user=user, shipping_address="1 Main St")
            placed += 1
        except InsufficientStock:
            rejected += 1

    product.refresh_from_db()
    assert placed == 3
    assert rejected == 1
    assert product.stock == 0


@pytest.mark.django_db
def test_two_product_checkout_totals_and_stock():
    user = UserFactory()
    a = ProductFactory(price=Decimal("10.00"), stock=5)
    b = ProductFactory(price=Decimal("5.00"), stock=5)
    _cart_with(user, (a, 2), (b, 1))
    cart_total = Cart.objects.get(user=user).total

    order = place_order(user=user, shipping_address="1 Main St")

    assert cart_total == Decimal("25.00")
    assert order.total == cart_total
    a.refresh_from_db()
    b.refresh_from_db()
    assert (a.stock, b.stock) == (3, 4)
    assert CartItem.objects.filter(cart__user=user).count() == 0
