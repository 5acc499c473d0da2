from decimal import Decimal

import pytest
from cart.selectors import live_cart_view
from cart.tests.factories import CartFactory, CartItemFactory, FakeProductLookup, UserFactory, snapshot


@pytest.mark.django_db
def test_live_view_uses_current_prices_and_one_bulk_call():
    cart = CartFactory()
    CartItemFactory(cart=cart, product_id=1, quantity=2, unit_price=Decimal("5.00"))
    CartItemFactory(cart=cart, product_id=2, quantity=1, unit_price=Decimal("3.00"))
    lookup = FakeProductLookup(snapshot(1, price="6.00"), snapshot(2, price="3.50"))

    view = live_cart_view(user=cart.user, lookup=lookup)

    assert len(lookup.bulk_calls) == 1
    assert sorted(lookup.bulk_calls[0]) == [1, 2]
    by_id = {p["id"]: p for p in view["products"]}
    assert by_id[1]["quantity"] == 2
    assert by_id[1]["price"] == Decimal("6.00")
    assert by_id[1]["line_total"] == Decimal("12.00")
    assert view["total_amount"] == Decimal("15.50")


@pytest.mark.django_db
def test_live_view_drops_products_the_catalog_no_longer_returns():
    cart = CartFactory()
    CartItemFactory(cart=cart, product_id=1, quantity=1)
    CartItemFactory(cart=cart, product_id=2, quantity=4)
    lookup = FakeProductLookup(snapshot(1, price="2.00"))

    view = live_cart_view(user=cart.user, lookup=lookup)

    assert [p["id"] for p in view["products"]] == [1]
    assert view["total_amount"] == Decimal("2.00")


@pytest.mark.django_db
def test_live_view_without_cart_issues_no_lookup():
    lookup = FakeProductLookup(snapshot(1))

    view = live_cart_view(user=UserFactory(), lookup=lookup)

    assert view == {"products": [], "total_amount": Decimal("0.00")}
    assert lookup.bulk_calls == []


@pytest.mark.django_db
def test_live_view_with_empty_cart_issues_no_lookup():
    cart = CartFactory()
    lookup = FakeProductLookup()

    view = live_cart_view(user=cart.user, lookup=lookup)

    assert view["products"] == []
    assert lookup.bulk_calls == []
