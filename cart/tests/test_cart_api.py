from decimal import Decimal
from unittest import mock

import pytest
from cart.models import CartItem
from cart.tests.factories import CartItemFactory, FakeProductLookup, UserFactory, snapshot
from catalog.tests.factories import ProductFactory
from rest_framework.test import APIClient


def _client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.mark.django_db
def test_cart_detail_initial_empty():
    resp = _client(UserFactory()).get("/api/v1/cart/")

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] is None
    assert body["items"] == []
    assert body["total"] == "0.00"


@pytest.mark.django_db
def test_add_item_endpoint_returns_updated_cart():
    product = ProductFactory(title="Mug", price=Decimal("5.00"))
    client = _client(UserFactory())

    resp = client.post("/api/v1/cart/items/", {"product_id": product.id, "quantity": 2}, format="json")

    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == "10.00"
    assert body["items"][0]["product_id"] == product.id
    assert body["items"][0]["product_title"] == "Mug"
    assert body["items"][0]["line_total"] == "10.00"


@pytest.mark.django_db
def test_add_item_quantity_defaults_to_one():
    product = ProductFactory()
    client = _client(UserFactory())

    resp = client.post("/api/v1/cart/items/", {"product_id": product.id}, format="json")

    assert resp.status_code == 200
    assert resp.json()["items"][0]["quantity"] == 1


@pytest.mark.django_db
def test_add_item_zero_quantity_is_validation_error():
    product = ProductFactory()

    resp = _client(UserFactory()).post("/api/v1/cart/items/", {"product_id": product.id, "quantity": 0}, format="json")

    assert resp.status_code == 400
    assert "quantity" in resp.json()


@pytest.mark.django_db
def test_add_unknown_product_returns_generic_error():
    resp = _client(UserFactory()).post("/api/v1/cart/items/", {"product_id": 987654, "quantity": 1}, format="json")

    assert resp.status_code == 400
    assert resp.json() == {"detail": "Unable to update cart."}


@pytest.mark.django_db
def test_update_item_quantity_endpoint():
    item = CartItemFactory(quantity=1, unit_price=Decimal("2.00"))
    client = _client(item.cart.user)

    resp = client.patch(f"/api/v1/cart/items/{item.product_id}/", {"quantity": 3}, format="json")

    assert resp.status_code == 200
    assert resp.json()["items"][0]["quantity"] == 3
    assert resp.json()["total"] == "6.00"


@pytest.mark.django_db
def test_update_missing_line_returns_generic_error():
    item = CartItemFactory()

    resp = _client(item.cart.user).patch("/api/v1/cart/items/999999/", {"quantity": 3}, format="json")

    assert resp.status_code == 400
    assert resp.json() == {"detail": "Unable to update cart."}


@pytest.mark.django_db
def test_update_without_cart_returns_generic_error():
    resp = _client(UserFactory()).patch("/api/v1/cart/items/1/", {"quantity": 3}, format="json")

    assert resp.status_code == 400


@pytest.mark.django_db
def test_delete_item_endpoint():
    item = CartItemFactory()
    client = _client(item.cart.user)

    resp = client.delete(f"/api/v1/cart/items/{item.product_id}/")

    assert resp.status_code == 200
    assert resp.json()["items"] == []
    assert not CartItem.objects.filter(id=item.id).exists()


@pytest.mark.django_db
def test_clear_endpoint_reports_success():
    item = CartItemFactory(quantity=2)

    resp = _client(item.cart.user).post("/api/v1/cart/clear/")

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert not CartItem.objects.filter(cart=item.cart).exists()


@pytest.mark.django_db
def test_count_endpoint():
    item = CartItemFactory(quantity=2)
    CartItemFactory(cart=item.cart, quantity=1)

    resp = _client(item.cart.user).get("/api/v1/cart/count/")

    assert resp.status_code == 200
    assert resp.json() == {"item_count": 3, "total_items": 2}


@pytest.mark.django_db
def test_live_endpoint_uses_configured_lookup():
    item = CartItemFactory(product_id=5, quantity=2, unit_price=Decimal("1.00"))
    lookup = FakeProductLookup(snapshot(5, price="4.00", title="Lamp"))

    with mock.patch("cart.views.get_product_lookup", return_value=lookup):
        resp = _client(item.cart.user).get("/api/v1/cart/live/")

    assert resp.status_code == 200
    body = resp.json()
    assert body["total_amount"] == "8.00"
    assert body["products"][0]["title"] == "Lamp"
    assert body["products"][0]["line_total"] == "8.00"


@pytest.mark.django_db
def test_unauthenticated_requests_return_401():
    client = APIClient()

    assert client.get("/api/v1/cart/").status_code == 401
    assert client.post("/api/v1/cart/items/", {"product_id": 1}, format="json").status_code == 401
    assert client.post("/api/v1/cart/clear/").status_code == 401


@pytest.mark.django_db
def test_users_cannot_touch_each_others_lines():
    item = CartItemFactory(quantity=2)
    intruder = _client(UserFactory())

    resp = intruder.patch(f"/api/v1/cart/items/{item.product_id}/", {"quantity": 9}, format="json")
    intruder.delete(f"/api/v1/cart/items/{item.product_id}/")

    assert resp.status_code == 400
    item.refresh_from_db()
    assert item.quantity == 2
