import threading
from typing import List

import pytest
from cart.services import add_item
from cart.tests.factories import UserFactory
from catalog.services import InsufficientStock
from catalog.tests.factories import ProductFactory
from django.db import close_old_connections, connection
from orders.models import Order
from orders.services import place_order


def _checkout_worker(barrier: threading.Barrier, user, placed: List[int], rejected: List[Exception]):
    close_old_connections()
    barrier.wait()
    try:
        placed.append(place_order(user=user, shipping_address="1 Main St").id)
    except InsufficientStock as exc:
        rejected.append(exc)
    finally:
        close_old_connections()


@pytest.mark.django_db(transaction=True)
def test_threaded_checkouts_against_short_stock_never_oversell():
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    buyers = 5
    product = ProductFactory(stock=buyers - 1)
    users = [UserFactory() for _ in range(buyers)]
    for user in users:
        add_item(user=user, product_id=product.id, quantity=1)

    barrier = threading.Barrier(buyers)
    placed: List[int] = []
    rejected: List[Exception] = []
    threads = [threading.Thread(target=_checkout_worker, args=(barrier, u, placed, rejected)) for u in users]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    product.refresh_from_db()
    assert len(placed) == buyers - 1
    assert len(rejected) == 1
    assert product.stock == 0
    assert Order.objects.count() == buyers - 1


def _checkout_collecting(barrier: threading.Barrier, user, placed: List[int], failed: List[Exception]):
    close_old_connections()
    barrier.wait()
    try:
        placed.append(place_order(user=user, shipping_address="1 Main St").id)
    except Exception as exc:
        failed.append(exc)
    finally:
        close_old_connections()


@pytest.mark.django_db(transaction=True)
def test_overlapping_carts_in_opposite_order_both_check_out():
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    rounds = 10
    first = ProductFactory(stock=100)
    second = ProductFactory(stock=100)

    for _ in range(rounds):
        forward, backward = UserFactory(), UserFactory()
        add_item(user=forward, product_id=first.id, quantity=1)
        add_item(user=forward, product_id=second.id, quantity=1)
        add_item(user=backward, product_id=second.id, quantity=1)
        add_item(user=backward, product_id=first.id, quantity=1)

        barrier = threading.Barrier(2)
        placed: List[int] = []
        failed: List[Exception] = []
        threads = [
            threading.Thread(target=_checkout_collecting, args=(barrier, u, placed, failed))
            for u in (forward, backward)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert failed == []
        assert len(placed) == 2

    first.refresh_from_db()
    second.refresh_from_db()
    assert first.stock == 100 - 2 * rounds
    assert second.stock == 100 - 2 * rounds
    assert Order.objects.count() == 2 * rounds
