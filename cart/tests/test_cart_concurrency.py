import threading
from typing import List

import pytest
from cart.models import Cart, CartItem
from cart.services import add_item
from cart.tests.factories import FakeProductLookup, UserFactory, snapshot
from django.db import close_old_connections, connection


def _add_worker(barrier: threading.Barrier, user, lookup, errors: List[Exception]):
    close_old_connections()
    barrier.wait()
    try:
        add_item(user=user, product_id=1, quantity=1, lookup=lookup)
    except Exception as exc:  # pragma: no cover
        errors.append(exc)
    finally:
        close_old_connections()


@pytest.mark.django_db
def test_sequential_adds_accumulate_on_one_line():
    user = UserFactory()
    lookup = FakeProductLookup(snapshot(1))

    for _ in range(5):
        add_item(user=user, product_id=1, quantity=1, lookup=lookup)

    assert CartItem.objects.get(cart__user=user).quantity == 5


@pytest.mark.django_db(transaction=True)
def test_threaded_adds_for_same_user_do_not_lose_updates():
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    user = UserFactory()
    lookup = FakeProductLookup(snapshot(1))
    workers = 4
    barrier = threading.Barrier(workers)
    errors: List[Exception] = []

    threads = [threading.Thread(target=_add_worker, args=(barrier, user, lookup, errors)) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert Cart.objects.filter(user=user).count() == 1
    assert CartItem.objects.get(cart__user=user).quantity == workers
