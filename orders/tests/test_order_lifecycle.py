from unittest import mock

import pytest
from django.core import mail
from orders.models import Order
from orders.selectors import get_order_for_user, open_orders, orders_by_status, orders_for_user
from orders.services import InvalidStatusTransition, set_tracking_number, transition_order_status
from orders.tests.factories import OrderFactory, OrderItemFactory

ALLOWED = [
    (Order.STATUS_PENDING, Order.STATUS_CONFIRMED),
    (Order.STATUS_PENDING, Order.STATUS_CANCELLED),
    (Order.STATUS_CONFIRMED, Order.STATUS_SHIPPED),
    (Order.STATUS_SHIPPED, Order.STATUS_DELIVERED),
]


@pytest.mark.django_db
@pytest.mark.parametrize("current,target", ALLOWED)
def test_allowed_transitions(current, target):
    order = OrderFactory(status=current)

    updated = transition_order_status(order=order, status=target)

    assert updated.status == target
    order.refresh_from_db()
    assert order.status == target


@pytest.mark.django_db
@pytest.mark.parametrize(
    "current,target",
    [
        (Order.STATUS_PENDING, Order.STATUS_SHIPPED),
        (Order.STATUS_PENDING, Order.STATUS_DELIVERED),
        (Order.STATUS_CONFIRMED, Order.STATUS_PENDING),
        (Order.STATUS_CONFIRMED, Order.STATUS_CANCELLED),
        (Order.STATUS_SHIPPED, Order.STATUS_CONFIRMED),
        (Order.STATUS_DELIVERED, Order.STATUS_PENDING),
        (Order.STATUS_CANCELLED, Order.STATUS_CONFIRMED),
    ],
)
def test_disallowed_transitions_raise(current, target):
    order = OrderFactory(status=current)

    with pytest.raises(InvalidStatusTransition):
        transition_order_status(order=order, status=target)

    order.refresh_from_db()
    assert order.status == current


@pytest.mark.django_db
def test_same_status_is_noop():
    order = OrderFactory(status=Order.STATUS_SHIPPED)
    before = order.updated_at

    updated = transition_order_status(order=order, status=Order.STATUS_SHIPPED)

    assert updated.status == Order.STATUS_SHIPPED
    assert updated.updated_at == before


@pytest.mark.django_db
def test_confirming_sends_email(settings, django_capture_on_commit_callbacks):
    settings.FRONTEND_URL = "https://shop.example.com"
    order = OrderFactory()

    with django_capture_on_commit_callbacks(execute=True):
        transition_order_status(order=order, status=Order.STATUS_CONFIRMED)

    assert len(mail.outbox) == 1
    assert order.number in mail.outbox[0].subject
    assert f"https://shop.example.com/orders/{order.id}" in mail.outbox[0].body


@pytest.mark.django_db
def test_confirmation_email_waits_for_commit(django_capture_on_commit_callbacks):
    order = OrderFactory()

    with django_capture_on_commit_callbacks() as callbacks:
        transition_order_status(order=order, status=Order.STATUS_CONFIRMED)

    assert len(callbacks) == 1
    assert len(mail.outbox) == 0


@pytest.mark.django_db
def test_email_failure_does_not_block_confirmation(django_capture_on_commit_callbacks):
    order = OrderFactory()

    with mock.patch("orders.services.send_order_confirmed_email", side_effect=RuntimeError("smtp down")):
        with django_capture_on_commit_callbacks(execute=True):
            updated = transition_order_status(order=order, status=Order.STATUS_CONFIRMED)

    assert updated.status == Order.STATUS_CONFIRMED
    order.refresh_from_db()
    assert order.status == Order.STATUS_CONFIRMED


@pytest.mark.django_db
def test_set_tracking_number_changes_only_tracking():
    order = OrderFactory(status=Order.STATUS_SHIPPED)

    updated = set_tracking_number(order=order, tracking_number=" TRK123 ")

    assert updated.tracking_number == "TRK123"
    order.refresh_from_db()
    assert order.status == Order.STATUS_SHIPPED
    assert order.tracking_number == "TRK123"


@pytest.mark.django_db
def test_ledger_selectors():
    mine = OrderFactory(status=Order.STATUS_PENDING)
    confirmed = OrderFactory(user=mine.user, status=Order.STATUS_CONFIRMED)
    shipped = OrderFactory(status=Order.STATUS_SHIPPED)
    OrderItemFactory(order=mine)

    assert list(orders_for_user(user=mine.user)) == [confirmed, mine]
    assert list(orders_for_user(user=mine.user, status=Order.STATUS_PENDING)) == [mine]
    assert get_order_for_user(user=mine.user, order_id=mine.id) == mine
    assert get_order_for_user(user=mine.user, order_id=shipped.id) is None
    assert list(orders_by_status(Order.STATUS_SHIPPED)) == [shipped]
    assert set(open_orders()) == {mine, confirmed}
