"""Selectors for read-only order queries."""

from typing import Optional

from django.db.models import QuerySet

from .models import Order


def _with_items(qs: QuerySet) -> QuerySet:
    return qs.prefetch_related("items").order_by("-created_at", "-id")


def orders_for_user(*, user, status: Optional[str] = None) -> QuerySet:
    """Return the user's orders, newest first, optionally filtered by status."""

    qs = Order.objects.filter(user_id=user.id)
    if status:
        qs = qs.filter(status=status)
    return _with_items(qs)


def get_order_for_user(*, user, order_id) -> Optional[Order]:
    try:
        return _with_items(Order.objects.filter(user_id=user.id)).get(id=int(order_id))
    except (Order.DoesNotExist, ValueError, TypeError):
        return None


def orders_by_status(status: Optional[str] = None) -> QuerySet:
    """Return all orders, or only those in ``status``."""

    qs = Order.objects.select_related("user")
    if status:
        qs = qs.filter(status=status)
    return _with_items(qs)


def open_orders() -> QuerySet:
    """Orders still awaiting fulfilment (pending or confirmed)."""

    return _with_items(
        Order.objects.select_related("user").filter(status__in=[Order.STATUS_PENDING, Order.STATUS_CONFIRMED])
    )
