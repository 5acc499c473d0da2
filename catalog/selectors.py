"""Selectors for the catalog domain.

Read-only query helpers shared by views, services and the local product
lookup. Selectors return querysets or model instances and have no side effects.
"""

from typing import Iterable, Optional

from django.db.models import QuerySet

from .models import Product


def get_product(product_id: int, *, active_only: bool = True) -> Optional[Product]:
    """Return a product by id, or None if missing (or inactive when ``active_only``)."""

    qs = Product.objects.all()
    if active_only:
        qs = qs.filter(is_active=True)
    try:
        return qs.get(id=product_id)
    except (Product.DoesNotExist, ValueError, TypeError):
        return None


def products_by_ids(product_ids: Iterable[int], *, active_only: bool = True) -> QuerySet[Product]:
    """Return products whose ids are in ``product_ids``.

    Unknown ids are simply absent from the result; no error is raised.
    """

    ids = {int(pid) for pid in product_ids}
    qs = Product.objects.filter(id__in=ids)
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("id")
