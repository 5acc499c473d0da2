"""Catalog services: stock checks and atomic stock movements."""

import logging
from typing import Iterable, Tuple

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .models import Product

logger = logging.getLogger("smartcart.catalog")


class CatalogError(Exception):
    """Base class for catalog failures."""


class ProductNotFound(CatalogError):
    """Raised when a product id does not resolve to an active product."""

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class InsufficientStock(CatalogError):
    """Raised when stock cannot cover a requested quantity."""

    def __init__(self, product_id, product_title: str = "", requested: int = 0, available: int = 0):
        self.product_id = product_id
        self.product_title = product_title or str(product_id)
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient stock for product: {self.product_title}")


def ensure_stock(lines: Iterable[Tuple[int, int, str]]) -> None:
    """Check that every ``(product_id, quantity, title)`` line can be covered.

    Inactive or missing products count as zero stock. Raises ``InsufficientStock``
    for the first failing line; nothing is written either way.
    """

    lines = list(lines)
    available = dict(
        Product.objects.filter(id__in={pid for pid, _, _ in lines}, is_active=True).values_list("id", "stock")
    )
    for product_id, quantity, title in lines:
        in_stock = int(available.get(product_id, 0))
        if int(quantity) > in_stock:
            raise InsufficientStock(product_id, title, requested=int(quantity), available=in_stock)


@transaction.atomic
def decrement_stock(*, product_id: int, quantity: int, title: str = "") -> None:
    """Atomically take ``quantity`` units of a product's stock.

    A single conditional UPDATE compares and decrements in one statement, so
    concurrent callers can never drive stock below zero. Raises
    ``InsufficientStock`` when the row does not match.
    """

    if quantity <= 0:
        raise ValueError("Quantity must be positive")
    updated = Product.objects.filter(id=product_id, is_active=True, stock__gte=quantity).update(
        stock=F("stock") - quantity,
        updated_at=timezone.now(),
    )
    if updated == 0:
        current = Product.objects.filter(id=product_id).values_list("stock", flat=True).first()
        logger.info(
            "catalog.stock_rejected",
            extra={
                "event": "catalog.stock_rejected",
                "product_id": product_id,
                "requested": quantity,
                "available": current,
            },
        )
        raise InsufficientStock(product_id, title, requested=quantity, available=int(current or 0))
    logger.info(
        "catalog.stock_decremented",
        extra={"event": "catalog.stock_decremented", "product_id": product_id, "quantity": quantity},
    )

