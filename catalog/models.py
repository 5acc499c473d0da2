"""Catalog app models.

Products own price and stock. Carts and orders only reference products by id
and keep their own snapshots, so the catalog can be served by another process.
"""

from decimal import Decimal

from django.db import models
from django.utils import timezone


class TimeStampedModel(models.Model):
    """Abstract base model with explicitly managed timestamps.

    Services set ``updated_at`` themselves on every mutation.
    """

    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        abstract = True


class Product(TimeStampedModel):
    """Sellable product with a single price and stock counter."""

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, blank=True, db_index=True)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    stock = models.IntegerField(default=0)
    image_url = models.URLField(blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["title"]
        constraints = [
            models.CheckConstraint(name="product_stock_non_negative", condition=models.Q(stock__gte=0)),
            models.CheckConstraint(name="product_price_positive", condition=models.Q(price__gt=Decimal("0"))),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.title} (stock={self.stock})"
