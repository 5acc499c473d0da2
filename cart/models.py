"""Cart app models.

One cart per user. Lines reference products by id only and keep a snapshot of
title, image and unit price taken when the product was first added.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class TimeStampedModel(models.Model):
    """Abstract base model with explicitly managed timestamps."""

    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        abstract = True


class Cart(TimeStampedModel):
    """Shopping cart bound to exactly one user.

    ``total`` is derived from the lines by ``cart.services.recompute_total`` and
    is rewritten on every mutation.
    """

    user = models.OneToOneField(settings.AUTH_USER_MODEL, related_name="cart", on_delete=models.CASCADE)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["-updated_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"Cart#{self.id} ({self.user_id})"


class CartItem(TimeStampedModel):
    """Line item in a shopping cart for one product."""

    cart = models.ForeignKey(Cart, related_name="items", on_delete=models.CASCADE)
    product_id = models.PositiveBigIntegerField(db_index=True)
    quantity = models.PositiveIntegerField(default=1)
    product_title = models.CharField(max_length=200, blank=True)
    product_image_url = models.URLField(blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["cart", "product_id"], name="unique_product_per_cart"),
            models.CheckConstraint(name="cartitem_quantity_positive", condition=models.Q(quantity__gte=1)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"CartItem#{self.id} cart={self.cart_id} product={self.product_id} qty={self.quantity}"

    @property
    def line_total(self) -> Decimal:
        return (self.unit_price or Decimal("0.00")) * Decimal(int(self.quantity))
