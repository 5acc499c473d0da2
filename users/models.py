"""User model.

Carts and orders are owned by a ``User``. Staff users (``is_staff``) are the
administrators allowed to drive order status and tracking updates.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Custom user with a unique, normalized email and a display name."""

    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=150, blank=True)

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)
