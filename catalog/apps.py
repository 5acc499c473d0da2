"""Django app configuration for catalog."""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Product catalog: prices, stock and the product lookup capability."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog"
