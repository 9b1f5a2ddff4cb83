"""App configuration for the stock module."""

from django.apps import AppConfig


class StockConfig(AppConfig):
    """Configuration class for the 'stock' app."""

    name = 'stock'
    verbose_name = 'Stock'
    default_auto_field = 'django.db.models.BigAutoField'
