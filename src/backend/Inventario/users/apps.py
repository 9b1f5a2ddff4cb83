"""App configuration for the users module."""

from django.apps import AppConfig


class UsersConfig(AppConfig):
    """Configuration class for the 'users' app."""

    name = 'users'
    verbose_name = 'Users'
    default_auto_field = 'django.db.models.BigAutoField'
