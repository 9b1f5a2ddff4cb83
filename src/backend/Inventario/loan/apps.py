"""App configuration for the loan module."""

from django.apps import AppConfig


class LoanConfig(AppConfig):
    """Configuration class for the 'loan' app."""

    name = 'loan'
    verbose_name = 'Loan Management'
    default_auto_field = 'django.db.models.BigAutoField'
