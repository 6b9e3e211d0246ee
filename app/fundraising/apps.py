"""
Django app configuration for fundraising.
"""

from django.apps import AppConfig


class FundraisingConfig(AppConfig):
    """Configuration for the fundraising application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "fundraising"
    verbose_name = "Fundraising"
