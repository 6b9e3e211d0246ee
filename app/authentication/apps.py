"""
Django app configuration for authentication.

Provides the User model referenced by ticket orders, passes, memberships,
shop orders and donations.
"""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
    verbose_name = "Fans & Staff"
