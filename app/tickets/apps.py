"""
Django app configuration for tickets.
"""

from django.apps import AppConfig


class TicketsConfig(AppConfig):
    """Configuration for the tickets application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "tickets"
    verbose_name = "Tickets"
