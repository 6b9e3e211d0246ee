"""
Payments app configuration.

This app provides payment reconciliation:
- ParsedPayment and PaymentObligation models
- Reconciliation engine and per-kind confirm strategies
- USSD payment codes and the shortcode system check
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self):
        # Registers the payment shortcode system check
        from payments import checks  # noqa: F401
