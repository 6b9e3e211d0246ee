"""
Payment admin configuration.

Parsed payments and obligations are read-mostly here: status changes go
through ReconciliationService (or the attach-sms API), not the admin form.
"""

from django.contrib import admin

from payments.models import ParsedPayment, PaymentObligation

__all__ = [
    "ParsedPaymentAdmin",
    "PaymentObligationAdmin",
]


@admin.register(ParsedPayment)
class ParsedPaymentAdmin(admin.ModelAdmin):
    """Inbound payment notifications; payment facts are immutable."""

    list_display = [
        "source_message_id",
        "amount",
        "currency",
        "confidence",
        "reference",
        "matched_entity",
        "created_at",
    ]
    list_filter = ["currency", "created_at"]
    search_fields = ["id", "source_message_id", "reference", "matched_entity"]
    readonly_fields = [
        "id",
        "amount",
        "currency",
        "reference",
        "confidence",
        "source_message_id",
        "matched_entity",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]


@admin.register(PaymentObligation)
class PaymentObligationAdmin(admin.ModelAdmin):
    """
    Expected payments and their reconciliation state.

    Use the attach-sms API to resolve manual reviews.
    """

    list_display = [
        "id",
        "kind",
        "amount",
        "currency",
        "status",
        "parsed_payment",
        "confirmed_at",
        "created_at",
    ]
    list_filter = ["kind", "status", "created_at"]
    search_fields = [
        "id",
        "ticket_order__id",
        "membership__id",
        "shop_order__id",
        "donation__id",
        "parsed_payment__source_message_id",
    ]
    readonly_fields = [
        "id",
        "status",
        "confirmed_at",
        "parsed_payment",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["ticket_order", "membership", "shop_order", "donation"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "kind", "status", "amount", "currency"),
            },
        ),
        (
            "Entity",
            {
                "fields": ("ticket_order", "membership", "shop_order", "donation"),
            },
        ),
        (
            "Resolution",
            {
                "fields": ("parsed_payment", "confirmed_at", "metadata"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )
