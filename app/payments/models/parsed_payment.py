"""
ParsedPayment model.

A structured payment notification produced upstream from a mobile money
SMS. The payment facts are immutable; only matched_entity, an operator
hint, is written after creation.

Usage:
    parsed = ParsedPayment.objects.create(
        amount=50000,
        reference="MP240118.1234.A12345",
        confidence=0.92,
        source_message_id="sms-8812",
    )
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class ParsedPayment(UUIDPrimaryKeyMixin, BaseModel):
    """
    A parsed inbound payment notification.

    Fields:
        amount: Whole currency units, positive
        currency: ISO 4217 code (RWF)
        reference: Free text reference from the message
        confidence: Parser confidence in [0, 1]
        source_message_id: Upstream message identifier, unique
        matched_entity: Operator hint, e.g. "ticket_order:<id>" or
            "candidate:ticket_order:<id>" for low-confidence matches
    """

    amount = models.PositiveIntegerField(help_text="Amount in whole currency units")
    currency = models.CharField(max_length=3, default="RWF")
    reference = models.CharField(max_length=255, blank=True, default="")
    confidence = models.FloatField(help_text="Parser confidence between 0 and 1")
    source_message_id = models.CharField(max_length=128, unique=True)
    matched_entity = models.CharField(max_length=128, null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Parsed Payment"
        verbose_name_plural = "Parsed Payments"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="parsed_payment_amount_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(confidence__gte=0) & models.Q(confidence__lte=1),
                name="parsed_payment_confidence_range",
            ),
        ]

    def __str__(self) -> str:
        return f"ParsedPayment({self.source_message_id}, {self.amount} {self.currency})"
