"""
DRF serializers for the payments operator API.

Usage:
    serializer = ManualReviewSerializer(ReconciliationService.list_manual_review(), many=True)
    data = serializer.data
"""

from __future__ import annotations

from rest_framework import serializers

from payments.models import ParsedPayment, PaymentObligation


class ParsedPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = ParsedPayment
        fields = [
            "id",
            "amount",
            "currency",
            "reference",
            "confidence",
            "source_message_id",
            "matched_entity",
            "created_at",
        ]
        read_only_fields = fields


class ManualReviewSerializer(serializers.ModelSerializer):
    """
    Obligation awaiting an operator, with the payment that flagged it.

    manual_reason and reference come from the typed metadata.
    """

    entity_id = serializers.SerializerMethodField()
    manual_reason = serializers.SerializerMethodField()
    reference = serializers.SerializerMethodField()
    parsed_payment = ParsedPaymentSerializer(read_only=True)

    class Meta:
        model = PaymentObligation
        fields = [
            "id",
            "kind",
            "amount",
            "currency",
            "status",
            "entity_id",
            "manual_reason",
            "reference",
            "parsed_payment",
            "created_at",
        ]
        read_only_fields = fields

    def get_entity_id(self, obj) -> str | None:
        return str(obj.entity_id) if obj.entity_id else None

    def get_manual_reason(self, obj) -> str | None:
        return obj.meta.manual_reason

    def get_reference(self, obj) -> str | None:
        return obj.meta.reference


class AttachSmsRequestSerializer(serializers.Serializer):
    parsed_payment_id = serializers.UUIDField()


class ReconciliationOutcomeSerializer(serializers.Serializer):
    status = serializers.CharField()
    parsed_payment_id = serializers.UUIDField()
    payment_id = serializers.UUIDField(allow_null=True)
    kind = serializers.CharField(allow_null=True)
    reason = serializers.CharField(allow_null=True)
    already_processed = serializers.BooleanField()
    payload = serializers.JSONField()
