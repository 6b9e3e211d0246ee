"""
DRF serializers for the ticketing API.

Request serializers validate shape only; zone, price and capacity rules
are enforced by CheckoutService. Result serializers render the plain
dataclasses from tickets.types as well as model instances.
"""

from __future__ import annotations

from rest_framework import serializers

from payments.models import PaymentObligation
from tickets.models import GateScan, TicketOrder, TicketOrderItem, TicketPass
from tickets.types import LineItem

# =============================================================================
# Catalog
# =============================================================================


class ZoneAvailabilitySerializer(serializers.Serializer):
    zone = serializers.CharField()
    price = serializers.IntegerField()
    capacity = serializers.IntegerField()
    remaining = serializers.IntegerField()
    gate = serializers.CharField()


class MatchCatalogSerializer(serializers.Serializer):
    match_id = serializers.UUIDField()
    opponent = serializers.CharField()
    kickoff = serializers.DateTimeField()
    venue = serializers.CharField()
    competition = serializers.CharField()
    status = serializers.CharField()
    on_sale = serializers.BooleanField()
    zones = ZoneAvailabilitySerializer(many=True)


# =============================================================================
# Checkout
# =============================================================================


class CheckoutItemSerializer(serializers.Serializer):
    zone = serializers.CharField(max_length=32)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.IntegerField(min_value=0)


class CheckoutRequestSerializer(serializers.Serializer):
    """
    Checkout request body.

    Example:
        {
            "match_id": "6a7f...",
            "channel": "mtn",
            "items": [{"zone": "VIP", "quantity": 2, "unit_price": 25000}]
        }
    """

    match_id = serializers.UUIDField()
    channel = serializers.CharField(required=False, allow_blank=True, default="mtn")
    items = CheckoutItemSerializer(many=True, allow_empty=False)
    contact_name = serializers.CharField(required=False, allow_blank=True, max_length=120)
    contact_phone = serializers.CharField(required=False, allow_blank=True, max_length=32)

    def line_items(self) -> list[LineItem]:
        return [LineItem(**item) for item in self.validated_data["items"]]


class CheckoutResultSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    payment_id = serializers.UUIDField()
    total = serializers.IntegerField()
    payment_code = serializers.CharField()
    expires_at = serializers.DateTimeField()
    channel = serializers.CharField()


# =============================================================================
# Orders
# =============================================================================


class TicketOrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = TicketOrderItem
        fields = ["zone", "quantity", "unit_price", "subtotal"]
        read_only_fields = fields


class TicketPassSerializer(serializers.ModelSerializer):
    """A fan's view of a pass. Token hashes are never exposed."""

    class Meta:
        model = TicketPass
        fields = [
            "id",
            "order",
            "zone",
            "gate",
            "state",
            "consumed_at",
            "rotated_at",
            "transferred_at",
            "has_pending_transfer",
            "created_at",
        ]
        read_only_fields = fields


class OrderPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentObligation
        fields = ["id", "amount", "currency", "status", "confirmed_at", "created_at"]
        read_only_fields = fields


class TicketOrderSerializer(serializers.ModelSerializer):
    """
    Order receipt with items, payments and passes.

    status is the effective status, so a lapsed pending hold reads as
    "expired".
    """

    status = serializers.CharField(source="effective_status", read_only=True)
    opponent = serializers.CharField(source="match.opponent", read_only=True)
    kickoff = serializers.DateTimeField(source="match.kickoff", read_only=True)
    items = TicketOrderItemSerializer(many=True, read_only=True)
    payments = OrderPaymentSerializer(source="obligations", many=True, read_only=True)
    passes = TicketPassSerializer(many=True, read_only=True)

    class Meta:
        model = TicketOrder
        fields = [
            "id",
            "match",
            "opponent",
            "kickoff",
            "status",
            "total",
            "channel",
            "payment_code",
            "expires_at",
            "sms_reference",
            "items",
            "payments",
            "passes",
            "created_at",
        ]
        read_only_fields = fields


# =============================================================================
# Passes
# =============================================================================


class VerifyRequestSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=128, trim_whitespace=True)
    dry_run = serializers.BooleanField(required=False, default=False)
    steward_id = serializers.CharField(required=False, allow_blank=True, max_length=64)


class VerificationResultSerializer(serializers.Serializer):
    status = serializers.CharField()
    pass_id = serializers.UUIDField(allow_null=True)
    order_id = serializers.UUIDField(allow_null=True)
    zone = serializers.CharField(allow_null=True)
    gate = serializers.CharField(allow_null=True)


class RotationResultSerializer(serializers.Serializer):
    pass_id = serializers.UUIDField()
    token = serializers.CharField()
    rotated_at = serializers.DateTimeField()
    valid_for_seconds = serializers.IntegerField()


class TransferRequestSerializer(serializers.Serializer):
    target_user_id = serializers.UUIDField(required=False, allow_null=True)


class TransferInitiatedSerializer(serializers.Serializer):
    pass_id = serializers.UUIDField()
    transfer_code = serializers.CharField()
    target_user_id = serializers.UUIDField(allow_null=True)


class ClaimRequestSerializer(serializers.Serializer):
    transfer_code = serializers.CharField(max_length=16)


class TransferClaimedSerializer(serializers.Serializer):
    pass_id = serializers.UUIDField()
    recipient_user_id = serializers.UUIDField()
    transferred_at = serializers.DateTimeField()


# =============================================================================
# Gate Operations
# =============================================================================


class GateScanSerializer(serializers.ModelSerializer):
    zone = serializers.CharField(source="ticket_pass.zone", read_only=True)
    gate = serializers.CharField(source="ticket_pass.gate", read_only=True, allow_null=True)

    class Meta:
        model = GateScan
        fields = ["id", "ticket_pass", "zone", "gate", "steward_id", "result", "created_at"]
        read_only_fields = fields


class GateMetricsSerializer(serializers.Serializer):
    gate = serializers.CharField()
    total = serializers.IntegerField()
    verified = serializers.IntegerField()
    rejected = serializers.IntegerField()


# =============================================================================
# Sales Analytics
# =============================================================================


class SalesTotalsSerializer(serializers.Serializer):
    revenue = serializers.IntegerField()
    orders = serializers.IntegerField()
    paid = serializers.IntegerField()
    pending = serializers.IntegerField()
    cancelled = serializers.IntegerField()
    expired = serializers.IntegerField()
    average_order_value = serializers.IntegerField()


class MatchSalesSerializer(serializers.Serializer):
    match_id = serializers.UUIDField()
    opponent = serializers.CharField()
    kickoff = serializers.DateTimeField()
    venue = serializers.CharField()
    paid_orders = serializers.IntegerField()
    seats_sold = serializers.IntegerField()
    revenue = serializers.IntegerField()
    capacity = serializers.IntegerField()


class DailySalesSerializer(serializers.Serializer):
    date = serializers.DateField()
    revenue = serializers.IntegerField()
    orders = serializers.IntegerField()


class StatusCountSerializer(serializers.Serializer):
    status = serializers.CharField()
    count = serializers.IntegerField()


class SalesAnalyticsSerializer(serializers.Serializer):
    totals = SalesTotalsSerializer()
    matches = MatchSalesSerializer(many=True)
    recent_sales = DailySalesSerializer(many=True)
    obligation_status = StatusCountSerializer(many=True)
