"""
DRF serializers for the memberships API.
"""

from __future__ import annotations

from rest_framework import serializers

from memberships.models import Membership, MembershipPlan


class MembershipPlanSerializer(serializers.ModelSerializer):
    class Meta:
        model = MembershipPlan
        fields = ["id", "name", "price", "validity_days", "perks"]
        read_only_fields = fields


class MembershipSerializer(serializers.ModelSerializer):
    plan = MembershipPlanSerializer(read_only=True)

    class Meta:
        model = Membership
        fields = ["id", "plan", "status", "started_at", "expires_at", "created_at"]
        read_only_fields = fields


class UpgradeRequestSerializer(serializers.Serializer):
    plan_id = serializers.UUIDField()
    channel = serializers.CharField(required=False, allow_blank=True, default="mtn")


class UpgradeResultSerializer(serializers.Serializer):
    membership_id = serializers.UUIDField()
    payment_id = serializers.UUIDField(allow_null=True)
    status = serializers.CharField()
    amount = serializers.IntegerField()
    payment_code = serializers.CharField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    message = serializers.CharField()
