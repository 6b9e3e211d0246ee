"""
Membership upgrade checkout.

An upgrade creates a pending Membership and a pending membership
obligation; the fan pays the returned code out-of-band and
reconciliation activates the membership.

Usage:
    from memberships.services import MembershipService

    result = MembershipService.start_upgrade(user.id, plan.id, channel="airtel")
    if result.success:
        print(result.data.payment_code)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from django.db.models import Q
from django.utils import timezone

from authentication.models import User
from core.services import BaseService, ServiceResult
from memberships.models import Membership, MembershipPlan, MembershipStatus
from payments.codes import build_payment_code, normalize_channel
from payments.metadata import ObligationMetadata
from payments.models import PaymentObligation
from payments.state_machines import ObligationKind, ObligationStatus

# Advisory window shown to the fan; pending upgrades are not expired server-side.
UPGRADE_PAYMENT_WINDOW = timedelta(minutes=5)


@dataclass
class UpgradeResult:
    membership_id: uuid.UUID
    payment_id: uuid.UUID | None
    status: str
    amount: int
    payment_code: str | None
    expires_at: datetime | None
    message: str


class MembershipService(BaseService):
    """
    Service for membership plans and upgrades.

    Error codes:
        PLAN_NOT_FOUND
    """

    @classmethod
    def list_plans(cls):
        """Purchasable plans, cheapest first."""
        return MembershipPlan.objects.filter(is_active=True).order_by("price")

    @classmethod
    def get_status(cls, user_id: uuid.UUID) -> Membership | None:
        """The user's current membership: active first, else most recent pending."""
        return (
            Membership.objects.select_related("plan")
            .filter(user_id=user_id)
            .filter(Q(status=MembershipStatus.ACTIVE) | Q(status=MembershipStatus.PENDING))
            .order_by("status", "-created_at")
            .first()
        )

    @classmethod
    def start_upgrade(
        cls,
        user_id: uuid.UUID,
        plan_id: uuid.UUID,
        channel: str | None = None,
    ) -> ServiceResult[UpgradeResult]:
        """
        Start a membership purchase.

        An existing pending or active membership for the same plan is
        returned unchanged instead of creating a second one.
        """
        channel = normalize_channel(channel)
        plan = MembershipPlan.objects.filter(id=plan_id, is_active=True).first()
        if plan is None:
            return ServiceResult.failure("Plan not found", error_code="PLAN_NOT_FOUND")

        with cls.atomic():
            user, _ = User.objects.ensure_exists(user_id)

            existing = (
                Membership.objects.select_for_update()
                .filter(
                    user=user,
                    plan=plan,
                    status__in=[MembershipStatus.PENDING, MembershipStatus.ACTIVE],
                )
                .order_by("-created_at")
                .first()
            )
            if existing is not None:
                return ServiceResult.success(cls._existing_result(existing, plan, channel))

            membership = Membership.objects.create(user=user, plan=plan)
            obligation = PaymentObligation.objects.create(
                kind=ObligationKind.MEMBERSHIP,
                amount=plan.price,
                membership=membership,
                metadata=ObligationMetadata.for_kind(
                    ObligationKind.MEMBERSHIP,
                    channel=channel,
                    plan_id=str(plan.id),
                ).to_json(),
            )

        cls.get_logger().info(
            "Started membership upgrade",
            extra={
                "membership_id": str(membership.id),
                "payment_id": str(obligation.id),
                "plan_id": str(plan.id),
                "channel": channel,
            },
        )
        return ServiceResult.success(
            UpgradeResult(
                membership_id=membership.id,
                payment_id=obligation.id,
                status=membership.status,
                amount=plan.price,
                payment_code=build_payment_code(channel, plan.price),
                expires_at=timezone.now() + UPGRADE_PAYMENT_WINDOW,
                message="Membership payment pending",
            )
        )

    @classmethod
    def _existing_result(cls, membership: Membership, plan: MembershipPlan, channel: str) -> UpgradeResult:
        if membership.status == MembershipStatus.ACTIVE:
            return UpgradeResult(
                membership_id=membership.id,
                payment_id=None,
                status=membership.status,
                amount=plan.price,
                payment_code=None,
                expires_at=membership.expires_at,
                message="Membership already active",
            )

        obligation = (
            membership.obligations.filter(status=ObligationStatus.PENDING).order_by("-created_at").first()
        )
        if obligation is not None:
            channel = obligation.meta.details.channel or channel
        return UpgradeResult(
            membership_id=membership.id,
            payment_id=obligation.id if obligation else None,
            status=membership.status,
            amount=plan.price,
            payment_code=build_payment_code(channel, plan.price),
            expires_at=None,
            message="Membership payment pending",
        )
