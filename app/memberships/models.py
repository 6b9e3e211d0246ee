"""
Membership models.

- MembershipPlan: A purchasable tier with price and validity length
- Membership: A user's membership in a plan

State Flow (Membership):
    PENDING -> ACTIVE -> EXPIRED
    PENDING -> CANCELLED
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class MembershipStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACTIVE = "active", "Active"
    EXPIRED = "expired", "Expired"
    CANCELLED = "cancelled", "Cancelled"


class MembershipPlan(UUIDPrimaryKeyMixin, BaseModel):
    """
    A membership tier.

    Fields:
        name: Display name ("Gikundiro Gold")
        price: Whole RWF
        duration_days: Validity length; null falls back to
            settings.MEMBERSHIP_VALIDITY_DAYS
        is_active: Whether the plan can be purchased
    """

    name = models.CharField(max_length=120)
    price = models.PositiveIntegerField(help_text="Plan price in whole RWF")
    duration_days = models.PositiveIntegerField(null=True, blank=True)
    perks = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["price"]
        verbose_name = "Membership Plan"
        verbose_name_plural = "Membership Plans"

    def __str__(self) -> str:
        return f"{self.name} ({self.price} RWF)"

    @property
    def validity_days(self) -> int:
        return self.duration_days or settings.MEMBERSHIP_VALIDITY_DAYS


class Membership(UUIDPrimaryKeyMixin, BaseModel):
    """A user's membership in one plan."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    plan = models.ForeignKey(
        MembershipPlan,
        on_delete=models.PROTECT,
        related_name="memberships",
    )
    status = FSMField(
        default=MembershipStatus.PENDING,
        choices=MembershipStatus.choices,
        db_index=True,
    )
    started_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "plan", "status"]),
        ]

    def __str__(self) -> str:
        return f"Membership({self.user_id}, {self.plan_id}, {self.status})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=status, source=MembershipStatus.PENDING, target=MembershipStatus.ACTIVE)
    def activate(self):
        """
        Transition: PENDING -> ACTIVE

        The validity window starts now and lasts the plan's duration.
        """
        now = timezone.now()
        self.started_at = now
        self.expires_at = now + timedelta(days=self.plan.validity_days)

    @transition(field=status, source=MembershipStatus.PENDING, target=MembershipStatus.CANCELLED)
    def cancel(self):
        pass

    @transition(field=status, source=MembershipStatus.ACTIVE, target=MembershipStatus.EXPIRED)
    def expire(self):
        pass
