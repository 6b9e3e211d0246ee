"""
Fundraising models.

- FundraisingProject: A campaign with a goal and a running total
- Donation: One pledged donation, confirmed when its payment reconciles

State Flow (Donation):
    PENDING -> CONFIRMED
    PENDING -> FAILED
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class DonationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    FAILED = "failed", "Failed"


class FundraisingProject(UUIDPrimaryKeyMixin, BaseModel):
    """A fundraising campaign."""

    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    goal = models.PositiveBigIntegerField(help_text="Target in whole RWF")
    raised = models.PositiveBigIntegerField(default=0, help_text="Confirmed donations in whole RWF")
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title


class Donation(UUIDPrimaryKeyMixin, BaseModel):
    """A donation to a project."""

    project = models.ForeignKey(
        FundraisingProject,
        on_delete=models.PROTECT,
        related_name="donations",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="donations",
    )
    amount = models.PositiveIntegerField(help_text="Donation in whole RWF")
    status = FSMField(
        default=DonationStatus.PENDING,
        choices=DonationStatus.choices,
        db_index=True,
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Donation({self.id}, {self.amount} RWF, {self.status})"

    @transition(field=status, source=DonationStatus.PENDING, target=DonationStatus.CONFIRMED)
    def confirm(self, when=None):
        """
        Transition: PENDING -> CONFIRMED

        Adds the amount to the project total with an F() update so
        concurrent confirmations do not lose increments.
        """
        self.confirmed_at = when or timezone.now()
        FundraisingProject.objects.filter(pk=self.project_id).update(raised=F("raised") + self.amount)

    @transition(field=status, source=DonationStatus.PENDING, target=DonationStatus.FAILED)
    def fail(self):
        pass
