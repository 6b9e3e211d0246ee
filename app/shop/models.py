"""
Shop order model.

State Flow:
    PENDING -> CONFIRMED (payment reconciled)
    PENDING -> CANCELLED
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class ShopOrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    CANCELLED = "cancelled", "Cancelled"


class ShopOrder(UUIDPrimaryKeyMixin, BaseModel):
    """A merchandise order awaiting or holding payment."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="shop_orders",
    )
    total = models.PositiveIntegerField(help_text="Order total in whole RWF")
    items = models.JSONField(default=list, blank=True, help_text="Line item snapshot from the storefront")
    status = FSMField(
        default=ShopOrderStatus.PENDING,
        choices=ShopOrderStatus.choices,
        db_index=True,
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Shop Order"
        verbose_name_plural = "Shop Orders"

    def __str__(self) -> str:
        return f"ShopOrder({self.id}, {self.status}, {self.total} RWF)"

    @transition(field=status, source=ShopOrderStatus.PENDING, target=ShopOrderStatus.CONFIRMED)
    def confirm(self, when=None):
        self.confirmed_at = when or timezone.now()

    @transition(field=status, source=ShopOrderStatus.PENDING, target=ShopOrderStatus.CANCELLED)
    def cancel(self):
        pass
