"""
TicketOrder and TicketOrderItem models.

An order holds seats from creation until expires_at. Nothing sweeps
lapsed orders: held-seat totals and effective_status compare expires_at
with the current time whenever they are read.

Usage:
    from tickets.models import TicketOrder, TicketOrderItem

    held = TicketOrderItem.objects.for_match(match.id).holding_seats().by_zone()
    # {"VIP": 149}

    order.mark_paid(reference="MP240118.1234.A12345")
    order.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q, Sum
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import PaymentChannel
from tickets.state_machines import TicketOrderStatus


class TicketOrder(UUIDPrimaryKeyMixin, BaseModel):
    """
    A fan's ticket order for one match.

    State Flow:
        PENDING -> PAID       (payment reconciled)
        PENDING -> CANCELLED  (owner cancelled)

    Fields:
        match: Match the seats are for
        user: Purchaser; null for anonymous checkouts
        total: Sum of unit_price x quantity, whole RWF
        status: Stored FSM state (never "expired")
        expires_at: End of the seat hold
        payment_code: USSD dial string the fan pays with
        channel: Mobile money operator the code targets
        sms_reference: Reference of the payment that confirmed the order
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    match = models.ForeignKey(
        "tickets.Match",
        on_delete=models.PROTECT,
        related_name="ticket_orders",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ticket_orders",
        help_text="Purchaser (null for anonymous checkouts)",
    )

    # ==========================================================================
    # Amount & Payment
    # ==========================================================================

    total = models.PositiveIntegerField(help_text="Order total in whole RWF")
    payment_code = models.CharField(max_length=64, help_text="USSD payment dial string")
    channel = models.CharField(
        max_length=10,
        choices=PaymentChannel.choices,
        default=PaymentChannel.MTN,
    )
    sms_reference = models.CharField(
        max_length=128,
        blank=True,
        default="",
        help_text="Reference of the confirming payment notification",
    )

    # ==========================================================================
    # State & Hold
    # ==========================================================================

    status = FSMField(
        default=TicketOrderStatus.PENDING,
        choices=TicketOrderStatus.choices,
        db_index=True,
        help_text="Stored order status (managed by FSM)",
    )
    expires_at = models.DateTimeField(db_index=True, help_text="End of the seat hold")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Ticket Order"
        verbose_name_plural = "Ticket Orders"
        indexes = [
            models.Index(fields=["match", "status"]),
            models.Index(fields=["user", "created_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gt=0),
                name="ticket_order_total_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"TicketOrder({self.id}, {self.status}, {self.total} RWF)"

    @property
    def is_expired(self) -> bool:
        """True when the order is pending and its hold has lapsed."""
        return self.status == TicketOrderStatus.PENDING and self.expires_at <= timezone.now()

    @property
    def effective_status(self) -> str:
        if self.is_expired:
            return TicketOrderStatus.EXPIRED
        return self.status

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    def hold_is_live(self) -> bool:
        return self.expires_at > timezone.now()

    @transition(
        field=status,
        source=TicketOrderStatus.PENDING,
        target=TicketOrderStatus.PAID,
        conditions=[hold_is_live],
    )
    def mark_paid(self, reference: str = ""):
        """
        Transition: PENDING -> PAID

        Only while the hold is live. Once it lapses the seats are back on
        sale, so a late payment is left for manual review instead.
        """
        self.sms_reference = reference or ""

    @transition(field=status, source=TicketOrderStatus.PENDING, target=TicketOrderStatus.CANCELLED)
    def cancel(self):
        """Transition: PENDING -> CANCELLED"""
        pass


class TicketOrderItemQuerySet(models.QuerySet):
    """Seat accounting queries."""

    def for_match(self, match_id):
        return self.filter(order__match_id=match_id)

    def holding_seats(self, now=None):
        """
        Items whose order currently holds seats: paid, or pending with an
        unexpired hold.
        """
        now = now or timezone.now()
        return self.filter(
            Q(order__status=TicketOrderStatus.PAID)
            | Q(order__status=TicketOrderStatus.PENDING, order__expires_at__gt=now)
        )

    def by_zone(self) -> dict[str, int]:
        """Sum quantities per zone."""
        rows = self.order_by().values("zone").annotate(held=Sum("quantity"))
        return {row["zone"]: row["held"] or 0 for row in rows}


class TicketOrderItem(UUIDPrimaryKeyMixin, BaseModel):
    """One zone line of a ticket order."""

    order = models.ForeignKey(
        TicketOrder,
        on_delete=models.CASCADE,
        related_name="items",
    )
    zone = models.CharField(max_length=32, db_index=True)
    unit_price = models.PositiveIntegerField(help_text="Canonical zone price at checkout, whole RWF")
    quantity = models.PositiveIntegerField()

    objects = TicketOrderItemQuerySet.as_manager()

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="ticket_order_item_quantity_min_1",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.zone} @ {self.unit_price}"

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity
