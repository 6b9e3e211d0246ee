"""
PaymentObligation model.

An obligation is the system's record of money it expects for exactly one
purchasable entity. Checkout creates it pending; reconciliation confirms
it or routes it to manual review; cancelling the order fails it.

Usage:
    obligation = PaymentObligation.objects.create(
        kind=ObligationKind.TICKET,
        amount=order.total,
        ticket_order=order,
        metadata=ObligationMetadata.for_kind(ObligationKind.TICKET, channel="mtn").to_json(),
    )

    obligation.confirm(reference=parsed.reference)
    obligation.parsed_payment = parsed
    obligation.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.metadata import ObligationMetadata
from payments.state_machines import ObligationKind, ObligationStatus

# Entity foreign key on PaymentObligation for each kind
ENTITY_FIELD_BY_KIND = {
    ObligationKind.TICKET: "ticket_order",
    ObligationKind.MEMBERSHIP: "membership",
    ObligationKind.SHOP: "shop_order",
    ObligationKind.DONATION: "donation",
}


class PaymentObligation(UUIDPrimaryKeyMixin, BaseModel):
    """
    Expected payment for one domain entity.

    State Flow:
        PENDING -> CONFIRMED
        PENDING -> MANUAL_REVIEW -> CONFIRMED
        PENDING -> FAILED
        MANUAL_REVIEW -> FAILED  (unmatched bucket released by an operator)

    Invariants:
        - At most one ParsedPayment per obligation and vice versa
          (OneToOneField).
        - CONFIRMED has no outgoing transition.
        - At most one entity FK is set; synthetic manual-review rows
          created for unmatched payments have none.
    """

    # ==========================================================================
    # Kind & Amount
    # ==========================================================================

    kind = models.CharField(
        max_length=16,
        choices=ObligationKind.choices,
        db_index=True,
    )
    amount = models.PositiveIntegerField(help_text="Expected amount in whole currency units")
    currency = models.CharField(max_length=3, default="RWF")

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=ObligationStatus.PENDING,
        choices=ObligationStatus.choices,
        db_index=True,
        help_text="Obligation status (managed by FSM)",
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Resolution
    # ==========================================================================

    parsed_payment = models.OneToOneField(
        "payments.ParsedPayment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="obligation",
        help_text="Payment notification that resolved or flagged this obligation",
    )

    # ==========================================================================
    # Domain Entity (exactly one per kind)
    # ==========================================================================

    ticket_order = models.ForeignKey(
        "tickets.TicketOrder",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="obligations",
    )
    membership = models.ForeignKey(
        "memberships.Membership",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="obligations",
    )
    shop_order = models.ForeignKey(
        "shop.ShopOrder",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="obligations",
    )
    donation = models.ForeignKey(
        "fundraising.Donation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="obligations",
    )

    # Read and written through .meta only
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Obligation"
        verbose_name_plural = "Payment Obligations"
        indexes = [
            models.Index(fields=["kind", "status", "amount", "created_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_obligation_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"PaymentObligation({self.id}, {self.kind}, {self.status}, {self.amount} {self.currency})"

    # ==========================================================================
    # Typed Metadata & Entity Access
    # ==========================================================================

    @property
    def meta(self) -> ObligationMetadata:
        return ObligationMetadata.from_json(self.kind, self.metadata)

    @meta.setter
    def meta(self, value: ObligationMetadata) -> None:
        self.metadata = value.to_json()

    @property
    def entity_field(self) -> str:
        return ENTITY_FIELD_BY_KIND[self.kind]

    @property
    def entity_id(self):
        return getattr(self, f"{self.entity_field}_id")

    @property
    def has_entity(self) -> bool:
        """False for the synthetic rows that hold unmatched payments."""
        return self.entity_id is not None

    def _update_meta(self, **changes) -> None:
        meta = self.meta
        for key, value in changes.items():
            setattr(meta, key, value)
        self.meta = meta

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=[ObligationStatus.PENDING, ObligationStatus.MANUAL_REVIEW],
        target=ObligationStatus.CONFIRMED,
    )
    def confirm(self, reference: str | None = None):
        """
        Transition: PENDING/MANUAL_REVIEW -> CONFIRMED

        Stamps confirmed_at and records the payment reference.
        """
        self.confirmed_at = timezone.now()
        self._update_meta(reference=reference, manual_reason=None)

    @transition(
        field=status,
        source=ObligationStatus.PENDING,
        target=ObligationStatus.MANUAL_REVIEW,
    )
    def flag_for_review(self, reason: str, reference: str | None = None):
        """Transition: PENDING -> MANUAL_REVIEW"""
        self._update_meta(reference=reference, manual_reason=reason)

    @transition(
        field=status,
        source=ObligationStatus.PENDING,
        target=ObligationStatus.FAILED,
    )
    def fail(self, cancelled_by: str | None = None):
        """
        Transition: PENDING -> FAILED

        Failed obligations are no longer reconciliation candidates.
        """
        self._update_meta(cancelled_by=cancelled_by)

    @transition(
        field=status,
        source=ObligationStatus.MANUAL_REVIEW,
        target=ObligationStatus.FAILED,
    )
    def release(self, released_by: str = "operator"):
        """
        Transition: MANUAL_REVIEW -> FAILED

        Used for unmatched-payment buckets once an operator attaches the
        payment to a real obligation. The caller unlinks parsed_payment.
        """
        self._update_meta(cancelled_by=released_by)
