"""
TicketPass and GateScan models.

A pass stores only sha256(token). The raw token leaves the system once,
in the issuance result, and is never recoverable from the database.

Usage:
    from tickets.models import TicketPass

    ticket_pass = TicketPass.objects.get(token_hash=hash_string(token))
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.exceptions import ConflictError
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from tickets.state_machines import GateScanResult, TicketPassState


class TicketPass(UUIDPrimaryKeyMixin, BaseModel):
    """
    One redeemable credential per purchased seat.

    State Flow:
        ACTIVE -> USED      (gate verification, conditional UPDATE)
        ACTIVE -> REFUNDED  (administrative refund)

    USED and REFUNDED are terminal. Rotation and transfer mutate an
    ACTIVE pass without changing its state.

    Fields:
        order: Paid order the pass was issued for
        zone / gate: Seating zone and entry gate
        token_hash: sha256 hex of the current redemption token
        holder: User currently holding the pass
        transfer_token_hash: sha256 hex of a pending transfer code
        transfer_target: Recipient a pending transfer is locked to
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.ForeignKey(
        "tickets.TicketOrder",
        on_delete=models.PROTECT,
        related_name="passes",
    )
    holder = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ticket_passes",
        help_text="User currently holding the pass",
    )

    # ==========================================================================
    # Seat
    # ==========================================================================

    zone = models.CharField(max_length=32)
    gate = models.CharField(max_length=64, null=True, blank=True)

    # ==========================================================================
    # Redemption Token & State
    # ==========================================================================

    token_hash = models.CharField(max_length=64, unique=True)
    state = FSMField(
        default=TicketPassState.ACTIVE,
        choices=TicketPassState.choices,
        db_index=True,
        help_text="Pass state (managed by FSM and conditional updates)",
    )
    consumed_at = models.DateTimeField(null=True, blank=True)
    rotated_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Transfer
    # ==========================================================================

    transfer_token_hash = models.CharField(max_length=64, null=True, blank=True)
    transfer_target = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="incoming_pass_transfers",
    )
    transferred_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at"]
        verbose_name = "Ticket Pass"
        verbose_name_plural = "Ticket Passes"
        indexes = [
            models.Index(fields=["holder", "state"]),
        ]

    def __str__(self) -> str:
        return f"TicketPass({self.id}, {self.zone}, {self.state})"

    @property
    def is_active(self) -> bool:
        return self.state == TicketPassState.ACTIVE

    @property
    def has_pending_transfer(self) -> bool:
        return bool(self.transfer_token_hash)

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=state, source=TicketPassState.ACTIVE, target=TicketPassState.REFUNDED)
    def refund(self):
        """
        Transition: ACTIVE -> REFUNDED

        Any pending transfer is dropped with it.
        """
        self.refunded_at = timezone.now()
        self.transfer_token_hash = None
        self.transfer_target = None


class GateScan(UUIDPrimaryKeyMixin, BaseModel):
    """
    Append-only record of one redemption attempt at a gate.

    Rows are never updated; saving an existing scan raises ConflictError.
    """

    ticket_pass = models.ForeignKey(
        TicketPass,
        on_delete=models.PROTECT,
        related_name="scans",
    )
    steward_id = models.CharField(max_length=64, blank=True, default="")
    result = models.CharField(max_length=16, choices=GateScanResult.choices, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Gate Scan"
        verbose_name_plural = "Gate Scans"

    def __str__(self) -> str:
        return f"GateScan({self.ticket_pass_id}, {self.result})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ConflictError(
                "Gate scans are append-only",
                error_code="GATE_SCAN_IMMUTABLE",
                details={"scan_id": str(self.pk)},
            )
        super().save(*args, **kwargs)
