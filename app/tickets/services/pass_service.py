"""
Pass lifecycle and gate verification.

Passes are minted once per purchased seat when an order is paid. Each
pass stores only sha256(token); the raw token is returned once, from
issuance or rotation, for the fan's QR credential.

State Machine:
    active -> used      verify_pass_token (conditional UPDATE, one winner)
    active -> refunded  refund_pass
    used / refunded are terminal

Usage:
    from tickets.services import PassService

    issued = PassService.issue_passes_for_order(order.id)
    result = PassService.verify_pass_token(issued[0].token, steward_id="gate-3")
    result.status  # "verified"
"""

from __future__ import annotations

import hmac
import uuid
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Count, Q
from django.utils import timezone
from django_fsm import TransitionNotAllowed

from authentication.models import User
from core.helpers import generate_token, hash_string
from core.services import BaseService, ServiceResult
from payments.exceptions import InvalidStateTransitionError
from realtime.events import RealtimeService
from tickets.exceptions import OrderNotFoundError, OrderNotPaidError
from tickets.models import GateScan, TicketOrder, TicketPass
from tickets.state_machines import (
    GateScanResult,
    PassVerificationStatus,
    TicketOrderStatus,
    TicketPassState,
)
from tickets.types import (
    GateMetrics,
    IssuedPass,
    RotationResult,
    TransferClaimed,
    TransferInitiated,
    VerificationResult,
)
from tickets.zones import get_zone

if TYPE_CHECKING:
    from django.db.models import QuerySet

# Pass tokens: 8 random bytes (16 hex chars). Transfer codes: 3 bytes,
# shown to fans as 6 uppercase hex chars.
PASS_TOKEN_BYTES = 8
TRANSFER_CODE_BYTES = 3
UNASSIGNED_GATE = "Unassigned"


class PassService(BaseService):
    """
    Service for issuing, verifying, rotating and transferring passes.

    Error codes:
        PASS_NOT_FOUND, PASS_NOT_ACTIVE, TRANSFER_NOT_PENDING,
        INVALID_TRANSFER_CODE, TRANSFER_LOCKED, TRANSFER_TO_SELF
    """

    # =========================================================================
    # Issuance
    # =========================================================================

    @classmethod
    def issue_passes_for_order(cls, order_id: uuid.UUID) -> list[IssuedPass]:
        """
        Mint one pass per seat of a paid order.

        Idempotent: if the order already has passes, returns [].

        Raises:
            OrderNotFoundError: Order does not exist
            OrderNotPaidError: Order is not paid
        """
        with transaction.atomic():
            order = TicketOrder.objects.select_for_update().filter(id=order_id).first()
            if order is None:
                raise OrderNotFoundError(
                    f"TicketOrder {order_id} not found",
                    details={"order_id": str(order_id)},
                )
            if order.status != TicketOrderStatus.PAID:
                raise OrderNotPaidError(
                    f"TicketOrder {order_id} is {order.status}, passes are only issued for paid orders",
                    details={"order_id": str(order_id), "status": order.status},
                )
            if order.passes.exists():
                cls.get_logger().info(
                    "Passes already issued, skipping",
                    extra={"order_id": str(order_id)},
                )
                return []

            issued: list[IssuedPass] = []
            passes: list[TicketPass] = []
            for item in order.items.all():
                zone = get_zone(item.zone)
                gate = zone.gate if zone else item.zone
                for _ in range(item.quantity):
                    token = generate_token(PASS_TOKEN_BYTES)
                    ticket_pass = TicketPass(
                        order=order,
                        zone=item.zone,
                        gate=gate,
                        token_hash=hash_string(token),
                        holder_id=order.user_id,
                    )
                    passes.append(ticket_pass)
                    issued.append(IssuedPass(pass_id=ticket_pass.id, zone=item.zone, gate=gate, token=token))
            TicketPass.objects.bulk_create(passes)

        cls.get_logger().info(
            "Issued passes",
            extra={"order_id": str(order_id), "count": len(issued)},
        )
        return issued

    # =========================================================================
    # Gate Verification
    # =========================================================================

    @classmethod
    def verify_pass_token(
        cls,
        token: str,
        dry_run: bool = False,
        steward_id: str | None = None,
    ) -> VerificationResult:
        """
        Verify a presented token and, unless dry_run, consume the pass.

        Returns:
            VerificationResult with status not_found, used, refunded or
            verified. A rejected scan of a used/refunded pass is logged
            and broadcast but never mutates the pass.
        """
        ticket_pass = (
            TicketPass.objects.select_related("order")
            .filter(token_hash=hash_string((token or "").strip()))
            .first()
        )
        if ticket_pass is None:
            return VerificationResult(status=PassVerificationStatus.NOT_FOUND)

        if ticket_pass.state != TicketPassState.ACTIVE:
            return cls._reject_scan(ticket_pass, dry_run, steward_id)

        if dry_run:
            return cls._verified(ticket_pass)

        now = timezone.now()
        with transaction.atomic():
            won = TicketPass.objects.filter(
                pk=ticket_pass.pk,
                state=TicketPassState.ACTIVE,
            ).update(state=TicketPassState.USED, consumed_at=now, updated_at=now)
            if won:
                GateScan.objects.create(
                    ticket_pass=ticket_pass,
                    steward_id=steward_id or "",
                    result=GateScanResult.VERIFIED,
                )

        if not won:
            # Another scan consumed it between our read and the update
            ticket_pass.refresh_from_db()
            return cls._reject_scan(ticket_pass, dry_run, steward_id)

        cls.get_logger().info(
            "Pass verified",
            extra={"pass_id": str(ticket_pass.id), "gate": ticket_pass.gate, "steward_id": steward_id},
        )
        cls._publish_scan(ticket_pass, GateScanResult.VERIFIED, steward_id)
        return cls._verified(ticket_pass)

    @classmethod
    def _verified(cls, ticket_pass: TicketPass) -> VerificationResult:
        return VerificationResult(
            status=PassVerificationStatus.VERIFIED,
            pass_id=ticket_pass.id,
            order_id=ticket_pass.order_id,
            zone=ticket_pass.zone,
            gate=ticket_pass.gate,
        )

    @classmethod
    def _reject_scan(cls, ticket_pass: TicketPass, dry_run: bool, steward_id: str | None) -> VerificationResult:
        result = ticket_pass.state  # used | refunded
        if not dry_run:
            GateScan.objects.create(
                ticket_pass=ticket_pass,
                steward_id=steward_id or "",
                result=result,
            )
            cls.get_logger().warning(
                "Rejected gate scan",
                extra={"pass_id": str(ticket_pass.id), "result": result, "steward_id": steward_id},
            )
            cls._publish_scan(ticket_pass, result, steward_id)
        return VerificationResult(
            status=result,
            pass_id=ticket_pass.id,
            zone=ticket_pass.zone,
            gate=ticket_pass.gate,
        )

    @classmethod
    def _publish_scan(cls, ticket_pass: TicketPass, result: str, steward_id: str | None) -> None:
        match_id = ticket_pass.order.match_id
        RealtimeService.notify_gate_scan(
            pass_id=ticket_pass.id,
            result=result,
            gate=ticket_pass.gate,
            steward_id=steward_id,
            match_id=match_id,
        )
        try:
            metrics = cls.gate_metrics_for_match(match_id)
        except DatabaseError:
            cls.get_logger().exception(
                "Failed to read gate metrics",
                extra={"match_id": str(match_id)},
            )
            return
        RealtimeService.notify_gate_metrics(match_id, [vars(m) for m in metrics])

    @classmethod
    def gate_metrics_for_match(cls, match_id: uuid.UUID) -> list[GateMetrics]:
        """Scan totals per gate for one match. Passes without a gate count as "Unassigned"."""
        rows = (
            GateScan.objects.filter(ticket_pass__order__match_id=match_id)
            .order_by()
            .values("ticket_pass__gate")
            .annotate(
                total=Count("id"),
                verified=Count("id", filter=Q(result=GateScanResult.VERIFIED)),
            )
        )
        metrics = [
            GateMetrics(
                gate=row["ticket_pass__gate"] or UNASSIGNED_GATE,
                total=row["total"],
                verified=row["verified"],
                rejected=row["total"] - row["verified"],
            )
            for row in rows
        ]
        return sorted(metrics, key=lambda m: m.gate)

    @classmethod
    def list_gate_history(cls, limit: int = 50) -> QuerySet[GateScan]:
        """Most recent scans first, with pass and order preloaded."""
        return GateScan.objects.select_related("ticket_pass__order").order_by("-created_at")[:limit]

    # =========================================================================
    # Holder Operations
    # =========================================================================

    @classmethod
    def list_active_passes(cls, user_id: uuid.UUID) -> QuerySet[TicketPass]:
        """Active passes currently held by a user."""
        return (
            TicketPass.objects.select_related("order__match")
            .filter(holder_id=user_id, state=TicketPassState.ACTIVE, order__status=TicketOrderStatus.PAID)
            .order_by("-updated_at")
        )

    @classmethod
    def _locked_pass_for_holder(cls, pass_id, owner_id) -> TicketPass | ServiceResult:
        """Lock a pass held by owner_id; must be called inside a transaction."""
        ticket_pass = TicketPass.objects.select_for_update().filter(id=pass_id).first()
        if ticket_pass is None or ticket_pass.holder_id is None or str(ticket_pass.holder_id) != str(owner_id):
            return ServiceResult.failure("Pass not found", error_code="PASS_NOT_FOUND")
        if ticket_pass.state != TicketPassState.ACTIVE:
            return ServiceResult.failure(
                f"Pass is {ticket_pass.state}",
                error_code="PASS_NOT_ACTIVE",
            )
        return ticket_pass

    @classmethod
    def rotate_pass_token(cls, pass_id: uuid.UUID, owner_id: uuid.UUID) -> ServiceResult[RotationResult]:
        """
        Replace the pass token. The previous token stops verifying at once.

        valid_for_seconds is advisory, for the client's QR refresh timer;
        the server does not expire tokens.
        """
        with cls.atomic():
            ticket_pass = cls._locked_pass_for_holder(pass_id, owner_id)
            if isinstance(ticket_pass, ServiceResult):
                return ticket_pass

            token = generate_token(PASS_TOKEN_BYTES)
            ticket_pass.token_hash = hash_string(token)
            ticket_pass.rotated_at = timezone.now()
            ticket_pass.save(update_fields=["token_hash", "rotated_at", "updated_at"])

        cls.get_logger().info("Rotated pass token", extra={"pass_id": str(ticket_pass.id)})
        return ServiceResult.success(
            RotationResult(
                pass_id=ticket_pass.id,
                token=token,
                rotated_at=ticket_pass.rotated_at,
                valid_for_seconds=settings.PASS_ROTATION_VALID_SECONDS,
            )
        )

    @classmethod
    def initiate_transfer(
        cls,
        pass_id: uuid.UUID,
        owner_id: uuid.UUID,
        target_user_id: uuid.UUID | None = None,
    ) -> ServiceResult[TransferInitiated]:
        """
        Start a transfer: generate a one-time code, optionally locked to a recipient.

        A new call replaces any transfer already pending on the pass.
        """
        if target_user_id is not None and str(target_user_id) == str(owner_id):
            return ServiceResult.failure(
                "Cannot transfer a pass to yourself",
                error_code="TRANSFER_TO_SELF",
            )

        with cls.atomic():
            ticket_pass = cls._locked_pass_for_holder(pass_id, owner_id)
            if isinstance(ticket_pass, ServiceResult):
                return ticket_pass

            target = None
            if target_user_id is not None:
                target, _ = User.objects.ensure_exists(target_user_id)

            transfer_code = generate_token(TRANSFER_CODE_BYTES).upper()
            ticket_pass.transfer_token_hash = hash_string(transfer_code)
            ticket_pass.transfer_target = target
            ticket_pass.transferred_at = None
            ticket_pass.save(
                update_fields=["transfer_token_hash", "transfer_target", "transferred_at", "updated_at"]
            )

        cls.get_logger().info(
            "Initiated pass transfer",
            extra={"pass_id": str(ticket_pass.id), "locked": target is not None},
        )
        return ServiceResult.success(
            TransferInitiated(
                pass_id=ticket_pass.id,
                transfer_code=transfer_code,
                target_user_id=target.id if target else None,
            )
        )

    @classmethod
    def claim_transfer(
        cls,
        pass_id: uuid.UUID,
        transfer_code: str,
        recipient_id: uuid.UUID,
    ) -> ServiceResult[TransferClaimed]:
        """
        Claim a pending transfer. The code works once.

        The code is compared case-insensitively.
        """
        with cls.atomic():
            ticket_pass = TicketPass.objects.select_for_update().filter(id=pass_id).first()
            if ticket_pass is None:
                return ServiceResult.failure("Pass not found", error_code="PASS_NOT_FOUND")
            if not ticket_pass.has_pending_transfer:
                return ServiceResult.failure(
                    "No transfer is pending for this pass",
                    error_code="TRANSFER_NOT_PENDING",
                )
            if ticket_pass.state != TicketPassState.ACTIVE:
                return ServiceResult.failure(
                    f"Pass is {ticket_pass.state}",
                    error_code="PASS_NOT_ACTIVE",
                )

            presented = hash_string((transfer_code or "").strip().upper())
            if not hmac.compare_digest(presented, ticket_pass.transfer_token_hash):
                cls.get_logger().warning(
                    "Invalid transfer code",
                    extra={"pass_id": str(ticket_pass.id)},
                )
                return ServiceResult.failure("Invalid transfer code", error_code="INVALID_TRANSFER_CODE")

            if ticket_pass.transfer_target_id is not None and str(ticket_pass.transfer_target_id) != str(recipient_id):
                return ServiceResult.failure(
                    "Transfer is locked to another recipient",
                    error_code="TRANSFER_LOCKED",
                )

            recipient, _ = User.objects.ensure_exists(recipient_id)
            previous_holder_id = ticket_pass.holder_id
            ticket_pass.holder = recipient
            ticket_pass.transfer_target = recipient
            ticket_pass.transferred_at = timezone.now()
            ticket_pass.transfer_token_hash = None
            ticket_pass.save(
                update_fields=[
                    "holder",
                    "transfer_target",
                    "transferred_at",
                    "transfer_token_hash",
                    "updated_at",
                ]
            )

        cls.get_logger().info(
            "Claimed pass transfer",
            extra={
                "pass_id": str(ticket_pass.id),
                "from_user_id": str(previous_holder_id),
                "to_user_id": str(recipient.id),
            },
        )
        return ServiceResult.success(
            TransferClaimed(
                pass_id=ticket_pass.id,
                recipient_user_id=recipient.id,
                transferred_at=ticket_pass.transferred_at,
            )
        )

    # =========================================================================
    # Administration
    # =========================================================================

    @classmethod
    def refund_pass(cls, pass_id: uuid.UUID) -> ServiceResult[TicketPass]:
        """Administrative refund: ACTIVE -> REFUNDED."""
        with cls.atomic():
            ticket_pass = TicketPass.objects.select_for_update().filter(id=pass_id).first()
            if ticket_pass is None:
                return ServiceResult.failure("Pass not found", error_code="PASS_NOT_FOUND")
            try:
                ticket_pass.refund()
            except TransitionNotAllowed:
                return ServiceResult.from_exception(
                    InvalidStateTransitionError(
                        f"Cannot refund a pass in '{ticket_pass.state}' state",
                        details={"current_state": ticket_pass.state, "transition": "refund"},
                    )
                )
            ticket_pass.save()

        cls.get_logger().info("Refunded pass", extra={"pass_id": str(ticket_pass.id)})
        return ServiceResult.success(ticket_pass)
