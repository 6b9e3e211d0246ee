"""
Reconciliation service for matching parsed payments to obligations.

A ParsedPayment is a structured mobile money SMS: amount, reference and
the parser's confidence. Reconciliation looks for exactly one pending
obligation it settles and either confirms it or routes it to a human.

Matching:
    - Amount equality is the only signal.
    - Kinds are tried in priority order: ticket, membership, shop,
      donation. Within a kind the oldest pending obligation wins.
    - A candidate must have no ParsedPayment linked and its entity must
      itself still be pending.

Outcomes:
    - confidence >= PAYMENT_CONFIDENCE_THRESHOLD: obligation confirmed,
      entity fulfilled by its kind's strategy, confirmation broadcast
    - confidence below threshold: candidate moved to manual_review with
      reason low_confidence; no domain side effect
    - no candidate: a synthetic manual_review obligation (kind ticket,
      no entity) holds the payment with reason no_match or low_confidence

Concurrency:
    Each ParsedPayment is reconciled under its own DistributedLock. The
    candidate's entity row is locked first, then the candidate row, the
    same order checkout cancellation uses; both are re-checked once
    locked. The one-to-one parsed_payment column is the final guard. A
    matched entity that still refuses confirmation leaves the payment on
    a no_match manual-review row.

Usage:
    from payments.services import ReconciliationService

    outcome = ReconciliationService.process_parsed_sms(parsed.id)
    outcome.status  # "confirmed" | "manual_review" | "missing_parsed"

    result = ReconciliationService.attach_sms_to_payment(obligation.id, parsed.id)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import transaction

from core.services import BaseService, ServiceResult
from payments.exceptions import InvalidStateTransitionError
from payments.locks import parsed_payment_lock
from payments.models import ParsedPayment, PaymentObligation
from payments.state_machines import (
    ManualReviewReason,
    ObligationKind,
    ObligationStatus,
    ReconciliationStatus,
)
from payments.strategies import STRATEGIES, get_strategy
from realtime.events import RealtimeService

if TYPE_CHECKING:
    from typing import Any

    from django.db.models import QuerySet

    from payments.strategies import ObligationStrategy


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class ReconciliationOutcome:
    """
    Result of reconciling one ParsedPayment.

    Attributes:
        status: ReconciliationStatus value
        parsed_payment_id: The payment that was reconciled
        payment_id: Obligation confirmed or flagged (None for missing_parsed)
        kind: Obligation kind
        reason: ManualReviewReason for manual_review outcomes
        already_processed: True when the payment had been reconciled before
            and this call changed nothing
        payload: Kind-specific data from the confirm strategy, e.g.
            {"order_id": ..., "passes": [{"pass_id": ..., "zone": ...}]}
    """

    status: str
    parsed_payment_id: uuid.UUID
    payment_id: uuid.UUID | None = None
    kind: str | None = None
    reason: str | None = None
    already_processed: bool = False
    payload: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Service
# =============================================================================


class ReconciliationService(BaseService):
    """
    Matches parsed payments to pending obligations.

    Error codes (attach_sms_to_payment):
        PAYMENT_NOT_FOUND, PARSED_PAYMENT_NOT_FOUND, ALREADY_CONFIRMED,
        PAYMENT_LINKED_ELSEWHERE, PARSED_PAYMENT_LINKED_ELSEWHERE,
        PAYMENT_NOT_ATTACHABLE, INVALID_STATE_TRANSITION
    """

    # =========================================================================
    # Public API
    # =========================================================================

    @classmethod
    def process_parsed_sms(cls, parsed_payment_id: uuid.UUID) -> ReconciliationOutcome:
        """
        Reconcile one ParsedPayment.

        Idempotent: a payment already linked to an obligation returns that
        obligation's outcome with already_processed=True.

        Raises:
            LockAcquisitionError: Another worker holds this payment's lock
            ReconciliationIntegrityError: Matched obligation has no entity
        """
        parsed = ParsedPayment.objects.filter(id=parsed_payment_id).first()
        if parsed is None:
            cls.get_logger().warning(
                "Parsed payment not found, skipping reconciliation",
                extra={"parsed_payment_id": str(parsed_payment_id)},
            )
            return ReconciliationOutcome(
                status=ReconciliationStatus.MISSING_PARSED,
                parsed_payment_id=parsed_payment_id,
            )

        with parsed_payment_lock(parsed.id):
            return cls._process_with_lock(parsed)

    @classmethod
    def attach_sms_to_payment(
        cls,
        payment_id: uuid.UUID,
        parsed_payment_id: uuid.UUID,
    ) -> ServiceResult[ReconciliationOutcome]:
        """
        Operator-forced confirmation of an obligation with a given payment.

        Works from pending or manual_review. Amount and confidence are not
        checked. A payment held only by a synthetic no-match row is moved
        off it; a payment linked to any other obligation is rejected.

        Raises:
            ReconciliationIntegrityError: Obligation has no entity to fulfill
        """
        with parsed_payment_lock(parsed_payment_id):
            try:
                with transaction.atomic():
                    obligation = PaymentObligation.objects.filter(id=payment_id).first()
                    if obligation is None:
                        return ServiceResult.failure("Payment not found", error_code="PAYMENT_NOT_FOUND")

                    strategy = get_strategy(obligation.kind)
                    entity = strategy.lock_entity(obligation) if obligation.has_entity else None
                    obligation = PaymentObligation.objects.select_for_update().filter(id=payment_id).first()
                    if obligation is None:
                        return ServiceResult.failure("Payment not found", error_code="PAYMENT_NOT_FOUND")

                    parsed = ParsedPayment.objects.filter(id=parsed_payment_id).first()
                    if parsed is None:
                        return ServiceResult.failure(
                            "Parsed payment not found",
                            error_code="PARSED_PAYMENT_NOT_FOUND",
                        )

                    rejection = cls._check_attachable(obligation, parsed)
                    if rejection is not None:
                        return rejection

                    payload = cls._confirm(obligation, strategy, parsed, entity=entity)
            except InvalidStateTransitionError as exc:
                cls.get_logger().warning(
                    "Attach rejected: entity is no longer pending",
                    extra={"payment_id": str(payment_id), **exc.details},
                )
                return ServiceResult.from_exception(exc)

        cls.get_logger().info(
            "Attached parsed payment to obligation",
            extra={
                "payment_id": str(obligation.id),
                "parsed_payment_id": str(parsed.id),
                "kind": obligation.kind,
            },
        )
        strategy.broadcast(obligation, payload)
        return ServiceResult.success(
            ReconciliationOutcome(
                status=ReconciliationStatus.CONFIRMED,
                parsed_payment_id=parsed.id,
                payment_id=obligation.id,
                kind=obligation.kind,
                payload=payload,
            )
        )

    @classmethod
    def list_manual_review(cls, limit: int = 50) -> QuerySet[PaymentObligation]:
        """Obligations awaiting an operator, newest first."""
        return (
            PaymentObligation.objects.select_related("parsed_payment")
            .filter(status=ObligationStatus.MANUAL_REVIEW)
            .order_by("-created_at")[:limit]
        )

    # =========================================================================
    # Internal: Matching
    # =========================================================================

    @classmethod
    def _process_with_lock(cls, parsed: ParsedPayment) -> ReconciliationOutcome:
        """Execute reconciliation with the payment's lock already held."""
        existing = PaymentObligation.objects.filter(parsed_payment=parsed).first()
        if existing is not None:
            cls.get_logger().info(
                "Parsed payment already reconciled",
                extra={
                    "parsed_payment_id": str(parsed.id),
                    "payment_id": str(existing.id),
                    "status": existing.status,
                },
            )
            return cls._existing_outcome(existing, parsed)

        threshold = float(settings.PAYMENT_CONFIDENCE_THRESHOLD)
        confident = parsed.confidence >= threshold

        try:
            with transaction.atomic():
                candidate, strategy, entity = cls._find_candidate(parsed.amount)

                if candidate is None:
                    reason = ManualReviewReason.NO_MATCH if confident else ManualReviewReason.LOW_CONFIDENCE
                    obligation = cls._hold_unmatched(parsed, reason)
                elif confident:
                    payload = cls._confirm(candidate, strategy, parsed, entity=entity)
                else:
                    reason = ManualReviewReason.LOW_CONFIDENCE
                    cls._flag(candidate, strategy, parsed, reason)
        except InvalidStateTransitionError as exc:
            cls.get_logger().warning(
                "Matched entity could not be confirmed, holding payment for review",
                extra={"parsed_payment_id": str(parsed.id), **exc.details},
            )
            candidate = None
            reason = ManualReviewReason.NO_MATCH
            with transaction.atomic():
                obligation = cls._hold_unmatched(parsed, reason)

        if candidate is None:
            cls.get_logger().info(
                "No pending obligation matched, routed to manual review",
                extra={
                    "parsed_payment_id": str(parsed.id),
                    "payment_id": str(obligation.id),
                    "amount": parsed.amount,
                    "reason": reason,
                },
            )
            RealtimeService.notify_manual_review(
                parsed_payment_id=parsed.id,
                amount=parsed.amount,
                payment_id=obligation.id,
                reason=reason,
            )
            return ReconciliationOutcome(
                status=ReconciliationStatus.MANUAL_REVIEW,
                parsed_payment_id=parsed.id,
                payment_id=obligation.id,
                kind=obligation.kind,
                reason=reason,
            )

        if not confident:
            cls.get_logger().info(
                "Low confidence match, routed to manual review",
                extra={
                    "parsed_payment_id": str(parsed.id),
                    "payment_id": str(candidate.id),
                    "confidence": parsed.confidence,
                    "threshold": threshold,
                },
            )
            RealtimeService.notify_manual_review(
                parsed_payment_id=parsed.id,
                amount=parsed.amount,
                payment_id=candidate.id,
                reason=reason,
                candidate=parsed.matched_entity,
            )
            return ReconciliationOutcome(
                status=ReconciliationStatus.MANUAL_REVIEW,
                parsed_payment_id=parsed.id,
                payment_id=candidate.id,
                kind=candidate.kind,
                reason=reason,
                payload={"candidate": parsed.matched_entity},
            )

        cls.get_logger().info(
            "Confirmed obligation from parsed payment",
            extra={
                "parsed_payment_id": str(parsed.id),
                "payment_id": str(candidate.id),
                "kind": candidate.kind,
                "amount": parsed.amount,
            },
        )
        strategy.broadcast(candidate, payload)
        return ReconciliationOutcome(
            status=ReconciliationStatus.CONFIRMED,
            parsed_payment_id=parsed.id,
            payment_id=candidate.id,
            kind=candidate.kind,
            payload=payload,
        )

    @classmethod
    def _find_candidate(cls, amount: int) -> tuple[PaymentObligation | None, ObligationStrategy | None, Any]:
        """
        Lock and return the first matching obligation in kind priority order.

        Returns (obligation, strategy, entity) with both rows locked, or
        (None, None, None). Must be called inside a transaction.
        """
        for strategy in STRATEGIES:
            candidate_ids = list(
                PaymentObligation.objects.filter(
                    kind=strategy.kind,
                    status=ObligationStatus.PENDING,
                    parsed_payment__isnull=True,
                    amount=amount,
                )
                .filter(strategy.candidate_filter())
                .order_by("created_at")
                .values_list("id", flat=True)
            )
            for candidate_id in candidate_ids:
                locked = cls._lock_candidate(candidate_id, strategy)
                if locked is not None:
                    return locked[0], strategy, locked[1]
        return None, None, None

    @classmethod
    def _lock_candidate(cls, candidate_id: uuid.UUID, strategy: ObligationStrategy):
        """
        Lock the candidate's entity, then the candidate, and re-check both.

        Returns (obligation, entity), or None when another transaction
        changed either row after the unlocked candidate query.
        """
        obligation = PaymentObligation.objects.filter(id=candidate_id).first()
        if obligation is None:
            return None
        entity = strategy.lock_entity(obligation)
        obligation = (
            PaymentObligation.objects.select_for_update()
            .filter(id=candidate_id, status=ObligationStatus.PENDING, parsed_payment__isnull=True)
            .first()
        )
        if obligation is None or not strategy.is_fulfillable(entity):
            cls.get_logger().debug(
                "Candidate changed before it was locked, skipping",
                extra={"payment_id": str(candidate_id), "kind": strategy.kind},
            )
            return None
        return obligation, entity

    @classmethod
    def _existing_outcome(cls, obligation: PaymentObligation, parsed: ParsedPayment) -> ReconciliationOutcome:
        if obligation.status == ObligationStatus.CONFIRMED:
            status = ReconciliationStatus.CONFIRMED
        else:
            status = ReconciliationStatus.MANUAL_REVIEW
        return ReconciliationOutcome(
            status=status,
            parsed_payment_id=parsed.id,
            payment_id=obligation.id,
            kind=obligation.kind,
            reason=obligation.meta.manual_reason,
            already_processed=True,
        )

    # =========================================================================
    # Internal: Confirm & Flag
    # =========================================================================

    @classmethod
    def _confirm(
        cls,
        obligation: PaymentObligation,
        strategy: ObligationStrategy,
        parsed: ParsedPayment,
        entity=None,
    ) -> dict[str, Any]:
        """
        Fulfill the entity and confirm the obligation. Caller holds the transaction.

        Raises:
            ReconciliationIntegrityError: Entity missing
            InvalidStateTransitionError: Entity is no longer pending
        """
        payload = strategy.apply(obligation, parsed, entity=entity)

        obligation.confirm(reference=parsed.reference)
        obligation.parsed_payment = parsed
        obligation.save()

        parsed.matched_entity = strategy.entity_label(obligation)
        parsed.save(update_fields=["matched_entity", "updated_at"])
        return payload

    @classmethod
    def _flag(
        cls,
        obligation: PaymentObligation,
        strategy: ObligationStrategy,
        parsed: ParsedPayment,
        reason: str,
    ) -> None:
        """Route a candidate to manual review without touching its entity."""
        obligation.flag_for_review(reason=reason, reference=parsed.reference)
        obligation.parsed_payment = parsed
        obligation.save()

        parsed.matched_entity = f"candidate:{strategy.entity_label(obligation)}"
        parsed.save(update_fields=["matched_entity", "updated_at"])

    @classmethod
    def _hold_unmatched(cls, parsed: ParsedPayment, reason: str) -> PaymentObligation:
        """Create the synthetic manual_review row holding an unmatched payment."""
        obligation = PaymentObligation(
            kind=ObligationKind.TICKET,
            amount=parsed.amount,
            currency=parsed.currency,
            status=ObligationStatus.MANUAL_REVIEW,
            parsed_payment=parsed,
        )
        meta = obligation.meta
        meta.reference = parsed.reference
        meta.manual_reason = reason
        obligation.meta = meta
        obligation.save()
        return obligation

    @classmethod
    def _check_attachable(cls, obligation: PaymentObligation, parsed: ParsedPayment) -> ServiceResult | None:
        """
        Validate an operator attach; release an unmatched-payment row in the way.

        Returns a failed ServiceResult, or None when the attach may proceed.
        """
        if obligation.status == ObligationStatus.CONFIRMED:
            return ServiceResult.failure("Payment is already confirmed", error_code="ALREADY_CONFIRMED")
        if obligation.status not in (ObligationStatus.PENDING, ObligationStatus.MANUAL_REVIEW):
            return ServiceResult.failure(
                f"Cannot attach to a {obligation.status} payment",
                error_code="PAYMENT_NOT_ATTACHABLE",
            )
        if obligation.parsed_payment_id is not None and obligation.parsed_payment_id != parsed.id:
            return ServiceResult.failure(
                "Payment is linked to a different SMS",
                error_code="PAYMENT_LINKED_ELSEWHERE",
            )

        holder = (
            PaymentObligation.objects.select_for_update()
            .filter(parsed_payment=parsed)
            .exclude(id=obligation.id)
            .first()
        )
        if holder is None:
            return None
        if holder.has_entity or holder.status != ObligationStatus.MANUAL_REVIEW:
            return ServiceResult.failure(
                "SMS is already linked to another payment",
                error_code="PARSED_PAYMENT_LINKED_ELSEWHERE",
            )

        holder.release(released_by="operator")
        holder.parsed_payment = None
        holder.save()
        cls.get_logger().info(
            "Released unmatched payment row",
            extra={"payment_id": str(holder.id), "parsed_payment_id": str(parsed.id)},
        )
        return None
