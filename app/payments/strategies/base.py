"""
Abstract base strategy for obligation fulfillment.

Reconciliation has one generic confirm path and one generic flag path.
Everything that differs between ticket orders, memberships, shop orders
and donations lives behind this contract:

- which entity model an obligation points at, and its pending status
- what "paid" means for that entity (fulfill)
- which realtime event announces it (broadcast)

Usage:
    class RaffleStrategy(ObligationStrategy):
        kind = ObligationKind.RAFFLE
        entity_model = RaffleEntry
        pending_status = RaffleStatus.PENDING

        def fulfill(self, entity, obligation, parsed_payment):
            entity.confirm()
            entity.save()
            return {"entry_id": entity.id}

        def broadcast(self, obligation, payload):
            RealtimeService.notify_raffle_confirmed(payload["entry_id"], obligation.id)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from django.db.models import Q
from django_fsm import TransitionNotAllowed

from payments.exceptions import InvalidStateTransitionError, ReconciliationIntegrityError
from payments.models import ENTITY_FIELD_BY_KIND

if TYPE_CHECKING:
    from django.db import models

    from payments.models import ParsedPayment, PaymentObligation


class ObligationStrategy(ABC):
    """
    Per-kind behaviour for confirming an obligation's entity.

    Subclasses set kind, entity_model and pending_status, and implement
    fulfill() and broadcast(). fulfill() runs inside the reconciliation
    transaction; broadcast() runs after it commits.

    Lock order: the entity row is always locked before its obligation
    rows, matching checkout cancellation.
    """

    kind: str
    entity_model: type[models.Model]
    pending_status: str

    @property
    def entity_field(self) -> str:
        return ENTITY_FIELD_BY_KIND[self.kind]

    def candidate_filter(self) -> Q:
        """Obligation filter requiring the linked entity to still be pending."""
        return Q(**{f"{self.entity_field}__status": self.pending_status})

    def entity_label(self, obligation: PaymentObligation) -> str:
        """Operator hint naming the entity, e.g. "ticket_order:<id>"."""
        return f"{self.entity_field}:{obligation.entity_id}"

    def lock_entity(self, obligation: PaymentObligation):
        """
        Lock and return the obligation's entity row.

        Raises:
            ReconciliationIntegrityError: Obligation has no entity, or it is gone
        """
        entity_id = obligation.entity_id
        entity = None
        if entity_id is not None:
            entity = self.entity_model.objects.select_for_update().filter(id=entity_id).first()
        if entity is None:
            raise ReconciliationIntegrityError(
                f"PaymentObligation {obligation.id} has no {self.entity_field}",
                details={
                    "payment_id": str(obligation.id),
                    "kind": obligation.kind,
                    "entity_id": str(entity_id) if entity_id else None,
                },
            )
        return entity

    def is_fulfillable(self, entity) -> bool:
        """True when a locked entity can still be confirmed."""
        return entity.status == self.pending_status

    def apply(
        self,
        obligation: PaymentObligation,
        parsed_payment: ParsedPayment,
        entity=None,
    ) -> dict[str, Any]:
        """
        Fulfill the entity, locking it first unless the caller already has.

        Raises:
            ReconciliationIntegrityError: Entity missing
            InvalidStateTransitionError: Entity is no longer pending
        """
        if entity is None:
            entity = self.lock_entity(obligation)
        try:
            return self.fulfill(entity, obligation, parsed_payment)
        except TransitionNotAllowed as exc:
            raise InvalidStateTransitionError(
                f"Cannot confirm {self.entity_field} {entity.pk} from '{entity.status}' state",
                details={
                    "payment_id": str(obligation.id),
                    "current_state": entity.status,
                    "entity": self.entity_label(obligation),
                },
            ) from exc

    @abstractmethod
    def fulfill(
        self,
        entity,
        obligation: PaymentObligation,
        parsed_payment: ParsedPayment,
    ) -> dict[str, Any]:
        """
        Move the entity to its terminal success state and run side effects.

        Returns:
            Kind-specific payload; passed to broadcast() and returned to
            the caller as ReconciliationOutcome.payload.
        """
        ...

    @abstractmethod
    def broadcast(self, obligation: PaymentObligation, payload: dict[str, Any]) -> None:
        """Emit the kind's confirmation event."""
        ...
