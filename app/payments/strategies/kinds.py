"""
Confirm strategies for the four obligation kinds.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.db.models import Q
from django.utils import timezone

from fundraising.models import Donation, DonationStatus
from memberships.models import Membership, MembershipStatus
from payments.state_machines import ObligationKind
from payments.strategies.base import ObligationStrategy
from realtime.events import RealtimeService
from shop.models import ShopOrder, ShopOrderStatus
from tickets.models import TicketOrder
from tickets.state_machines import TicketOrderStatus

if TYPE_CHECKING:
    from payments.models import ParsedPayment, PaymentObligation


class TicketStrategy(ObligationStrategy):
    """
    Ticket order -> PAID, then one pass per seat.

    Only orders with a live hold are candidates. A lapsed hold reads as
    expired and its seats may already be sold again.
    """

    kind = ObligationKind.TICKET
    entity_model = TicketOrder
    pending_status = TicketOrderStatus.PENDING

    def candidate_filter(self) -> Q:
        return super().candidate_filter() & Q(ticket_order__expires_at__gt=timezone.now())

    def is_fulfillable(self, entity) -> bool:
        return super().is_fulfillable(entity) and entity.hold_is_live()

    def fulfill(self, entity, obligation: PaymentObligation, parsed_payment: ParsedPayment) -> dict[str, Any]:
        # Imported here: tickets.services imports payments models
        from tickets.services import PassService

        entity.mark_paid(reference=parsed_payment.reference)
        entity.save()
        issued = PassService.issue_passes_for_order(entity.id)
        return {
            "order_id": entity.id,
            "passes": [p.summary() for p in issued],
        }

    def broadcast(self, obligation: PaymentObligation, payload: dict[str, Any]) -> None:
        RealtimeService.notify_ticket_order_confirmed(
            order_id=payload["order_id"],
            payment_id=obligation.id,
            passes=payload["passes"],
        )


class MembershipStrategy(ObligationStrategy):
    """Membership -> ACTIVE, valid for the plan's duration from now."""

    kind = ObligationKind.MEMBERSHIP
    entity_model = Membership
    pending_status = MembershipStatus.PENDING

    def fulfill(self, entity, obligation: PaymentObligation, parsed_payment: ParsedPayment) -> dict[str, Any]:
        entity.activate()
        entity.save()
        return {"membership_id": entity.id, "valid_until": entity.expires_at}

    def broadcast(self, obligation: PaymentObligation, payload: dict[str, Any]) -> None:
        RealtimeService.notify_membership_activated(
            membership_id=payload["membership_id"],
            payment_id=obligation.id,
            valid_until=payload["valid_until"],
        )


class ShopStrategy(ObligationStrategy):
    kind = ObligationKind.SHOP
    entity_model = ShopOrder
    pending_status = ShopOrderStatus.PENDING

    def fulfill(self, entity, obligation: PaymentObligation, parsed_payment: ParsedPayment) -> dict[str, Any]:
        entity.confirm()
        entity.save()
        return {"order_id": entity.id}

    def broadcast(self, obligation: PaymentObligation, payload: dict[str, Any]) -> None:
        RealtimeService.notify_shop_order_confirmed(order_id=payload["order_id"], payment_id=obligation.id)


class DonationStrategy(ObligationStrategy):
    """Donation -> CONFIRMED; the project's raised total grows by the amount."""

    kind = ObligationKind.DONATION
    entity_model = Donation
    pending_status = DonationStatus.PENDING

    def fulfill(self, entity, obligation: PaymentObligation, parsed_payment: ParsedPayment) -> dict[str, Any]:
        entity.confirm()
        entity.save()
        return {"donation_id": entity.id, "amount": entity.amount}

    def broadcast(self, obligation: PaymentObligation, payload: dict[str, Any]) -> None:
        RealtimeService.notify_donation_confirmed(
            donation_id=payload["donation_id"],
            payment_id=obligation.id,
            amount=payload["amount"],
        )
