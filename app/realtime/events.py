"""
Domain events published to staff dashboards.

Every event goes to the admin group (REALTIME_ADMIN_GROUP); gate events
also go to the group of the match being scanned so a per-match steward
screen can subscribe to just its own traffic.

Message shape on the channel layer:
    {"type": "realtime.event", "event": "gate.scan", "payload": {...}}

Events:
    ticket_order.confirmed, membership.activated, shop_order.confirmed,
    donation.confirmed, payment.manual_review, gate.scan, gate.metrics

Usage:
    from realtime.events import RealtimeService

    RealtimeService.notify_gate_scan(
        pass_id=ticket_pass.id,
        result="verified",
        gate="VIP",
        steward_id=steward_id,
        match_id=order.match_id,
    )
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

from core.services import BaseService
from realtime.broadcaster import get_broadcaster

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from typing import Any


class RealtimeEvent:
    """Event names."""

    TICKET_ORDER_CONFIRMED = "ticket_order.confirmed"
    MEMBERSHIP_ACTIVATED = "membership.activated"
    SHOP_ORDER_CONFIRMED = "shop_order.confirmed"
    DONATION_CONFIRMED = "donation.confirmed"
    PAYMENT_MANUAL_REVIEW = "payment.manual_review"
    GATE_SCAN = "gate.scan"
    GATE_METRICS = "gate.metrics"


def match_group(match_id) -> str:
    """Channel group name for one match's gate traffic."""
    return f"realtime.match.{match_id}"


class RealtimeService(BaseService):
    """
    Publishes domain events through the attached broadcaster.

    Publishing never raises into the caller: by the time an event is
    emitted the database work is committed, so a transport failure is
    logged and the operation still succeeds.
    """

    @classmethod
    def admin_group(cls) -> str:
        return getattr(settings, "REALTIME_ADMIN_GROUP", "realtime.admin")

    @classmethod
    def emit(
        cls,
        event: str,
        payload: dict[str, Any],
        extra_groups: Iterable[str] = (),
    ) -> None:
        """
        Publish an event to the admin group plus any extra groups.

        Payload values are normalized to JSON primitives (UUIDs and
        datetimes become strings) so every channel layer can carry them.
        """
        groups: Sequence[str] = [cls.admin_group(), *extra_groups]
        data = json.loads(json.dumps(payload, cls=DjangoJSONEncoder))
        try:
            get_broadcaster().publish(event, data, groups)
        except Exception:
            cls.get_logger().exception(
                "Failed to publish realtime event",
                extra={"event": event, "groups": list(groups)},
            )

    @classmethod
    def notify_ticket_order_confirmed(cls, order_id, payment_id, passes: list[dict[str, Any]]) -> None:
        """passes: [{"pass_id": ..., "zone": ...}, ...]"""
        cls.emit(
            RealtimeEvent.TICKET_ORDER_CONFIRMED,
            {"order_id": order_id, "payment_id": payment_id, "passes": passes},
        )

    @classmethod
    def notify_membership_activated(cls, membership_id, payment_id, valid_until) -> None:
        cls.emit(
            RealtimeEvent.MEMBERSHIP_ACTIVATED,
            {"membership_id": membership_id, "payment_id": payment_id, "valid_until": valid_until},
        )

    @classmethod
    def notify_shop_order_confirmed(cls, order_id, payment_id) -> None:
        cls.emit(
            RealtimeEvent.SHOP_ORDER_CONFIRMED,
            {"order_id": order_id, "payment_id": payment_id},
        )

    @classmethod
    def notify_donation_confirmed(cls, donation_id, payment_id, amount: int) -> None:
        cls.emit(
            RealtimeEvent.DONATION_CONFIRMED,
            {"donation_id": donation_id, "payment_id": payment_id, "amount": amount},
        )

    @classmethod
    def notify_manual_review(
        cls,
        parsed_payment_id,
        amount: int,
        payment_id=None,
        reason: str | None = None,
        candidate: str | None = None,
    ) -> None:
        """Flag a payment the engine could not resolve on its own."""
        cls.emit(
            RealtimeEvent.PAYMENT_MANUAL_REVIEW,
            {
                "parsed_payment_id": parsed_payment_id,
                "amount": amount,
                "payment_id": payment_id,
                "reason": reason,
                "candidate": candidate,
            },
        )

    @classmethod
    def notify_gate_scan(cls, pass_id, result: str, gate: str | None, steward_id=None, match_id=None) -> None:
        extra = [match_group(match_id)] if match_id else []
        cls.emit(
            RealtimeEvent.GATE_SCAN,
            {
                "pass_id": pass_id,
                "result": result,
                "gate": gate,
                "steward_id": steward_id,
                "match_id": match_id,
            },
            extra_groups=extra,
        )

    @classmethod
    def notify_gate_metrics(cls, match_id, gates: list[dict[str, Any]]) -> None:
        """gates: [{"gate": ..., "total": n, "verified": n, "rejected": n}, ...]"""
        cls.emit(
            RealtimeEvent.GATE_METRICS,
            {"match_id": match_id, "gates": gates},
            extra_groups=[match_group(match_id)],
        )
