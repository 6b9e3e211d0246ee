"""
Checkout service for capacity-safe ticket orders.

Seat capacity is never stored; it is derived on every checkout by
summing the quantities of orders that currently hold seats (paid, or
pending with an unexpired hold). That read-then-write sequence runs
inside one transaction with the Match row locked, so two checkouts for
the same match are serialized and cannot both take the last seat.

Usage:
    from tickets.services import CheckoutService
    from tickets.types import LineItem

# Days of sales history in the analytics report
RECENT_SALES_DAYS = 14

    result = CheckoutService.create_pending_order(
        match_id=match.id,
        items=[LineItem(zone="VIP", quantity=2, unit_price=25000)],
        channel="mtn",
        user_id=request.user.id,
    )
    if result.success:
        print(result.data.payment_code)  # "*182*1*250250*50000%23"
"""

from __future__ import annotations

import uuid
from collections import OrderedDict
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import Count, Prefetch, Q, Sum
from django.db.models.functions import Coalesce, TruncDate
from django.utils import timezone

from authentication.models import User
from core.services import BaseService, ServiceResult
from payments.codes import build_payment_code, normalize_channel
from payments.metadata import ObligationMetadata
from payments.models import PaymentObligation
from payments.state_machines import ObligationKind, ObligationStatus
from tickets.models import Match, TicketOrder, TicketOrderItem
from tickets.state_machines import TicketOrderStatus
from tickets.types import (
    CheckoutResult,
    DailySales,
    MatchCatalogEntry,
    MatchSales,
    SalesAnalytics,
    SalesTotals,
    StatusCount,
    ZoneAvailability,
)
from tickets.zones import get_zones, normalize_zone_code

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tickets.types import LineItem

# Days of sales history in the analytics report
RECENT_SALES_DAYS = 14


class CheckoutService(BaseService):
    """
    Service for ticket checkout and order management.

    Error codes:
        MATCH_NOT_FOUND, MATCH_NOT_ON_SALE, NO_ITEMS, UNKNOWN_ZONE,
        INVALID_QUANTITY, PRICE_MISMATCH, CAPACITY_EXCEEDED,
        ORDER_NOT_FOUND, ORDER_NOT_PENDING
    """

    # =========================================================================
    # Checkout
    # =========================================================================

    @classmethod
    def create_pending_order(
        cls,
        match_id: uuid.UUID,
        items: Iterable[LineItem],
        channel: str | None = None,
        user_id: uuid.UUID | None = None,
        contact_name: str | None = None,
        contact_phone: str | None = None,
    ) -> ServiceResult[CheckoutResult]:
        """
        Create a pending order, its items and its pending ticket obligation.

        Args:
            match_id: Match to buy seats for
            items: Requested zone lines
            channel: "mtn" or "airtel" (anything else means mtn)
            user_id: Purchaser; created if unknown, omitted for anonymous
            contact_name / contact_phone: Stored in the obligation metadata

        Returns:
            ServiceResult with CheckoutResult, or a failure with one of the
            error codes listed on the class. No rows are written on failure.
        """
        channel = normalize_channel(channel)

        match = Match.objects.filter(id=match_id).first()
        if match is None:
            return ServiceResult.failure("Match not found", error_code="MATCH_NOT_FOUND")
        if not match.is_on_sale:
            return ServiceResult.failure(
                f"Tickets for this match are not on sale ({match.status})",
                error_code="MATCH_NOT_ON_SALE",
            )

        requested = cls._validate_items(items)
        if isinstance(requested, ServiceResult):
            return requested

        zones = get_zones()
        total = sum(zones[zone].price * quantity for zone, quantity in requested.items())

        with cls.atomic():
            # Serializes every checkout for this match until commit
            Match.objects.select_for_update().filter(id=match.id).first()

            now = timezone.now()
            held = (
                TicketOrderItem.objects.for_match(match.id)
                .filter(zone__in=list(requested))
                .holding_seats(now)
                .by_zone()
            )
            for zone, quantity in requested.items():
                capacity = zones[zone].capacity
                already_held = held.get(zone, 0)
                if already_held + quantity > capacity:
                    remaining = max(capacity - already_held, 0)
                    cls.get_logger().info(
                        "Checkout rejected: capacity exceeded",
                        extra={
                            "match_id": str(match.id),
                            "zone": zone,
                            "held": already_held,
                            "requested": quantity,
                            "capacity": capacity,
                        },
                    )
                    return ServiceResult.failure(
                        f"Only {remaining} seats remain in {zone}",
                        error_code="CAPACITY_EXCEEDED",
                        errors={"remaining": [str(remaining)], "zone": [zone]},
                    )

            user = None
            if user_id is not None:
                user, _ = User.objects.ensure_exists(user_id)

            order = TicketOrder.objects.create(
                match=match,
                user=user,
                total=total,
                channel=channel,
                payment_code=build_payment_code(channel, total),
                expires_at=now + timedelta(minutes=settings.TICKET_HOLD_MINUTES),
            )
            TicketOrderItem.objects.bulk_create(
                [
                    TicketOrderItem(
                        order=order,
                        zone=zone,
                        unit_price=zones[zone].price,
                        quantity=quantity,
                    )
                    for zone, quantity in requested.items()
                ]
            )
            obligation = PaymentObligation.objects.create(
                kind=ObligationKind.TICKET,
                amount=total,
                ticket_order=order,
                metadata=ObligationMetadata.for_kind(
                    ObligationKind.TICKET,
                    channel=channel,
                    match_id=str(match.id),
                    contact_name=contact_name,
                    contact_phone=contact_phone,
                ).to_json(),
            )

        cls.get_logger().info(
            "Created pending ticket order",
            extra={
                "order_id": str(order.id),
                "payment_id": str(obligation.id),
                "match_id": str(match.id),
                "total": total,
                "channel": channel,
            },
        )

        return ServiceResult.success(
            CheckoutResult(
                order_id=order.id,
                payment_id=obligation.id,
                total=total,
                payment_code=order.payment_code,
                expires_at=order.expires_at,
                channel=channel,
            )
        )

    @classmethod
    def _validate_items(cls, items: Iterable[LineItem]) -> OrderedDict[str, int] | ServiceResult:
        """
        Check zones, quantities and prices; aggregate quantity per zone.

        Returns the per-zone quantities, or a failed ServiceResult.
        """
        zones = get_zones()
        requested: OrderedDict[str, int] = OrderedDict()

        for item in items:
            code = normalize_zone_code(item.zone)
            zone = zones.get(code)
            if zone is None:
                return ServiceResult.failure(
                    f"Unknown zone {item.zone}",
                    error_code="UNKNOWN_ZONE",
                    errors={"zone": [str(item.zone)]},
                )
            if item.quantity < 1:
                return ServiceResult.failure(
                    "Quantity must be at least 1",
                    error_code="INVALID_QUANTITY",
                    errors={"quantity": [str(item.quantity)]},
                )
            if item.unit_price != zone.price:
                cls.get_logger().warning(
                    "Checkout rejected: price mismatch",
                    extra={"zone": code, "submitted": item.unit_price, "expected": zone.price},
                )
                return ServiceResult.failure(
                    f"Price for {code} must be {zone.price}",
                    error_code="PRICE_MISMATCH",
                    errors={"unit_price": [str(zone.price)]},
                )
            requested[code] = requested.get(code, 0) + item.quantity

        if not requested:
            return ServiceResult.failure(
                "At least one ticket is required",
                error_code="NO_ITEMS",
            )
        return requested

    # =========================================================================
    # Cancellation
    # =========================================================================

    @classmethod
    def cancel_pending_order(cls, order_id: uuid.UUID, owner_id: uuid.UUID) -> ServiceResult[TicketOrder]:
        """
        Cancel a pending order on behalf of its owner.

        The order's pending ticket obligations are failed with
        cancelled_by="user" so reconciliation stops considering them.
        Orders owned by someone else are reported as not found.
        """
        with cls.atomic():
            order = TicketOrder.objects.select_for_update().filter(id=order_id).first()
            if order is None or order.user_id is None or str(order.user_id) != str(owner_id):
                return ServiceResult.failure("Order not found", error_code="ORDER_NOT_FOUND")
            if order.status != TicketOrderStatus.PENDING:
                return ServiceResult.failure(
                    "Only pending orders can be cancelled",
                    error_code="ORDER_NOT_PENDING",
                )

            order.cancel()
            order.save()

            obligations = PaymentObligation.objects.select_for_update().filter(
                ticket_order=order,
                kind=ObligationKind.TICKET,
                status=ObligationStatus.PENDING,
            )
            failed = 0
            for obligation in obligations:
                obligation.fail(cancelled_by="user")
                obligation.save()
                failed += 1

        cls.get_logger().info(
            "Cancelled ticket order",
            extra={"order_id": str(order.id), "failed_obligations": failed},
        )
        return ServiceResult.success(order)

    # =========================================================================
    # Read Models
    # =========================================================================

    @classmethod
    def get_catalog(cls) -> list[MatchCatalogEntry]:
        """
        Every match with per-zone price, capacity and remaining seats.

        Remaining seats use the same held-seat rule as checkout.
        """
        zones = get_zones()
        now = timezone.now()
        entries = []

        for match in Match.objects.order_by("kickoff"):
            held = TicketOrderItem.objects.for_match(match.id).holding_seats(now).by_zone()
            entries.append(
                MatchCatalogEntry(
                    match_id=match.id,
                    opponent=match.opponent,
                    kickoff=match.kickoff,
                    venue=match.venue,
                    competition=match.competition,
                    status=match.status,
                    on_sale=match.is_on_sale,
                    zones=[
                        ZoneAvailability(
                            zone=zone.code,
                            price=zone.price,
                            capacity=zone.capacity,
                            remaining=max(zone.capacity - held.get(zone.code, 0), 0),
                            gate=zone.gate,
                        )
                        for zone in zones.values()
                    ],
                )
            )
        return entries

    @classmethod
    def _orders_with_details(cls):
        return TicketOrder.objects.select_related("match").prefetch_related(
            "items",
            "passes",
            Prefetch("obligations", queryset=PaymentObligation.objects.order_by("created_at")),
        )

    @classmethod
    def list_orders_for_user(cls, user_id: uuid.UUID, limit: int = 20) -> list[TicketOrder]:
        """Most recent orders of a user, newest first."""
        return list(cls._orders_with_details().filter(user_id=user_id).order_by("-created_at")[:limit])

    @classmethod
    def get_order_receipt(cls, order_id: uuid.UUID, user_id: uuid.UUID) -> ServiceResult[TicketOrder]:
        """Full order with items, payments and passes, for its owner only."""
        order = cls._orders_with_details().filter(id=order_id).first()
        if order is None or order.user_id is None or str(order.user_id) != str(user_id):
            return ServiceResult.failure("Order not found", error_code="ORDER_NOT_FOUND")
        return ServiceResult.success(order)

    # =========================================================================
    # Analytics
    # =========================================================================

    @classmethod
    def sales_analytics(cls, days: int = RECENT_SALES_DAYS) -> SalesAnalytics:
        """
        Staff ticket-sales report.

        Order counts use the effective status, so lapsed pending holds
        count as expired. Revenue comes from confirmed ticket obligations.
        recent_sales holds the last `days` days that had sales, oldest
        first, keyed by confirmation date.
        """
        now = timezone.now()
        counts = TicketOrder.objects.aggregate(
            orders=Count("id"),
            paid=Count("id", filter=Q(status=TicketOrderStatus.PAID)),
            pending=Count("id", filter=Q(status=TicketOrderStatus.PENDING, expires_at__gt=now)),
            cancelled=Count("id", filter=Q(status=TicketOrderStatus.CANCELLED)),
            expired=Count("id", filter=Q(status=TicketOrderStatus.PENDING, expires_at__lte=now)),
        )

        confirmed = PaymentObligation.objects.filter(
            kind=ObligationKind.TICKET,
            status=ObligationStatus.CONFIRMED,
        )
        revenue = confirmed.aggregate(total=Sum("amount"))["total"] or 0
        orders = counts["orders"]

        totals = SalesTotals(
            revenue=revenue,
            orders=orders,
            paid=counts["paid"],
            pending=counts["pending"],
            cancelled=counts["cancelled"],
            expired=counts["expired"],
            average_order_value=round(revenue / orders) if orders else 0,
        )

        return SalesAnalytics(
            totals=totals,
            matches=cls._match_sales(confirmed),
            recent_sales=cls._recent_sales(confirmed, days),
            obligation_status=[
                StatusCount(status=row["status"], count=row["count"])
                for row in PaymentObligation.objects.filter(kind=ObligationKind.TICKET)
                .order_by("status")
                .values("status")
                .annotate(count=Count("id"))
            ],
        )

    @classmethod
    def _match_sales(cls, confirmed) -> list[MatchSales]:
        paid_orders = dict(
            TicketOrder.objects.filter(status=TicketOrderStatus.PAID)
            .order_by()
            .values("match_id")
            .annotate(count=Count("id"))
            .values_list("match_id", "count")
        )
        seats_sold = dict(
            TicketOrderItem.objects.filter(order__status=TicketOrderStatus.PAID)
            .order_by()
            .values("order__match_id")
            .annotate(seats=Sum("quantity"))
            .values_list("order__match_id", "seats")
        )
        revenue = dict(
            confirmed.filter(ticket_order__status=TicketOrderStatus.PAID)
            .order_by()
            .values("ticket_order__match_id")
            .annotate(revenue=Sum("amount"))
            .values_list("ticket_order__match_id", "revenue")
        )
        capacity = sum(zone.capacity for zone in get_zones().values())

        return [
            MatchSales(
                match_id=match.id,
                opponent=match.opponent,
                kickoff=match.kickoff,
                venue=match.venue,
                paid_orders=paid_orders.get(match.id, 0),
                seats_sold=seats_sold.get(match.id) or 0,
                revenue=revenue.get(match.id) or 0,
                capacity=capacity,
            )
            for match in Match.objects.order_by("kickoff")
        ]

    @classmethod
    def _recent_sales(cls, confirmed, days: int) -> list[DailySales]:
        rows = (
            confirmed.annotate(day=TruncDate(Coalesce("confirmed_at", "created_at")))
            .order_by()
            .values("day")
            .annotate(revenue=Sum("amount"), orders=Count("id"))
            .order_by("-day")[:days]
        )
        return [DailySales(date=row["day"], revenue=row["revenue"], orders=row["orders"]) for row in reversed(list(rows))]
