"""
Input and result types for ticketing services.

These are plain dataclasses so services stay independent of DRF;
serializers in tickets.serializers render them.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime


# =============================================================================
# Checkout
# =============================================================================


@dataclass(frozen=True)
class LineItem:
    """
    One requested zone line.

    Attributes:
        zone: Zone code (case-insensitive)
        quantity: Seats requested, at least 1
        unit_price: Price the client displayed; must equal the zone price
    """

    zone: str
    quantity: int
    unit_price: int


@dataclass
class CheckoutResult:
    order_id: uuid.UUID
    payment_id: uuid.UUID
    total: int
    payment_code: str
    expires_at: datetime
    channel: str


@dataclass
class ZoneAvailability:
    zone: str
    price: int
    capacity: int
    remaining: int
    gate: str


@dataclass
class MatchCatalogEntry:
    match_id: uuid.UUID
    opponent: str
    kickoff: datetime
    venue: str
    competition: str
    status: str
    on_sale: bool
    zones: list[ZoneAvailability] = field(default_factory=list)


# =============================================================================
# Passes
# =============================================================================


@dataclass
class IssuedPass:
    """A freshly minted pass. token is the only copy of the raw token."""

    pass_id: uuid.UUID
    zone: str
    gate: str | None
    token: str

    def summary(self) -> dict:
        """Event-safe view without the token."""
        return {"pass_id": self.pass_id, "zone": self.zone}


@dataclass
class VerificationResult:
    """
    Gate verification outcome.

    status is one of PassVerificationStatus. order_id and zone are set
    for verified passes; pass_id for every status except not_found.
    """

    status: str
    pass_id: uuid.UUID | None = None
    order_id: uuid.UUID | None = None
    zone: str | None = None
    gate: str | None = None


@dataclass
class RotationResult:
    pass_id: uuid.UUID
    token: str
    rotated_at: datetime
    valid_for_seconds: int


@dataclass
class TransferInitiated:
    pass_id: uuid.UUID
    transfer_code: str
    target_user_id: uuid.UUID | None


@dataclass
class TransferClaimed:
    pass_id: uuid.UUID
    recipient_user_id: uuid.UUID
    transferred_at: datetime


@dataclass
class GateMetrics:
    gate: str
    total: int
    verified: int
    rejected: int


# =============================================================================
# Sales Analytics
# =============================================================================


@dataclass
class SalesTotals:
    """
    Order counts by effective status, plus revenue.

    revenue sums confirmed ticket obligations; average_order_value
    divides it across every order, paid or not.
    """

    revenue: int
    orders: int
    paid: int
    pending: int
    cancelled: int
    expired: int
    average_order_value: int


@dataclass
class MatchSales:
    match_id: uuid.UUID
    opponent: str
    kickoff: datetime
    venue: str
    paid_orders: int
    seats_sold: int
    revenue: int
    capacity: int


@dataclass
class DailySales:
    date: date
    revenue: int
    orders: int


@dataclass
class StatusCount:
    status: str
    count: int


@dataclass
class SalesAnalytics:
    totals: SalesTotals
    matches: list[MatchSales] = field(default_factory=list)
    recent_sales: list[DailySales] = field(default_factory=list)
    obligation_status: list[StatusCount] = field(default_factory=list)
