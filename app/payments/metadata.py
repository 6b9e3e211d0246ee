"""
Typed obligation metadata.

PaymentObligation.metadata is a JSON column, but code never reads or
writes raw keys. It goes through ObligationMetadata, which carries the
reconciliation fields shared by every kind plus one details structure
chosen by the obligation's kind.

Stored shape:
    {
        "reference": "MP240118.1234.A12345",
        "manual_reason": "low_confidence",
        "cancelled_by": "user",
        "details": {"channel": "mtn", "match_id": "...", ...}
    }

Usage:
    meta = ObligationMetadata.for_kind(
        ObligationKind.TICKET,
        channel="mtn",
        match_id=str(match.id),
    )
    obligation.meta = meta

    obligation.meta.details.channel  # "mtn"
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import TYPE_CHECKING, Union

from payments.state_machines import ObligationKind

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Per-kind Details
# =============================================================================


@dataclass
class TicketCheckoutDetails:
    """Checkout context for a ticket obligation."""

    channel: str = "mtn"
    match_id: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None


@dataclass
class MembershipDetails:
    """Upgrade context for a membership obligation."""

    channel: str = "mtn"
    plan_id: str | None = None


@dataclass
class NoDetails:
    """Shop and donation obligations carry no kind-specific context."""


ObligationDetails = Union[TicketCheckoutDetails, MembershipDetails, NoDetails]

DETAILS_BY_KIND: dict[str, type] = {
    ObligationKind.TICKET: TicketCheckoutDetails,
    ObligationKind.MEMBERSHIP: MembershipDetails,
    ObligationKind.SHOP: NoDetails,
    ObligationKind.DONATION: NoDetails,
}


def _build(cls: type, data: dict[str, Any] | None):
    """Instantiate cls from data, ignoring keys it does not declare."""
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in (data or {}).items() if k in known})


# =============================================================================
# Obligation Metadata
# =============================================================================


@dataclass
class ObligationMetadata:
    """
    Typed view of PaymentObligation.metadata.

    Attributes:
        details: Kind-specific context (see DETAILS_BY_KIND)
        reference: Reference text of the payment that resolved or flagged it
        manual_reason: ManualReviewReason when routed to a human
        cancelled_by: Who cancelled the underlying order ("user")
    """

    details: ObligationDetails = field(default_factory=NoDetails)
    reference: str | None = None
    manual_reason: str | None = None
    cancelled_by: str | None = None

    @classmethod
    def for_kind(cls, kind: str, **details: Any) -> ObligationMetadata:
        """Create metadata with the details type matching kind."""
        details_cls = DETAILS_BY_KIND[kind]
        return cls(details=_build(details_cls, details))

    @classmethod
    def from_json(cls, kind: str, data: dict[str, Any] | None) -> ObligationMetadata:
        """
        Parse the stored JSON for an obligation of the given kind.

        Unknown keys are dropped; missing keys take their defaults.
        """
        data = data if isinstance(data, dict) else {}
        details_cls = DETAILS_BY_KIND.get(kind, NoDetails)
        return cls(
            details=_build(details_cls, data.get("details")),
            reference=data.get("reference"),
            manual_reason=data.get("manual_reason"),
            cancelled_by=data.get("cancelled_by"),
        )

    def to_json(self) -> dict[str, Any]:
        """Serialize for the JSON column, omitting unset fields."""
        payload: dict[str, Any] = {}
        for name in ("reference", "manual_reason", "cancelled_by"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        details = {k: v for k, v in asdict(self.details).items() if v is not None}
        if details:
            payload["details"] = details
        return payload
