"""
State enums for ticketing models.

State Machines Overview:

Match Status:
    scheduled → live → finished
    scheduled ⇄ postponed

TicketOrder Status:
    pending → paid (reconciliation)
    pending → cancelled (owner)
    pending → expired (derived from expires_at, never stored)

TicketPass State:
    active → used (gate verification)
    active → refunded (administrative)
"""

from django.db import models


class MatchStatus(models.TextChoices):
    """
    Status of a match.

    Tickets are on sale unless the match is FINISHED or POSTPONED.
    """

    SCHEDULED = "scheduled", "Scheduled"
    LIVE = "live", "Live"
    FINISHED = "finished", "Finished"
    POSTPONED = "postponed", "Postponed"


class TicketOrderStatus(models.TextChoices):
    """
    Status of a ticket order.

    EXPIRED is only ever reported by TicketOrder.effective_status: a
    pending order whose hold has lapsed keeps PENDING in the database.
    """

    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    CANCELLED = "cancelled", "Cancelled"
    EXPIRED = "expired", "Expired"


class TicketPassState(models.TextChoices):
    """
    State of an issued pass.

    Terminal states: USED, REFUNDED
    """

    ACTIVE = "active", "Active"
    USED = "used", "Used"
    REFUNDED = "refunded", "Refunded"


class GateScanResult(models.TextChoices):
    """Outcome recorded for a gate scan."""

    VERIFIED = "verified", "Verified"
    USED = "used", "Already used"
    REFUNDED = "refunded", "Refunded"


class PassVerificationStatus(models.TextChoices):
    """Result returned to the scanning device."""

    VERIFIED = "verified", "Verified"
    USED = "used", "Already used"
    REFUNDED = "refunded", "Refunded"
    NOT_FOUND = "not_found", "Not found"
