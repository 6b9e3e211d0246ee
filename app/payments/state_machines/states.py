"""
State enums for payment models.

State Machines Overview:

PaymentObligation Status:
    pending → confirmed (reconciled, or attached by an operator)
    pending → manual_review (low confidence or unmatched payment)
    manual_review → confirmed (operator attach)
    pending → failed (order cancelled)

    CONFIRMED never regresses.
"""

from django.db import models


class ObligationKind(models.TextChoices):
    """
    Purchase domain an obligation belongs to.

    Declaration order is the reconciliation priority order.
    """

    TICKET = "ticket", "Ticket"
    MEMBERSHIP = "membership", "Membership"
    SHOP = "shop", "Shop"
    DONATION = "donation", "Donation"


class ObligationStatus(models.TextChoices):
    """
    States for the PaymentObligation lifecycle.

    Terminal states: CONFIRMED, FAILED
    """

    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    MANUAL_REVIEW = "manual_review", "Manual Review"
    FAILED = "failed", "Failed"


class ManualReviewReason(models.TextChoices):
    """Why a payment was routed to a human."""

    NO_MATCH = "no_match", "No matching obligation"
    LOW_CONFIDENCE = "low_confidence", "Confidence below threshold"


class PaymentChannel(models.TextChoices):
    """Mobile money operator a payment code targets."""

    MTN = "mtn", "MTN MoMo"
    AIRTEL = "airtel", "Airtel Money"


class ReconciliationStatus(models.TextChoices):
    """Outcome of processing one parsed payment."""

    CONFIRMED = "confirmed", "Confirmed"
    MANUAL_REVIEW = "manual_review", "Manual Review"
    MISSING_PARSED = "missing_parsed", "Parsed payment missing"
