"""
State machine enums for payment models.
"""

from payments.state_machines.states import (
    ManualReviewReason,
    ObligationKind,
    ObligationStatus,
    PaymentChannel,
    ReconciliationStatus,
)

__all__ = [
    "ManualReviewReason",
    "ObligationKind",
    "ObligationStatus",
    "PaymentChannel",
    "ReconciliationStatus",
]
