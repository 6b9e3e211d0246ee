"""
Payment-specific exceptions for reconciliation operations.

Expected outcomes (no candidate, low confidence, already attached) are
not exceptions: they materialize as manual_review rows or come back as
ServiceResult failures. The classes here are for states the engine
must never silently continue from.

Exception Hierarchy:
    PaymentError (base for payment domain)
    └── ReconciliationIntegrityError - Matched obligation has no entity

    LockAcquisitionError - Distributed lock timeout (inherits ConflictError)
    InvalidStateTransitionError - FSM transition not allowed (inherits ConflictError)

Usage:
    from payments.exceptions import (
        LockAcquisitionError,
        ReconciliationIntegrityError,
    )

    # Distributed lock timeout
    raise LockAcquisitionError(
        "Could not acquire lock for reconciliation:parsed:123 within 10s",
        details={"key": "reconciliation:parsed:123", "timeout": 10}
    )

    # Obligation with a dangling entity reference
    raise ReconciliationIntegrityError(
        f"PaymentObligation {obligation.id} has no {obligation.entity_field}",
        details={"payment_id": str(obligation.id), "kind": obligation.kind}
    )
"""

from __future__ import annotations

from core.exceptions import BaseApplicationError, ConflictError

# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    All payment-specific exceptions inherit from this class,
    which itself inherits from BaseApplicationError for
    consistent API error responses.
    """

    default_error_code: str = "PAYMENT_ERROR"


class ReconciliationIntegrityError(PaymentError):
    """
    Raised when a matched or attached obligation cannot be fulfilled.

    The obligation points at no domain entity (a synthetic no-match
    bucket) or its entity row is gone. Tasks do not retry this error;
    it needs an operator.
    """

    default_error_code: str = "RECONCILIATION_INTEGRITY_ERROR"


# =============================================================================
# Concurrency Control Exceptions
# =============================================================================


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    Another worker holds the lock and it wasn't released within the
    timeout period.

    Note:
        This exception inherits from ConflictError (HTTP 409) because
        it represents a resource contention conflict.
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a state machine transition is not allowed.

    This exception wraps django-fsm's TransitionNotAllowed to provide
    our standard error format with additional context.

    Example:
        from django_fsm import TransitionNotAllowed

        try:
            ticket_pass.refund()
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot refund a pass in '{ticket_pass.state}' state",
                details={
                    "current_state": ticket_pass.state,
                    "transition": "refund",
                }
            )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "PaymentError",
    "ReconciliationIntegrityError",
    "LockAcquisitionError",
    "InvalidStateTransitionError",
]
