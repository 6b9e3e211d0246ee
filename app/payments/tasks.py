"""
Celery tasks for payment reconciliation.

The SMS ingestion pipeline stores a ParsedPayment and queues
process_parsed_payment with its id. The task is not auto-retried: a
failed reconciliation leaves the payment unlinked for an operator, and
reconciliation is idempotent, so requeueing by hand is safe.

Usage:
    from payments.tasks import process_parsed_payment

    process_parsed_payment.delay(str(parsed_payment.id))
"""

from __future__ import annotations

import logging
from uuid import UUID

from celery import shared_task

from payments.exceptions import LockAcquisitionError, ReconciliationIntegrityError

logger = logging.getLogger(__name__)


@shared_task(acks_late=True)
def process_parsed_payment(parsed_payment_id: str) -> dict:
    """
    Reconcile one ParsedPayment.

    Args:
        parsed_payment_id: UUID of the ParsedPayment

    Returns:
        Dict with the outcome status and ids

    Raises:
        ReconciliationIntegrityError: Matched obligation has no entity
    """
    # Import here to avoid circular imports
    from payments.services import ReconciliationService

    if isinstance(parsed_payment_id, str):
        parsed_payment_id = UUID(parsed_payment_id)

    logger.info(
        "Processing parsed payment",
        extra={"parsed_payment_id": str(parsed_payment_id)},
    )

    try:
        outcome = ReconciliationService.process_parsed_sms(parsed_payment_id)
    except LockAcquisitionError:
        logger.warning(
            "Parsed payment is being reconciled by another worker, skipping",
            extra={"parsed_payment_id": str(parsed_payment_id)},
        )
        return {"status": "locked", "parsed_payment_id": str(parsed_payment_id)}
    except ReconciliationIntegrityError:
        logger.exception(
            "Reconciliation integrity failure",
            extra={"parsed_payment_id": str(parsed_payment_id)},
        )
        raise

    return {
        "status": outcome.status,
        "parsed_payment_id": str(parsed_payment_id),
        "payment_id": str(outcome.payment_id) if outcome.payment_id else None,
        "kind": outcome.kind,
        "reason": outcome.reason,
        "already_processed": outcome.already_processed,
    }
