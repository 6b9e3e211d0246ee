"""
Payment services.

- ReconciliationService: Matches parsed payments to pending obligations

Usage:
    from payments.services import ReconciliationService

    outcome = ReconciliationService.process_parsed_sms(parsed_payment_id)
"""

from payments.services.reconciliation_service import (
    ReconciliationOutcome,
    ReconciliationService,
)

__all__ = [
    "ReconciliationOutcome",
    "ReconciliationService",
]
