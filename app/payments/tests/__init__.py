"""
Tests for payments app.

This package contains test modules for:
- test_reconciliation_service.py: Matching, gating, manual review, attach
- test_state_transitions.py: PaymentObligation FSM
- test_locks.py: DistributedLock
- test_metadata.py, test_codes.py, test_checks.py: Typed metadata, USSD codes, system check
- test_tasks.py: Celery task tests
- test_views.py: Operator API tests

Usage:
    pytest payments/tests/
    pytest payments/tests/test_reconciliation_service.py
"""
