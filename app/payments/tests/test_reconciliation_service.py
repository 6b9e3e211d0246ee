"""
Tests for ReconciliationService.

Covers:
- Confident matches confirm the obligation and fulfill its entity
- Confidence gating to manual review
- Unmatched payments held on synthetic manual-review rows
- Kind priority and oldest-first candidate selection
- Idempotent reprocessing
- Operator attach, including bucket release and rejections
"""

import uuid
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone

import pytest
from django.utils import timezone
from freezegun import freeze_time

from fundraising.models import DonationStatus
from memberships.models import MembershipStatus
from payments.exceptions import InvalidStateTransitionError, ReconciliationIntegrityError
from payments.models import PaymentObligation
from payments.services import ReconciliationService
from payments.state_machines import ManualReviewReason, ObligationKind, ObligationStatus, ReconciliationStatus
from payments.strategies import TicketStrategy
from payments.tests.factories import (
    DonationObligationFactory,
    MembershipObligationFactory,
    ParsedPaymentFactory,
    ShopObligationFactory,
    TicketObligationFactory,
)
from shop.models import ShopOrderStatus
from tickets.models import TicketOrderItem, TicketPass
from tickets.services import CheckoutService
from tickets.state_machines import TicketOrderStatus
from tickets.types import LineItem


def backdate(obligation, minutes):
    PaymentObligation.objects.filter(id=obligation.id).update(
        created_at=timezone.now() - timedelta(minutes=minutes)
    )


# =============================================================================
# Confident Matches
# =============================================================================


@pytest.mark.django_db
class TestConfirm:
    def test_ticket_payment_marks_order_paid_and_issues_passes(self, broadcaster):
        obligation = TicketObligationFactory(amount=50000, seats=2)
        parsed = ParsedPaymentFactory(amount=50000, confidence=0.9)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.status == ReconciliationStatus.CONFIRMED
        assert outcome.payment_id == obligation.id
        assert outcome.kind == ObligationKind.TICKET
        assert not outcome.already_processed

        obligation.refresh_from_db()
        assert obligation.status == ObligationStatus.CONFIRMED
        assert obligation.parsed_payment_id == parsed.id
        assert obligation.confirmed_at is not None
        assert obligation.meta.reference == parsed.reference

        order = obligation.ticket_order
        order.refresh_from_db()
        assert order.status == TicketOrderStatus.PAID
        assert order.sms_reference == parsed.reference
        assert TicketPass.objects.filter(order=order).count() == 2

        event = broadcaster.last("ticket_order.confirmed")
        assert event.payload["order_id"] == str(order.id)
        assert event.payload["payment_id"] == str(obligation.id)
        assert len(event.payload["passes"]) == 2
        assert {p["zone"] for p in event.payload["passes"]} == {"VIP"}
        assert event.groups == ["realtime.admin"]

    def test_records_matched_entity(self):
        obligation = TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=25000)

        ReconciliationService.process_parsed_sms(parsed.id)

        parsed.refresh_from_db()
        assert parsed.matched_entity == f"ticket_order:{obligation.ticket_order_id}"

    def test_outcome_payload_lists_issued_passes(self):
        obligation = TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=25000)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.payload["order_id"] == obligation.ticket_order_id
        assert len(outcome.payload["passes"]) == 1

    def test_confidence_at_threshold_confirms(self, settings):
        settings.PAYMENT_CONFIDENCE_THRESHOLD = 0.65
        TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=25000, confidence=0.65)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.status == ReconciliationStatus.CONFIRMED

    def test_lapsed_hold_is_held_for_review(self):
        obligation = TicketObligationFactory(
            amount=25000,
            ticket_order__expires_at=timezone.now() - timedelta(hours=1),
        )
        parsed = ParsedPaymentFactory(amount=25000)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.status == ReconciliationStatus.MANUAL_REVIEW
        assert outcome.reason == ManualReviewReason.NO_MATCH
        assert outcome.payment_id != obligation.id
        obligation.refresh_from_db()
        assert obligation.status == ObligationStatus.PENDING
        assert obligation.parsed_payment_id is None
        obligation.ticket_order.refresh_from_db()
        assert obligation.ticket_order.status == TicketOrderStatus.PENDING
        assert not TicketPass.objects.exists()

    def test_late_payment_never_oversells_a_zone(self):
        lapsed = TicketObligationFactory(
            amount=150 * 25000,
            seats=150,
            ticket_order__expires_at=timezone.now() - timedelta(minutes=1),
        )
        match = lapsed.ticket_order.match
        resold = CheckoutService.create_pending_order(
            match.id,
            [LineItem(zone="VIP", quantity=150, unit_price=25000)],
        )
        assert resold.success
        parsed = ParsedPaymentFactory(amount=150 * 25000)
        backdate(lapsed, 10)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        held = TicketOrderItem.objects.for_match(match.id).holding_seats().by_zone()
        assert held["VIP"] <= 150
        assert outcome.payment_id == resold.data.payment_id
        assert outcome.status == ReconciliationStatus.CONFIRMED

    def test_membership_activates_for_plan_duration(self, broadcaster):
        with freeze_time("2026-03-01 12:00:00"):
            obligation = MembershipObligationFactory(amount=30000, membership__plan__duration_days=30)
            parsed = ParsedPaymentFactory(amount=30000)

            outcome = ReconciliationService.process_parsed_sms(parsed.id)

        membership = obligation.membership
        membership.refresh_from_db()
        assert outcome.kind == ObligationKind.MEMBERSHIP
        assert membership.status == MembershipStatus.ACTIVE
        assert membership.expires_at == datetime(2026, 3, 31, 12, 0, tzinfo=dt_timezone.utc)

        event = broadcaster.last("membership.activated")
        assert event.payload["membership_id"] == str(membership.id)
        assert event.payload["valid_until"].startswith("2026-03-31T12:00:00")

    def test_membership_without_plan_duration_uses_default_validity(self, settings):
        settings.MEMBERSHIP_VALIDITY_DAYS = 365
        obligation = MembershipObligationFactory(amount=30000, membership__plan__duration_days=None)
        parsed = ParsedPaymentFactory(amount=30000)

        ReconciliationService.process_parsed_sms(parsed.id)

        membership = obligation.membership
        membership.refresh_from_db()
        assert (membership.expires_at - membership.started_at).days == 365

    def test_shop_order_confirmed(self, broadcaster):
        obligation = ShopObligationFactory(amount=15000)
        parsed = ParsedPaymentFactory(amount=15000)

        ReconciliationService.process_parsed_sms(parsed.id)

        order = obligation.shop_order
        order.refresh_from_db()
        assert order.status == ShopOrderStatus.CONFIRMED
        assert order.confirmed_at is not None
        assert broadcaster.last("shop_order.confirmed").payload["order_id"] == str(order.id)

    def test_donation_confirmed_and_project_total_grows(self, broadcaster):
        obligation = DonationObligationFactory(amount=10000, donation__project__raised=5000)
        parsed = ParsedPaymentFactory(amount=10000)

        ReconciliationService.process_parsed_sms(parsed.id)

        donation = obligation.donation
        donation.refresh_from_db()
        donation.project.refresh_from_db()
        assert donation.status == DonationStatus.CONFIRMED
        assert donation.project.raised == 15000
        assert broadcaster.last("donation.confirmed").payload == {
            "donation_id": str(donation.id),
            "payment_id": str(obligation.id),
            "amount": 10000,
        }

    def test_reconciles_under_payment_lock(self, mock_redis):
        TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=25000)

        ReconciliationService.process_parsed_sms(parsed.id)

        key = mock_redis.set.call_args.args[0]
        assert key == f"lock:reconciliation:parsed:{parsed.id}"
        mock_redis.eval.assert_called_once()


# =============================================================================
# Candidate Selection
# =============================================================================


@pytest.mark.django_db
class TestCandidateSelection:
    def test_ticket_beats_older_membership_of_same_amount(self):
        membership = MembershipObligationFactory(amount=30000)
        backdate(membership, 60)
        ticket = TicketObligationFactory(amount=30000)
        parsed = ParsedPaymentFactory(amount=30000)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.payment_id == ticket.id
        membership.refresh_from_db()
        assert membership.status == ObligationStatus.PENDING

    def test_membership_beats_shop_and_donation(self):
        DonationObligationFactory(amount=20000)
        ShopObligationFactory(amount=20000)
        membership = MembershipObligationFactory(amount=20000)
        parsed = ParsedPaymentFactory(amount=20000)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.payment_id == membership.id

    def test_oldest_pending_obligation_wins_within_kind(self):
        newer = TicketObligationFactory(amount=25000)
        older = TicketObligationFactory(amount=25000)
        backdate(older, 10)
        parsed = ParsedPaymentFactory(amount=25000)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.payment_id == older.id
        newer.refresh_from_db()
        assert newer.status == ObligationStatus.PENDING

    def test_second_payment_takes_next_obligation(self):
        first = TicketObligationFactory(amount=25000)
        backdate(first, 10)
        second = TicketObligationFactory(amount=25000)

        a = ReconciliationService.process_parsed_sms(ParsedPaymentFactory(amount=25000).id)
        b = ReconciliationService.process_parsed_sms(ParsedPaymentFactory(amount=25000).id)

        assert (a.payment_id, b.payment_id) == (first.id, second.id)

    def test_amount_must_match_exactly(self):
        TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=24999)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.reason == ManualReviewReason.NO_MATCH

    def test_failed_obligation_is_not_a_candidate(self):
        TicketObligationFactory(amount=25000, status=ObligationStatus.FAILED)
        parsed = ParsedPaymentFactory(amount=25000)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.status == ReconciliationStatus.MANUAL_REVIEW
        assert outcome.reason == ManualReviewReason.NO_MATCH

    def test_obligation_whose_order_is_no_longer_pending_is_skipped(self):
        TicketObligationFactory(amount=25000, ticket_order__status=TicketOrderStatus.CANCELLED)
        parsed = ParsedPaymentFactory(amount=25000)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.reason == ManualReviewReason.NO_MATCH


# =============================================================================
# Locking & Fallback
# =============================================================================


@pytest.mark.django_db
class TestLockingAndFallback:
    def test_entity_row_locked_before_obligation_row(self, mocker):
        TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=25000)
        calls = []

        lock_entity = TicketStrategy.lock_entity

        def record_entity(strategy, obligation):
            calls.append("entity")
            return lock_entity(strategy, obligation)

        lock_obligation = PaymentObligation.objects.select_for_update

        def record_obligation(*args, **kwargs):
            calls.append("obligation")
            return lock_obligation(*args, **kwargs)

        mocker.patch.object(TicketStrategy, "lock_entity", autospec=True, side_effect=record_entity)
        mocker.patch.object(PaymentObligation.objects, "select_for_update", side_effect=record_obligation)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.status == ReconciliationStatus.CONFIRMED
        assert calls[:2] == ["entity", "obligation"]

    def test_attach_locks_entity_before_obligation(self, mocker):
        obligation = TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=25000)
        calls = []

        lock_entity = TicketStrategy.lock_entity

        def record_entity(strategy, obligation):
            calls.append("entity")
            return lock_entity(strategy, obligation)

        lock_obligation = PaymentObligation.objects.select_for_update

        def record_obligation(*args, **kwargs):
            calls.append("obligation")
            return lock_obligation(*args, **kwargs)

        mocker.patch.object(TicketStrategy, "lock_entity", autospec=True, side_effect=record_entity)
        mocker.patch.object(PaymentObligation.objects, "select_for_update", side_effect=record_obligation)

        result = ReconciliationService.attach_sms_to_payment(obligation.id, parsed.id)

        assert result.success
        assert calls[:2] == ["entity", "obligation"]

    def test_candidate_failing_to_confirm_is_held_for_review(self, mocker, broadcaster):
        obligation = TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=25000)
        mocker.patch.object(
            TicketStrategy,
            "fulfill",
            side_effect=InvalidStateTransitionError(
                "Cannot confirm ticket_order from 'pending' state",
                details={"current_state": "pending"},
            ),
        )

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.status == ReconciliationStatus.MANUAL_REVIEW
        assert outcome.reason == ManualReviewReason.NO_MATCH
        bucket = PaymentObligation.objects.get(parsed_payment=parsed)
        assert bucket.id == outcome.payment_id
        assert not bucket.has_entity
        obligation.refresh_from_db()
        assert obligation.status == ObligationStatus.PENDING
        assert obligation.parsed_payment_id is None
        assert broadcaster.last("payment.manual_review").payload["reason"] == "no_match"

    def test_candidate_cancelled_after_query_is_skipped(self, mocker):
        obligation = TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=25000)
        lock_entity = TicketStrategy.lock_entity

        def cancel_then_lock(strategy, candidate):
            entity = lock_entity(strategy, candidate)
            entity.cancel()
            entity.save()
            return entity

        mocker.patch.object(TicketStrategy, "lock_entity", autospec=True, side_effect=cancel_then_lock)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.reason == ManualReviewReason.NO_MATCH
        obligation.refresh_from_db()
        assert obligation.parsed_payment_id is None


# =============================================================================
# Manual Review Routing
# =============================================================================


@pytest.mark.django_db
class TestManualReview:
    def test_low_confidence_flags_candidate_without_side_effects(self, broadcaster):
        obligation = TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=25000, confidence=0.4)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.status == ReconciliationStatus.MANUAL_REVIEW
        assert outcome.reason == ManualReviewReason.LOW_CONFIDENCE
        assert outcome.payment_id == obligation.id

        obligation.refresh_from_db()
        assert obligation.status == ObligationStatus.MANUAL_REVIEW
        assert obligation.parsed_payment_id == parsed.id
        assert obligation.meta.manual_reason == ManualReviewReason.LOW_CONFIDENCE

        obligation.ticket_order.refresh_from_db()
        assert obligation.ticket_order.status == TicketOrderStatus.PENDING
        assert not TicketPass.objects.exists()

        parsed.refresh_from_db()
        candidate = f"candidate:ticket_order:{obligation.ticket_order_id}"
        assert parsed.matched_entity == candidate
        assert outcome.payload == {"candidate": candidate}

        event = broadcaster.last("payment.manual_review")
        assert event.payload["reason"] == "low_confidence"
        assert event.payload["candidate"] == candidate
        assert not broadcaster.named("ticket_order.confirmed")

    def test_unmatched_confident_payment_is_held_for_review(self, broadcaster):
        parsed = ParsedPaymentFactory(amount=77000, confidence=0.95)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.status == ReconciliationStatus.MANUAL_REVIEW
        assert outcome.reason == ManualReviewReason.NO_MATCH

        bucket = PaymentObligation.objects.get(id=outcome.payment_id)
        assert bucket.kind == ObligationKind.TICKET
        assert bucket.status == ObligationStatus.MANUAL_REVIEW
        assert bucket.amount == 77000
        assert bucket.parsed_payment_id == parsed.id
        assert not bucket.has_entity
        assert bucket.meta.reference == parsed.reference

        event = broadcaster.last("payment.manual_review")
        assert event.payload["parsed_payment_id"] == str(parsed.id)
        assert event.payload["amount"] == 77000
        assert event.payload["candidate"] is None

    def test_unmatched_low_confidence_payment_reason(self):
        parsed = ParsedPaymentFactory(amount=77000, confidence=0.2)

        outcome = ReconciliationService.process_parsed_sms(parsed.id)

        assert outcome.reason == ManualReviewReason.LOW_CONFIDENCE

    def test_list_manual_review_newest_first(self):
        older = ReconciliationService.process_parsed_sms(ParsedPaymentFactory(amount=1000).id)
        PaymentObligation.objects.filter(id=older.payment_id).update(
            created_at=timezone.now() - timedelta(minutes=5)
        )
        newer = ReconciliationService.process_parsed_sms(ParsedPaymentFactory(amount=2000).id)
        TicketObligationFactory(amount=3000)

        rows = list(ReconciliationService.list_manual_review())

        assert [r.id for r in rows] == [newer.payment_id, older.payment_id]


# =============================================================================
# Idempotence
# =============================================================================


@pytest.mark.django_db
class TestIdempotence:
    def test_reprocessing_confirmed_payment_changes_nothing(self, broadcaster):
        obligation = TicketObligationFactory(amount=50000, seats=2)
        parsed = ParsedPaymentFactory(amount=50000)

        ReconciliationService.process_parsed_sms(parsed.id)
        again = ReconciliationService.process_parsed_sms(parsed.id)

        assert again.already_processed
        assert again.status == ReconciliationStatus.CONFIRMED
        assert again.payment_id == obligation.id
        assert TicketPass.objects.count() == 2
        assert len(broadcaster.named("ticket_order.confirmed")) == 1

    def test_reprocessing_held_payment_creates_no_second_bucket(self):
        parsed = ParsedPaymentFactory(amount=77000)

        first = ReconciliationService.process_parsed_sms(parsed.id)
        again = ReconciliationService.process_parsed_sms(parsed.id)

        assert again.already_processed
        assert again.payment_id == first.payment_id
        assert again.reason == ManualReviewReason.NO_MATCH
        assert PaymentObligation.objects.count() == 1

    def test_missing_parsed_payment(self, mock_redis):
        outcome = ReconciliationService.process_parsed_sms(uuid.uuid4())

        assert outcome.status == ReconciliationStatus.MISSING_PARSED
        assert outcome.payment_id is None
        mock_redis.set.assert_not_called()


# =============================================================================
# Operator Attach
# =============================================================================


@pytest.mark.django_db
class TestAttachSmsToPayment:
    def test_attach_confirms_pending_obligation(self, broadcaster):
        obligation = TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=99000, confidence=0.1)

        result = ReconciliationService.attach_sms_to_payment(obligation.id, parsed.id)

        assert result.success
        assert result.data.status == ReconciliationStatus.CONFIRMED
        obligation.refresh_from_db()
        assert obligation.status == ObligationStatus.CONFIRMED
        assert obligation.parsed_payment_id == parsed.id
        assert broadcaster.last("ticket_order.confirmed").payload["payment_id"] == str(obligation.id)

    def test_attach_resolves_low_confidence_candidate(self):
        obligation = TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=25000, confidence=0.3)
        ReconciliationService.process_parsed_sms(parsed.id)

        result = ReconciliationService.attach_sms_to_payment(obligation.id, parsed.id)

        assert result.success
        obligation.refresh_from_db()
        assert obligation.status == ObligationStatus.CONFIRMED
        assert obligation.meta.manual_reason is None
        parsed.refresh_from_db()
        assert parsed.matched_entity == f"ticket_order:{obligation.ticket_order_id}"

    def test_attach_releases_unmatched_bucket(self):
        parsed = ParsedPaymentFactory(amount=40000)
        bucket_id = ReconciliationService.process_parsed_sms(parsed.id).payment_id
        obligation = ShopObligationFactory(amount=40000)

        result = ReconciliationService.attach_sms_to_payment(obligation.id, parsed.id)

        assert result.success
        bucket = PaymentObligation.objects.get(id=bucket_id)
        assert bucket.status == ObligationStatus.FAILED
        assert bucket.parsed_payment_id is None
        assert bucket.meta.cancelled_by == "operator"
        obligation.shop_order.refresh_from_db()
        assert obligation.shop_order.status == ShopOrderStatus.CONFIRMED

    def test_payment_not_found(self):
        parsed = ParsedPaymentFactory()

        result = ReconciliationService.attach_sms_to_payment(uuid.uuid4(), parsed.id)

        assert result.error_code == "PAYMENT_NOT_FOUND"

    def test_parsed_payment_not_found(self):
        obligation = TicketObligationFactory()

        result = ReconciliationService.attach_sms_to_payment(obligation.id, uuid.uuid4())

        assert result.error_code == "PARSED_PAYMENT_NOT_FOUND"

    def test_already_confirmed(self):
        obligation = TicketObligationFactory(amount=25000)
        ReconciliationService.process_parsed_sms(ParsedPaymentFactory(amount=25000).id)

        result = ReconciliationService.attach_sms_to_payment(obligation.id, ParsedPaymentFactory().id)

        assert result.error_code == "ALREADY_CONFIRMED"

    def test_failed_obligation_not_attachable(self):
        obligation = TicketObligationFactory(status=ObligationStatus.FAILED)

        result = ReconciliationService.attach_sms_to_payment(obligation.id, ParsedPaymentFactory().id)

        assert result.error_code == "PAYMENT_NOT_ATTACHABLE"

    def test_obligation_flagged_with_other_sms(self):
        obligation = TicketObligationFactory(amount=25000)
        ReconciliationService.process_parsed_sms(ParsedPaymentFactory(amount=25000, confidence=0.2).id)

        result = ReconciliationService.attach_sms_to_payment(obligation.id, ParsedPaymentFactory().id)

        assert result.error_code == "PAYMENT_LINKED_ELSEWHERE"

    def test_sms_already_confirming_another_obligation(self):
        TicketObligationFactory(amount=25000)
        parsed = ParsedPaymentFactory(amount=25000)
        ReconciliationService.process_parsed_sms(parsed.id)
        other = ShopObligationFactory()

        result = ReconciliationService.attach_sms_to_payment(other.id, parsed.id)

        assert result.error_code == "PARSED_PAYMENT_LINKED_ELSEWHERE"
        other.refresh_from_db()
        assert other.status == ObligationStatus.PENDING

    def test_entity_no_longer_pending(self):
        obligation = TicketObligationFactory(ticket_order__status=TicketOrderStatus.CANCELLED)

        result = ReconciliationService.attach_sms_to_payment(obligation.id, ParsedPaymentFactory().id)

        assert result.error_code == "INVALID_STATE_TRANSITION"
        obligation.refresh_from_db()
        assert obligation.status == ObligationStatus.PENDING

    def test_lapsed_hold_cannot_be_attached(self):
        obligation = TicketObligationFactory(ticket_order__expires_at=timezone.now() - timedelta(minutes=1))

        result = ReconciliationService.attach_sms_to_payment(obligation.id, ParsedPaymentFactory().id)

        assert result.error_code == "INVALID_STATE_TRANSITION"
        obligation.ticket_order.refresh_from_db()
        assert obligation.ticket_order.status == TicketOrderStatus.PENDING
        assert not TicketPass.objects.exists()

    def test_bucket_without_entity_raises_integrity_error(self):
        parsed = ParsedPaymentFactory(amount=40000)
        bucket_id = ReconciliationService.process_parsed_sms(parsed.id).payment_id

        with pytest.raises(ReconciliationIntegrityError):
            ReconciliationService.attach_sms_to_payment(bucket_id, parsed.id)

        bucket = PaymentObligation.objects.get(id=bucket_id)
        assert bucket.status == ObligationStatus.MANUAL_REVIEW
