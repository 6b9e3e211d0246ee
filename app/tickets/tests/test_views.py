"""
Tests for ticketing API views.

Tests focus on observable HTTP behavior:
- Response status codes and error codes
- Response body structure
- Authentication/permission enforcement
"""

import uuid

from rest_framework import status

from tickets.models import TicketOrder
from tickets.services import PassService
from tickets.state_machines import TicketOrderStatus, TicketPassState

# =============================================================================
# URL Constants
# =============================================================================

TICKETS_URL = "/api/v1/tickets/"
CATALOG_URL = f"{TICKETS_URL}matches/"
CHECKOUT_URL = f"{TICKETS_URL}checkout/"
ORDERS_URL = f"{TICKETS_URL}orders/"
PASSES_URL = f"{TICKETS_URL}passes/"
VERIFY_URL = f"{TICKETS_URL}verify/"
GATE_SCANS_URL = f"{TICKETS_URL}gate-scans/"
ANALYTICS_URL = f"{TICKETS_URL}analytics/"


def order_url(order_id, action=""):
    return f"{ORDERS_URL}{order_id}/{action + '/' if action else ''}"


def pass_url(pass_id, action):
    return f"{PASSES_URL}{pass_id}/{action}/"


def checkout_body(match, quantity=2, unit_price=25000, zone="VIP"):
    return {
        "match_id": str(match.id),
        "channel": "mtn",
        "items": [{"zone": zone, "quantity": quantity, "unit_price": unit_price}],
    }


# =============================================================================
# Catalog & Checkout
# =============================================================================


class TestCheckoutViews:
    def test_catalog_is_public(self, api_client, match):
        response = api_client.get(CATALOG_URL)

        assert response.status_code == status.HTTP_200_OK
        vip = next(z for z in response.data[0]["zones"] if z["zone"] == "VIP")
        assert vip["remaining"] == 150

    def test_anonymous_checkout(self, api_client, match):
        response = api_client.post(CHECKOUT_URL, checkout_body(match), format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["total"] == 50000
        assert response.data["payment_code"] == "*182*1*250250*50000%23"
        assert TicketOrder.objects.get(id=response.data["order_id"]).user_id is None

    def test_authenticated_checkout_owns_order(self, authenticated_client_factory, fan, match):
        client = authenticated_client_factory(fan)

        response = client.post(CHECKOUT_URL, checkout_body(match), format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert TicketOrder.objects.get(id=response.data["order_id"]).user_id == fan.id

    def test_capacity_exceeded_is_conflict(self, api_client, match, held_seats):
        held_seats(match, "VIP", 149)

        response = api_client.post(CHECKOUT_URL, checkout_body(match), format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "CAPACITY_EXCEEDED"
        assert response.data["errors"]["remaining"] == ["1"]

    def test_price_mismatch_is_bad_request(self, api_client, match):
        response = api_client.post(CHECKOUT_URL, checkout_body(match, unit_price=100), format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "PRICE_MISMATCH"

    def test_missing_match_is_not_found(self, api_client, db):
        body = {"match_id": str(uuid.uuid4()), "items": [{"zone": "VIP", "quantity": 1, "unit_price": 25000}]}

        response = api_client.post(CHECKOUT_URL, body, format="json")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_empty_items_rejected_by_serializer(self, api_client, match):
        response = api_client.post(CHECKOUT_URL, {"match_id": str(match.id), "items": []}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "items" in response.data


# =============================================================================
# Orders
# =============================================================================


class TestOrderViews:
    def test_orders_require_authentication(self, api_client, db):
        response = api_client.get(ORDERS_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_receipt_and_cancel(self, authenticated_client_factory, fan, match):
        client = authenticated_client_factory(fan)
        order_id = client.post(CHECKOUT_URL, checkout_body(match), format="json").data["order_id"]

        receipt = client.get(order_url(order_id))
        assert receipt.status_code == status.HTTP_200_OK
        assert receipt.data["status"] == TicketOrderStatus.PENDING
        assert receipt.data["items"][0]["subtotal"] == 50000
        assert receipt.data["payments"][0]["status"] == "pending"

        cancelled = client.post(order_url(order_id, "cancel"))
        assert cancelled.status_code == status.HTTP_200_OK
        assert cancelled.data["status"] == TicketOrderStatus.CANCELLED
        assert cancelled.data["payments"][0]["status"] == "failed"

        again = client.post(order_url(order_id, "cancel"))
        assert again.status_code == status.HTTP_409_CONFLICT
        assert again.data["error_code"] == "ORDER_NOT_PENDING"

    def test_other_users_order_is_not_found(self, authenticated_client_factory, fan, other_fan, match):
        order_id = (
            authenticated_client_factory(fan).post(CHECKOUT_URL, checkout_body(match), format="json").data["order_id"]
        )

        response = authenticated_client_factory(other_fan).get(order_url(order_id))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_list_orders(self, authenticated_client_factory, fan, paid_order):
        response = authenticated_client_factory(fan).get(ORDERS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert [o["id"] for o in response.data] == [str(paid_order.id)]


# =============================================================================
# Passes
# =============================================================================


class TestPassViews:
    def test_list_passes_hides_token_hash(self, authenticated_client_factory, fan, active_pass):
        response = authenticated_client_factory(fan).get(PASSES_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data[0]["id"] == str(active_pass.id)
        assert "token_hash" not in response.data[0]

    def test_rotate(self, authenticated_client_factory, fan, active_pass):
        response = authenticated_client_factory(fan).post(pass_url(active_pass.id, "rotate"))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data["token"]) == 16
        assert response.data["valid_for_seconds"] == 120

    def test_rotate_foreign_pass_is_not_found(self, authenticated_client_factory, other_fan, active_pass):
        response = authenticated_client_factory(other_fan).post(pass_url(active_pass.id, "rotate"))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_transfer_and_claim(self, authenticated_client_factory, fan, other_fan, active_pass):
        started = authenticated_client_factory(fan).post(
            pass_url(active_pass.id, "transfer"),
            {"target_user_id": str(other_fan.id)},
            format="json",
        )
        assert started.status_code == status.HTTP_201_CREATED

        claimed = authenticated_client_factory(other_fan).post(
            pass_url(active_pass.id, "claim"),
            {"transfer_code": started.data["transfer_code"]},
            format="json",
        )
        assert claimed.status_code == status.HTTP_200_OK
        assert claimed.data["recipient_user_id"] == str(other_fan.id)

    def test_claim_locked_transfer_is_forbidden(self, authenticated_client_factory, fan, other_fan, steward, active_pass):
        code = PassService.initiate_transfer(active_pass.id, fan.id, target_user_id=other_fan.id).data.transfer_code

        response = authenticated_client_factory(steward).post(
            pass_url(active_pass.id, "claim"), {"transfer_code": code}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "TRANSFER_LOCKED"

    def test_refund_requires_staff(self, authenticated_client_factory, fan, steward, active_pass):
        forbidden = authenticated_client_factory(fan).post(pass_url(active_pass.id, "refund"))
        assert forbidden.status_code == status.HTTP_403_FORBIDDEN

        refunded = authenticated_client_factory(steward).post(pass_url(active_pass.id, "refund"))
        assert refunded.status_code == status.HTTP_200_OK
        assert refunded.data["state"] == TicketPassState.REFUNDED

        again = authenticated_client_factory(steward).post(pass_url(active_pass.id, "refund"))
        assert again.status_code == status.HTTP_409_CONFLICT
        assert again.data["error_code"] == "INVALID_STATE_TRANSITION"


# =============================================================================
# Gate Operations
# =============================================================================


class TestGateViews:
    def test_verify_requires_staff(self, authenticated_client_factory, fan, active_pass):
        response = authenticated_client_factory(fan).post(VERIFY_URL, {"token": "known-token"}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_verify_then_reuse(self, authenticated_client_factory, steward, active_pass):
        client = authenticated_client_factory(steward)

        first = client.post(VERIFY_URL, {"token": "known-token", "steward_id": "gate-1"}, format="json")
        second = client.post(VERIFY_URL, {"token": "known-token"}, format="json")

        assert first.status_code == status.HTTP_200_OK
        assert first.data["status"] == "verified"
        assert first.data["order_id"] == str(active_pass.order_id)
        assert second.data["status"] == "used"

    def test_verify_unknown_token(self, authenticated_client_factory, steward, db):
        response = authenticated_client_factory(steward).post(VERIFY_URL, {"token": "missing"}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == "not_found"
        assert response.data["pass_id"] is None

    def test_gate_history_and_metrics(self, authenticated_client_factory, steward, active_pass):
        client = authenticated_client_factory(steward)
        client.post(VERIFY_URL, {"token": "known-token", "steward_id": "gate-1"}, format="json")

        history = client.get(GATE_SCANS_URL)
        metrics = client.get(f"{TICKETS_URL}matches/{active_pass.order.match_id}/gate-metrics/")

        assert history.status_code == status.HTTP_200_OK
        assert history.data[0]["steward_id"] == "gate-1"
        assert history.data[0]["zone"] == "VIP"
        assert metrics.data == [{"gate": "VIP", "total": 1, "verified": 1, "rejected": 0}]

    def test_gate_history_rejects_bad_limit(self, authenticated_client_factory, steward):
        response = authenticated_client_factory(steward).get(GATE_SCANS_URL, {"limit": "many"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Analytics
# =============================================================================


class TestAnalyticsView:
    def test_requires_staff(self, authenticated_client_factory, fan):
        response = authenticated_client_factory(fan).get(ANALYTICS_URL)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_report_shape(self, authenticated_client_factory, steward, paid_order):
        response = authenticated_client_factory(steward).get(ANALYTICS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["totals"]["paid"] == 1
        assert response.data["matches"][0]["match_id"] == str(paid_order.match_id)
        assert response.data["matches"][0]["seats_sold"] == 2
        assert set(response.data) == {"totals", "matches", "recent_sales", "obligation_status"}
