"""
Ticketing API views.

URL Structure:
    GET  /api/v1/tickets/matches/                       - Catalog with remaining seats
    POST /api/v1/tickets/checkout/                      - Create a pending order
    GET  /api/v1/tickets/orders/                        - Caller's orders
    GET  /api/v1/tickets/orders/{id}/                   - Order receipt
    POST /api/v1/tickets/orders/{id}/cancel/            - Cancel a pending order
    GET  /api/v1/tickets/passes/                        - Caller's active passes
    POST /api/v1/tickets/passes/{id}/rotate/            - Issue a fresh token
    POST /api/v1/tickets/passes/{id}/transfer/          - Start a transfer
    POST /api/v1/tickets/passes/{id}/claim/             - Claim a transfer
    POST /api/v1/tickets/passes/{id}/refund/            - Refund a pass (staff)
    POST /api/v1/tickets/verify/                        - Gate verification (staff)
    GET  /api/v1/tickets/gate-scans/                    - Recent scans (staff)
    GET  /api/v1/tickets/matches/{id}/gate-metrics/     - Per-gate totals (staff)
    GET  /api/v1/tickets/analytics/                     - Sales report (staff)

Views are thin: validation of shape happens in serializers, every rule
in CheckoutService and PassService.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from tickets.serializers import (
    CheckoutRequestSerializer,
    CheckoutResultSerializer,
    ClaimRequestSerializer,
    GateMetricsSerializer,
    GateScanSerializer,
    MatchCatalogSerializer,
    RotationResultSerializer,
    SalesAnalyticsSerializer,
    TicketOrderSerializer,
    TicketPassSerializer,
    TransferClaimedSerializer,
    TransferInitiatedSerializer,
    TransferRequestSerializer,
    VerificationResultSerializer,
    VerifyRequestSerializer,
)
from tickets.services import CheckoutService, PassService

# ServiceResult error codes -> HTTP status; anything else is a 400
ERROR_STATUS = {
    "MATCH_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ORDER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PASS_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "MATCH_NOT_ON_SALE": status.HTTP_409_CONFLICT,
    "CAPACITY_EXCEEDED": status.HTTP_409_CONFLICT,
    "ORDER_NOT_PENDING": status.HTTP_409_CONFLICT,
    "PASS_NOT_ACTIVE": status.HTTP_409_CONFLICT,
    "TRANSFER_NOT_PENDING": status.HTTP_409_CONFLICT,
    "INVALID_STATE_TRANSITION": status.HTTP_409_CONFLICT,
    "TRANSFER_LOCKED": status.HTTP_403_FORBIDDEN,
}


def failure_response(result) -> Response:
    """Render a failed ServiceResult with the status its error code maps to."""
    code = ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST)
    return Response(result.to_response(), status=code)


# =============================================================================
# Catalog & Checkout
# =============================================================================


class MatchCatalogView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        summary="List matches with seat availability",
        tags=["Tickets"],
        responses={200: MatchCatalogSerializer(many=True)},
    )
    def get(self, request):
        return Response(MatchCatalogSerializer(CheckoutService.get_catalog(), many=True).data)


class CheckoutView(APIView):
    """
    Create a pending order and return the USSD payment code.

    Anonymous checkouts are allowed; an authenticated caller becomes the
    order owner.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Check out tickets",
        tags=["Tickets"],
        request=CheckoutRequestSerializer,
        responses={
            201: CheckoutResultSerializer,
            400: OpenApiResponse(description="Unknown zone, bad quantity or price mismatch"),
            404: OpenApiResponse(description="Match not found"),
            409: OpenApiResponse(description="Not enough seats remain or match not on sale"),
        },
    )
    def post(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = CheckoutService.create_pending_order(
            match_id=data["match_id"],
            items=serializer.line_items(),
            channel=data.get("channel"),
            user_id=request.user.id if request.user.is_authenticated else None,
            contact_name=data.get("contact_name") or None,
            contact_phone=data.get("contact_phone") or None,
        )
        if not result.success:
            return failure_response(result)

        return Response(CheckoutResultSerializer(result.data).data, status=status.HTTP_201_CREATED)


# =============================================================================
# Orders
# =============================================================================


class OrderListView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List my ticket orders",
        tags=["Tickets - Orders"],
        responses={200: TicketOrderSerializer(many=True)},
    )
    def get(self, request):
        orders = CheckoutService.list_orders_for_user(request.user.id)
        return Response(TicketOrderSerializer(orders, many=True).data)


class OrderDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get order receipt",
        tags=["Tickets - Orders"],
        responses={200: TicketOrderSerializer, 404: OpenApiResponse(description="Order not found")},
    )
    def get(self, request, order_id):
        result = CheckoutService.get_order_receipt(order_id, request.user.id)
        if not result.success:
            return failure_response(result)
        return Response(TicketOrderSerializer(result.data).data)


class OrderCancelView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Cancel a pending order",
        tags=["Tickets - Orders"],
        request=None,
        responses={
            200: TicketOrderSerializer,
            404: OpenApiResponse(description="Order not found"),
            409: OpenApiResponse(description="Order is not pending"),
        },
    )
    def post(self, request, order_id):
        result = CheckoutService.cancel_pending_order(order_id, request.user.id)
        if not result.success:
            return failure_response(result)

        receipt = CheckoutService.get_order_receipt(order_id, request.user.id)
        return Response(TicketOrderSerializer(receipt.data).data)


# =============================================================================
# Passes
# =============================================================================


class PassListView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List my active passes",
        tags=["Tickets - Passes"],
        responses={200: TicketPassSerializer(many=True)},
    )
    def get(self, request):
        passes = PassService.list_active_passes(request.user.id)
        return Response(TicketPassSerializer(passes, many=True).data)


class PassRotateView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Rotate pass token",
        tags=["Tickets - Passes"],
        request=None,
        responses={200: RotationResultSerializer},
    )
    def post(self, request, pass_id):
        result = PassService.rotate_pass_token(pass_id, request.user.id)
        if not result.success:
            return failure_response(result)
        return Response(RotationResultSerializer(result.data).data)


class PassTransferView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Start a pass transfer",
        tags=["Tickets - Passes"],
        request=TransferRequestSerializer,
        responses={201: TransferInitiatedSerializer},
    )
    def post(self, request, pass_id):
        serializer = TransferRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PassService.initiate_transfer(
            pass_id,
            request.user.id,
            target_user_id=serializer.validated_data.get("target_user_id"),
        )
        if not result.success:
            return failure_response(result)
        return Response(TransferInitiatedSerializer(result.data).data, status=status.HTTP_201_CREATED)


class PassClaimView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Claim a pass transfer",
        tags=["Tickets - Passes"],
        request=ClaimRequestSerializer,
        responses={
            200: TransferClaimedSerializer,
            403: OpenApiResponse(description="Transfer is locked to another recipient"),
        },
    )
    def post(self, request, pass_id):
        serializer = ClaimRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PassService.claim_transfer(
            pass_id,
            serializer.validated_data["transfer_code"],
            request.user.id,
        )
        if not result.success:
            return failure_response(result)
        return Response(TransferClaimedSerializer(result.data).data)


class PassRefundView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Refund a pass",
        tags=["Tickets - Gate"],
        request=None,
        responses={200: TicketPassSerializer, 409: OpenApiResponse(description="Pass is not active")},
    )
    def post(self, request, pass_id):
        result = PassService.refund_pass(pass_id)
        if not result.success:
            return failure_response(result)
        return Response(TicketPassSerializer(result.data).data)


# =============================================================================
# Gate Operations
# =============================================================================


class VerifyPassView(APIView):
    """
    Verify a scanned token.

    Always 200: the scan outcome (verified, used, refunded, not_found) is
    in the body for the scanning device to display.
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Verify a pass at the gate",
        tags=["Tickets - Gate"],
        request=VerifyRequestSerializer,
        responses={200: VerificationResultSerializer},
    )
    def post(self, request):
        serializer = VerifyRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        outcome = PassService.verify_pass_token(
            data["token"],
            dry_run=data["dry_run"],
            steward_id=data.get("steward_id") or str(request.user.id),
        )
        return Response(VerificationResultSerializer(outcome).data)


class GateScanListView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Recent gate scans",
        tags=["Tickets - Gate"],
        parameters=[OpenApiParameter("limit", int, description="Maximum rows (default 50, max 200)")],
        responses={200: GateScanSerializer(many=True)},
    )
    def get(self, request):
        try:
            limit = min(max(int(request.query_params.get("limit", 50)), 1), 200)
        except ValueError:
            return Response({"detail": "limit must be an integer"}, status=status.HTTP_400_BAD_REQUEST)

        scans = PassService.list_gate_history(limit=limit)
        return Response(GateScanSerializer(scans, many=True).data)


class GateMetricsView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Per-gate scan totals for a match",
        tags=["Tickets - Gate"],
        responses={200: GateMetricsSerializer(many=True)},
    )
    def get(self, request, match_id):
        metrics = PassService.gate_metrics_for_match(match_id)
        return Response(GateMetricsSerializer(metrics, many=True).data)


class SalesAnalyticsView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Ticket sales report",
        tags=["Tickets - Analytics"],
        responses={200: SalesAnalyticsSerializer},
    )
    def get(self, request):
        report = CheckoutService.sales_analytics()
        return Response(SalesAnalyticsSerializer(report).data)
