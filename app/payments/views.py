"""
Operator API for payment reconciliation.

URL Structure:
    GET  /api/v1/payments/manual-review/       - Obligations awaiting an operator
    POST /api/v1/payments/{id}/attach-sms/     - Confirm an obligation with a parsed payment

Staff only. Business logic lives in ReconciliationService.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError
from payments.serializers import (
    AttachSmsRequestSerializer,
    ManualReviewSerializer,
    ReconciliationOutcomeSerializer,
)
from payments.services import ReconciliationService

# ServiceResult error codes -> HTTP status
ERROR_STATUS = {
    "PAYMENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PARSED_PAYMENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
}


class ManualReviewListView(APIView):
    """
    List obligations in manual review, newest first.

    URL: /api/v1/payments/manual-review/?limit=50
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="List payments awaiting manual review",
        tags=["Payments - Operator"],
        parameters=[OpenApiParameter("limit", int, description="Maximum rows (default 50, max 200)")],
        responses={200: ManualReviewSerializer(many=True)},
    )
    def get(self, request):
        try:
            limit = min(max(int(request.query_params.get("limit", 50)), 1), 200)
        except ValueError:
            return Response({"detail": "limit must be an integer"}, status=status.HTTP_400_BAD_REQUEST)

        obligations = ReconciliationService.list_manual_review(limit=limit)
        return Response(ManualReviewSerializer(obligations, many=True).data)


class AttachSmsView(APIView):
    """
    Force-confirm an obligation with a parsed payment.

    URL: /api/v1/payments/{payment_id}/attach-sms/

    Request body:
        {"parsed_payment_id": "<uuid>"}
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        summary="Attach a parsed payment to an obligation",
        tags=["Payments - Operator"],
        request=AttachSmsRequestSerializer,
        responses={
            200: ReconciliationOutcomeSerializer,
            404: OpenApiResponse(description="Payment or parsed payment not found"),
            409: OpenApiResponse(description="Payment cannot take this SMS"),
        },
    )
    def post(self, request, payment_id):
        serializer = AttachSmsRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = ReconciliationService.attach_sms_to_payment(
                payment_id=payment_id,
                parsed_payment_id=serializer.validated_data["parsed_payment_id"],
            )
        except BaseApplicationError as exc:
            return Response(exc.to_dict(), status=status.HTTP_409_CONFLICT)

        if not result.success:
            code = ERROR_STATUS.get(result.error_code, status.HTTP_409_CONFLICT)
            return Response(result.to_response(), status=code)

        return Response(ReconciliationOutcomeSerializer(result.data).data)
