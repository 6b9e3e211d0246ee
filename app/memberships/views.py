"""
Membership API views.

URL Structure:
    GET  /api/v1/memberships/plans/     - Purchasable plans
    GET  /api/v1/memberships/status/    - Caller's current membership
    POST /api/v1/memberships/upgrade/   - Start a plan purchase
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from memberships.serializers import (
    MembershipPlanSerializer,
    MembershipSerializer,
    UpgradeRequestSerializer,
    UpgradeResultSerializer,
)
from memberships.services import MembershipService


class PlanListView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        summary="List membership plans",
        tags=["Memberships"],
        responses={200: MembershipPlanSerializer(many=True)},
    )
    def get(self, request):
        return Response(MembershipPlanSerializer(MembershipService.list_plans(), many=True).data)


class MembershipStatusView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get my membership",
        tags=["Memberships"],
        responses={200: MembershipSerializer, 404: OpenApiResponse(description="No membership")},
    )
    def get(self, request):
        membership = MembershipService.get_status(request.user.id)
        if membership is None:
            return Response(
                {"error": "No active or pending membership", "error_code": "MEMBERSHIP_NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(MembershipSerializer(membership).data)


class UpgradeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Start a membership upgrade",
        tags=["Memberships"],
        request=UpgradeRequestSerializer,
        responses={
            200: UpgradeResultSerializer,
            404: OpenApiResponse(description="Plan not found"),
        },
    )
    def post(self, request):
        serializer = UpgradeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MembershipService.start_upgrade(
            request.user.id,
            serializer.validated_data["plan_id"],
            channel=serializer.validated_data.get("channel"),
        )
        if not result.success:
            return Response(
                {"error": result.error, "error_code": result.error_code},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(UpgradeResultSerializer(result.data).data)
