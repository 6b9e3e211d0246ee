"""
URL configuration for the Django application.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/tickets/               - Ticketing endpoints
        matches/                   - Match catalog with remaining seats
        checkout/                  - Create a pending order (POST)
        orders/                    - Current user's orders
        orders/{id}/               - Order receipt
        orders/{id}/cancel/        - Cancel a pending order (POST)
        passes/                    - Current user's active passes
        passes/{id}/rotate/        - Rotate pass token (POST)
        passes/{id}/transfer/      - Start a pass transfer (POST)
        passes/{id}/claim/         - Claim a pass transfer (POST)
        passes/{id}/refund/        - Refund a pass (POST, staff)
        verify/                    - Gate verification (POST, staff)
        gate-scans/                - Recent gate scans (staff)
        matches/{id}/gate-metrics/ - Per-gate scan totals (staff)
    /api/v1/memberships/           - Membership endpoints
        plans/                     - Purchasable plans
        status/                    - Current user's membership
        upgrade/                   - Start a membership purchase (POST)
    /api/v1/payments/              - Payment operator endpoints (staff)
        manual-review/             - Obligations awaiting an operator
        {id}/attach-sms/           - Confirm an obligation with a parsed payment (POST)

WebSocket routes live in realtime.routing (see config.asgi).

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("tickets/", include("tickets.urls")),
    path("memberships/", include("memberships.urls")),
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Fan Platform Admin"
admin.site.site_title = "Fan Platform"
admin.site.index_title = "Tickets, memberships and payments"
