"""
URL configuration for the tickets app.

All routes are prefixed with /api/v1/tickets/ when included in the main URLconf.
"""

from django.urls import path

from tickets import views

app_name = "tickets"

urlpatterns = [
    # Catalog & checkout
    path("matches/", views.MatchCatalogView.as_view(), name="catalog"),
    path("checkout/", views.CheckoutView.as_view(), name="checkout"),
    # Orders
    path("orders/", views.OrderListView.as_view(), name="order_list"),
    path("orders/<uuid:order_id>/", views.OrderDetailView.as_view(), name="order_detail"),
    path("orders/<uuid:order_id>/cancel/", views.OrderCancelView.as_view(), name="order_cancel"),
    # Passes
    path("passes/", views.PassListView.as_view(), name="pass_list"),
    path("passes/<uuid:pass_id>/rotate/", views.PassRotateView.as_view(), name="pass_rotate"),
    path("passes/<uuid:pass_id>/transfer/", views.PassTransferView.as_view(), name="pass_transfer"),
    path("passes/<uuid:pass_id>/claim/", views.PassClaimView.as_view(), name="pass_claim"),
    path("passes/<uuid:pass_id>/refund/", views.PassRefundView.as_view(), name="pass_refund"),
    # Gate operations
    path("verify/", views.VerifyPassView.as_view(), name="verify"),
    path("gate-scans/", views.GateScanListView.as_view(), name="gate_scans"),
    path("matches/<uuid:match_id>/gate-metrics/", views.GateMetricsView.as_view(), name="gate_metrics"),
    # Analytics
    path("analytics/", views.SalesAnalyticsView.as_view(), name="analytics"),
]
