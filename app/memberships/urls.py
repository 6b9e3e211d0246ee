"""
URL configuration for the memberships app.

All routes are prefixed with /api/v1/memberships/ when included in the main URLconf.
"""

from django.urls import path

from memberships.views import MembershipStatusView, PlanListView, UpgradeView

app_name = "memberships"

urlpatterns = [
    path("plans/", PlanListView.as_view(), name="plans"),
    path("status/", MembershipStatusView.as_view(), name="status"),
    path("upgrade/", UpgradeView.as_view(), name="upgrade"),
]
