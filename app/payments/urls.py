"""
URL configuration for the payments app.

Routes:
    - GET  /manual-review/       - Obligations awaiting an operator
    - POST /{id}/attach-sms/     - Operator-forced confirmation

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments.views import AttachSmsView, ManualReviewListView

app_name = "payments"

urlpatterns = [
    path("manual-review/", ManualReviewListView.as_view(), name="manual_review"),
    path("<uuid:payment_id>/attach-sms/", AttachSmsView.as_view(), name="attach_sms"),
]
