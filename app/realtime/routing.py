"""
WebSocket URL routing for the realtime application.

URL Patterns:
    ws/realtime/ - Staff event stream

Authentication:
    JWT access token as ?token=<jwt> or the "jwt" subprotocol
    (see realtime.middleware.JWTAuthMiddleware).
"""

from django.urls import path

from realtime import consumers

websocket_urlpatterns = [
    path("ws/realtime/", consumers.RealtimeConsumer.as_asgi()),
]
