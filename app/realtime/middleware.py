"""
WebSocket authentication middleware.

Authenticates the staff dashboard socket with the same SimpleJWT access
tokens the HTTP API accepts.

Token Passing Methods:
    1. Query string: ws://host/ws/realtime/?token=<jwt_token>
    2. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>

Usage in config/asgi.py:
    application = ProtocolTypeRouter({
        "websocket": JWTAuthMiddleware(URLRouter(websocket_urlpatterns)),
    })
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(BaseMiddleware):
    """
    Attach the token's user to scope["user"], or AnonymousUser.

    Token sources (in order of precedence):
        1. Query string: ?token=<jwt_token>
        2. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>
    """

    async def __call__(self, scope, receive, send):
        token = self._get_token_from_query(scope) or self._get_token_from_subprotocol(scope)

        if token:
            scope["user"] = await self._get_user_from_token(token)
        else:
            scope["user"] = AnonymousUser()

        return await super().__call__(scope, receive, send)

    def _get_token_from_query(self, scope) -> str | None:
        query_string = scope.get("query_string", b"").decode()
        token_list = parse_qs(query_string).get("token", [])
        return token_list[0] if token_list else None

    def _get_token_from_subprotocol(self, scope) -> str | None:
        subprotocols = scope.get("subprotocols", [])
        if len(subprotocols) >= 2 and subprotocols[0] == "jwt":
            return subprotocols[1]
        return None

    @database_sync_to_async
    def _get_user_from_token(self, token: str):
        User = get_user_model()

        try:
            user_id = AccessToken(token)["user_id"]
            user = User.objects.get(id=user_id)
        except TokenError as e:
            logger.warning("Invalid JWT token on realtime socket: %s", e)
            return AnonymousUser()
        except User.DoesNotExist:
            logger.warning("User not found for realtime socket token")
            return AnonymousUser()

        if not user.is_active:
            logger.warning("Inactive user attempted realtime connection", extra={"user_id": str(user_id)})
            return AnonymousUser()
        return user
