"""
WebSocket consumer for staff dashboards.

Channel Groups:
    - REALTIME_ADMIN_GROUP ("realtime.admin"): every domain event
    - realtime.match.<match_id>: gate scans and metrics for one match

Message Types (from client):
    - {"action": "subscribe_match", "match_id": "<uuid>"}
    - {"action": "unsubscribe_match", "match_id": "<uuid>"}
    - {"action": "ping"}

Message Types (to client):
    - {"event": "<name>", "payload": {...}}
    - {"event": "subscribed", "payload": {"match_id": ...}}
    - {"event": "pong", "payload": {}}
    - {"event": "error", "payload": {"message": ...}}
"""

from __future__ import annotations

import logging
from uuid import UUID

from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings

from realtime.events import match_group

logger = logging.getLogger(__name__)


class RealtimeConsumer(AsyncJsonWebsocketConsumer):
    """
    Staff-only event stream.

    Close codes:
        4001: not authenticated
        4003: authenticated but not staff
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.groups_joined: set[str] = set()

    async def connect(self):
        user = self.scope.get("user")

        if not user or not user.is_authenticated:
            logger.warning("Rejected unauthenticated realtime connection")
            await self.close(code=4001)
            return

        if not user.is_staff:
            logger.warning("Rejected non-staff realtime connection", extra={"user_id": str(user.id)})
            await self.close(code=4003)
            return

        await self._join(settings.REALTIME_ADMIN_GROUP)
        await self.accept()
        logger.info("Staff connected to realtime stream", extra={"user_id": str(user.id)})

    async def disconnect(self, close_code):
        for group in list(self.groups_joined):
            await self.channel_layer.group_discard(group, self.channel_name)
        self.groups_joined.clear()

    async def receive_json(self, content):
        action = content.get("action")

        if action == "ping":
            await self.send_json({"event": "pong", "payload": {}})
        elif action in ("subscribe_match", "unsubscribe_match"):
            match_id = self._parse_match_id(content.get("match_id"))
            if match_id is None:
                await self._send_error("match_id must be a UUID")
                return
            group = match_group(match_id)
            if action == "subscribe_match":
                await self._join(group)
                await self.send_json({"event": "subscribed", "payload": {"match_id": str(match_id)}})
            else:
                await self._leave(group)
                await self.send_json({"event": "unsubscribed", "payload": {"match_id": str(match_id)}})
        else:
            await self._send_error(f"Unknown action: {action}")

    async def realtime_event(self, event):
        """Handler for messages published by ChannelLayerBroadcaster."""
        await self.send_json({"event": event["event"], "payload": event["payload"]})

    async def _join(self, group: str) -> None:
        await self.channel_layer.group_add(group, self.channel_name)
        self.groups_joined.add(group)

    async def _leave(self, group: str) -> None:
        if group in self.groups_joined:
            await self.channel_layer.group_discard(group, self.channel_name)
            self.groups_joined.discard(group)

    async def _send_error(self, message: str) -> None:
        await self.send_json({"event": "error", "payload": {"message": message}})

    @staticmethod
    def _parse_match_id(value) -> UUID | None:
        try:
            return UUID(str(value))
        except (TypeError, ValueError):
            return None
