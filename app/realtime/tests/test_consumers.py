"""
Tests for the staff realtime WebSocket consumer.

Each test drives the consumer inside a single event loop via
async_to_sync, against the in-memory channel layer.
"""

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser

from authentication.models import User
from realtime.consumers import RealtimeConsumer

# Channels closes stale DB connections around each consumer dispatch.
pytestmark = pytest.mark.django_db


def _communicator(user):
    communicator = WebsocketCommunicator(RealtimeConsumer.as_asgi(), "/ws/realtime/")
    communicator.scope["user"] = user
    return communicator


class TestConnect:
    """Connection authorization."""

    def test_rejects_anonymous(self):
        """Anonymous sockets should be closed with 4001."""

        async def run():
            communicator = _communicator(AnonymousUser())
            connected, code = await communicator.connect()
            return connected, code

        connected, code = async_to_sync(run)()

        assert connected is False
        assert code == 4001

    def test_rejects_non_staff(self):
        """Fans should be closed with 4003."""

        async def run():
            communicator = _communicator(User(email="fan@example.com"))
            return await communicator.connect()

        connected, code = async_to_sync(run)()

        assert connected is False
        assert code == 4003


class TestEventDelivery:
    """Events published to groups reach connected staff."""

    def test_admin_group_event_is_forwarded(self):
        """realtime.event messages should be forwarded as {event, payload}."""

        async def run():
            communicator = _communicator(User(email="ops@example.com", is_staff=True))
            connected, _ = await communicator.connect()
            assert connected
            await get_channel_layer().group_send(
                "realtime.admin",
                {"type": "realtime.event", "event": "payment.manual_review", "payload": {"amount": 5000}},
            )
            message = await communicator.receive_json_from()
            await communicator.disconnect()
            return message

        message = async_to_sync(run)()

        assert message == {"event": "payment.manual_review", "payload": {"amount": 5000}}

    def test_subscribe_match_receives_match_events(self):
        """Subscribing to a match should deliver that match's gate events."""
        match_id = "0b0c6d1e-8a5f-4c59-9a8e-6f1c2d3e4f50"

        async def run():
            communicator = _communicator(User(email="gate@example.com", is_staff=True))
            await communicator.connect()
            await communicator.send_json_to({"action": "subscribe_match", "match_id": match_id})
            ack = await communicator.receive_json_from()
            await get_channel_layer().group_send(
                f"realtime.match.{match_id}",
                {"type": "realtime.event", "event": "gate.scan", "payload": {"result": "verified"}},
            )
            scan = await communicator.receive_json_from()
            await communicator.disconnect()
            return ack, scan

        ack, scan = async_to_sync(run)()

        assert ack == {"event": "subscribed", "payload": {"match_id": match_id}}
        assert scan["event"] == "gate.scan"

    def test_invalid_match_id_returns_error(self):
        """Malformed match ids should produce an error event."""

        async def run():
            communicator = _communicator(User(email="ops2@example.com", is_staff=True))
            await communicator.connect()
            await communicator.send_json_to({"action": "subscribe_match", "match_id": "nope"})
            reply = await communicator.receive_json_from()
            await communicator.disconnect()
            return reply

        reply = async_to_sync(run)()

        assert reply["event"] == "error"

    def test_ping(self):
        """Ping should answer pong."""

        async def run():
            communicator = _communicator(User(email="ops3@example.com", is_staff=True))
            await communicator.connect()
            await communicator.send_json_to({"action": "ping"})
            reply = await communicator.receive_json_from()
            await communicator.disconnect()
            return reply

        assert async_to_sync(run)() == {"event": "pong", "payload": {}}
