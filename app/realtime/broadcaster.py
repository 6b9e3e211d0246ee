"""
Event broadcaster abstraction.

Domain services never talk to the channel layer directly. They call the
currently attached broadcaster, which may not exist yet (management
commands, Celery workers started before Channels, tests). In that case
the NullBroadcaster drops events instead of raising.

Usage:
    from realtime.broadcaster import get_broadcaster

    get_broadcaster().publish("gate.scan", {"pass_id": "..."}, ["realtime.admin"])

    # Tests
    previous = attach_broadcaster(RecordingBroadcaster())
    ...
    attach_broadcaster(previous)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Protocol

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Any

logger = logging.getLogger(__name__)

# Channels consumer handler name: "realtime.event" -> RealtimeConsumer.realtime_event
EVENT_MESSAGE_TYPE = "realtime.event"


class Broadcaster(Protocol):
    """Interface every broadcaster implements."""

    is_attached: bool

    def publish(self, event: str, payload: dict[str, Any], groups: Sequence[str]) -> None:
        """Deliver one event to every group in groups."""
        ...


class NullBroadcaster:
    """Broadcaster used before a transport is attached. Drops everything."""

    is_attached = False

    def publish(self, event: str, payload: dict[str, Any], groups: Sequence[str]) -> None:
        logger.debug("Broadcaster not attached, dropping event", extra={"event": event})


class ChannelLayerBroadcaster:
    """
    Broadcaster backed by the configured Channels layer.

    The layer is resolved on every publish so settings overrides in tests
    and late layer configuration are honored. A missing layer
    (CHANNEL_LAYERS unset) behaves like the NullBroadcaster.
    """

    is_attached = True

    def publish(self, event: str, payload: dict[str, Any], groups: Sequence[str]) -> None:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.debug("No channel layer configured", extra={"event": event})
            return

        message = {"type": EVENT_MESSAGE_TYPE, "event": event, "payload": payload}
        for group in groups:
            async_to_sync(channel_layer.group_send)(group, message)


_lock = threading.Lock()
_broadcaster: Broadcaster = NullBroadcaster()


def get_broadcaster() -> Broadcaster:
    """Return the currently attached broadcaster."""
    return _broadcaster


def attach_broadcaster(broadcaster: Broadcaster) -> Broadcaster:
    """
    Attach a broadcaster and return the one it replaced.

    Args:
        broadcaster: Any object implementing the Broadcaster protocol

    Returns:
        The previously attached broadcaster
    """
    global _broadcaster
    with _lock:
        previous = _broadcaster
        _broadcaster = broadcaster
    return previous


def detach_broadcaster() -> Broadcaster:
    """Revert to the not-attached broadcaster, returning the detached one."""
    return attach_broadcaster(NullBroadcaster())
