"""
Django app configuration for realtime.
"""

from django.apps import AppConfig


class RealtimeConfig(AppConfig):
    """Configuration for the realtime application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "realtime"
    verbose_name = "Realtime"

    def ready(self):
        """
        Attach the Channels broadcaster once the app registry is ready.

        Until this runs, events go to the not-attached broadcaster and are
        dropped.
        """
        from realtime.broadcaster import ChannelLayerBroadcaster, attach_broadcaster

        attach_broadcaster(ChannelLayerBroadcaster())
