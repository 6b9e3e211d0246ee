"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures.
App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os
from dataclasses import dataclass

import django
import pytest

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("MTN_MOMO_PAY_CODE", "250250")
os.environ.setdefault("AIRTEL_MONEY_PAY_CODE", "250650")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # No Redis in the test run: channel layer in memory, cache local
    settings.CHANNEL_LAYERS = {
        "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"},
    }
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
    }
    settings.CELERY_TASK_ALWAYS_EAGER = True

    # The test client speaks plain http
    settings.SECURE_SSL_REDIRECT = False


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_views.py, test_*_service.py, test_tasks.py, etc. → integration
    - test_models.py, test_locks.py, test_metadata.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_consumers.py",
        "test_checkout_service.py",
        "test_pass_service.py",
        "test_reconciliation_service.py",
    ]

    unit_patterns = [
        "test_managers.py",
        "test_checks.py",
        "test_exceptions.py",
        "test_state_transitions.py",
        "test_locks.py",
        "test_metadata.py",
        "test_codes.py",
        "test_zones.py",
        "test_broadcaster.py",
        "test_events.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Realtime Fixtures
# =============================================================================


@dataclass
class PublishedEvent:
    event: str
    payload: dict
    groups: list


class RecordingBroadcaster:
    """Broadcaster that keeps every published event for assertions."""

    is_attached = True

    def __init__(self):
        self.events: list[PublishedEvent] = []

    def publish(self, event, payload, groups):
        self.events.append(PublishedEvent(event=event, payload=payload, groups=list(groups)))

    def named(self, event: str) -> list[PublishedEvent]:
        return [e for e in self.events if e.event == event]

    def last(self, event: str) -> PublishedEvent:
        matches = self.named(event)
        assert matches, f"no {event!r} event published (got {[e.event for e in self.events]})"
        return matches[-1]


@pytest.fixture(autouse=True)
def broadcaster():
    """Replace the attached broadcaster with a recording one for every test."""
    from realtime.broadcaster import attach_broadcaster

    recorder = RecordingBroadcaster()
    previous = attach_broadcaster(recorder)
    yield recorder
    attach_broadcaster(previous)


# =============================================================================
# Redis Fixtures
# =============================================================================


@pytest.fixture
def mock_redis(mocker):
    """Mock the Redis connection used by DistributedLock."""
    redis = mocker.MagicMock()
    redis.set.return_value = True
    redis.eval.return_value = 1
    mocker.patch("payments.locks.get_redis_connection", return_value=redis)
    return redis


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client for public endpoints."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create JWT-authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, user):
            client = authenticated_client_factory(user)
            response = client.get("/api/v1/tickets/orders/")
    """
    from rest_framework.test import APIClient
    from rest_framework_simplejwt.tokens import RefreshToken

    def _make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make_client
