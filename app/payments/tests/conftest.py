"""
Pytest fixtures for payment tests.

Reconciliation runs under a Redis lock, so every test here gets the
mocked connection from the root conftest.
"""

import pytest

from authentication.tests.factories import UserFactory


@pytest.fixture(autouse=True)
def _redis(mock_redis):
    return mock_redis


@pytest.fixture
def operator(db):
    return UserFactory(is_staff=True)


@pytest.fixture
def fan(db):
    return UserFactory()
