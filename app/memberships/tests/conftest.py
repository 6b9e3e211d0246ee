"""Pytest fixtures for membership tests."""

import pytest

from authentication.tests.factories import UserFactory
from memberships.tests.factories import MembershipPlanFactory


@pytest.fixture
def fan(db):
    return UserFactory()


@pytest.fixture
def plan(db):
    return MembershipPlanFactory(name="Gikundiro Gold", price=30000, duration_days=90)
