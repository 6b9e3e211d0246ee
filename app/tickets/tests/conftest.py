"""
Pytest fixtures for ticketing tests.
"""

import pytest

from authentication.tests.factories import UserFactory
from core.helpers import hash_string
from tickets.state_machines import TicketOrderStatus
from tickets.tests.factories import (
    MatchFactory,
    TicketOrderFactory,
    TicketOrderItemFactory,
    TicketPassFactory,
)


@pytest.fixture
def fan(db):
    return UserFactory()


@pytest.fixture
def other_fan(db):
    return UserFactory()


@pytest.fixture
def steward(db):
    return UserFactory(is_staff=True)


@pytest.fixture
def match(db):
    return MatchFactory()


@pytest.fixture
def held_seats(db):
    """
    Create an order holding `quantity` seats of `zone` for a match.

    Usage:
        held_seats(match, "VIP", 149)
        held_seats(match, "VIP", 3, status=TicketOrderStatus.PAID)
    """

    def _hold(match, zone, quantity, status=TicketOrderStatus.PENDING, **order_kwargs):
        order = TicketOrderFactory(match=match, status=status, total=25000 * quantity, **order_kwargs)
        TicketOrderItemFactory(order=order, zone=zone, unit_price=25000, quantity=quantity)
        return order

    return _hold


@pytest.fixture
def paid_order(db, fan, match):
    """Paid order for two VIP seats, without passes."""
    order = TicketOrderFactory(match=match, user=fan, status=TicketOrderStatus.PAID, total=50000)
    TicketOrderItemFactory(order=order, zone="VIP", unit_price=25000, quantity=2)
    return order


@pytest.fixture
def active_pass(db, fan, match):
    """Active pass held by `fan` whose raw token is "known-token"."""
    order = TicketOrderFactory(match=match, user=fan, status=TicketOrderStatus.PAID)
    return TicketPassFactory(order=order, holder=fan, token_hash=hash_string("known-token"))
