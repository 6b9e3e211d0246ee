"""
Per-kind confirm strategies for reconciliation.

STRATEGIES is ordered by matching priority: when one parsed payment
could settle obligations of several kinds, the first kind listed wins.

Usage:
    from payments.strategies import get_strategy

    strategy = get_strategy(obligation.kind)
    payload = strategy.apply(obligation, parsed_payment)
"""

from payments.strategies.base import ObligationStrategy
from payments.strategies.kinds import (
    DonationStrategy,
    MembershipStrategy,
    ShopStrategy,
    TicketStrategy,
)

STRATEGIES: tuple[ObligationStrategy, ...] = (
    TicketStrategy(),
    MembershipStrategy(),
    ShopStrategy(),
    DonationStrategy(),
)

_BY_KIND = {strategy.kind: strategy for strategy in STRATEGIES}


def get_strategy(kind: str) -> ObligationStrategy:
    """
    Return the strategy for an obligation kind.

    Raises:
        ValueError: If kind is not registered
    """
    strategy = _BY_KIND.get(kind)
    if strategy is None:
        supported = ", ".join(_BY_KIND)
        raise ValueError(f"Unknown obligation kind: {kind}. Supported: {supported}")
    return strategy


__all__ = [
    "DonationStrategy",
    "MembershipStrategy",
    "ObligationStrategy",
    "STRATEGIES",
    "ShopStrategy",
    "TicketStrategy",
    "get_strategy",
]
