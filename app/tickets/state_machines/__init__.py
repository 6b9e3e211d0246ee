"""
State machine enums for ticketing models.
"""

from tickets.state_machines.states import (
    GateScanResult,
    MatchStatus,
    PassVerificationStatus,
    TicketOrderStatus,
    TicketPassState,
)

__all__ = [
    "GateScanResult",
    "MatchStatus",
    "PassVerificationStatus",
    "TicketOrderStatus",
    "TicketPassState",
]
