"""
Ticketing domain models.

- Match: A fixture tickets are sold for
- TicketOrder / TicketOrderItem: A fan's order and its per-zone lines
- TicketPass: One redeemable credential per purchased seat
- GateScan: Append-only log of gate redemption attempts
"""

from tickets.models.match import Match
from tickets.models.order import TicketOrder, TicketOrderItem
from tickets.models.ticket_pass import GateScan, TicketPass

__all__ = [
    "GateScan",
    "Match",
    "TicketOrder",
    "TicketOrderItem",
    "TicketPass",
]
