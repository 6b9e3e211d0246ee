"""
Ticketing services.

- CheckoutService: Pending orders under the seat-capacity invariant
- PassService: Pass issuance, gate verification, rotation and transfer
"""

from tickets.services.checkout_service import CheckoutService
from tickets.services.pass_service import PassService

__all__ = [
    "CheckoutService",
    "PassService",
]
