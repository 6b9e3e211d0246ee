"""
Payment domain models.

- ParsedPayment: Structured inbound payment notification (immutable facts)
- PaymentObligation: Expected payment tied to one ticket order,
  membership, shop order or donation
"""

from payments.models.obligation import ENTITY_FIELD_BY_KIND, PaymentObligation
from payments.models.parsed_payment import ParsedPayment

__all__ = [
    "ENTITY_FIELD_BY_KIND",
    "ParsedPayment",
    "PaymentObligation",
]
