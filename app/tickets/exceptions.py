"""
Ticketing exceptions.

Expected checkout and pass failures travel as ServiceResult.failure.
These exceptions cover calls made by other components (reconciliation
issuing passes) where a failure means inconsistent data.

Exception Hierarchy:
    BaseApplicationError
    ├── NotFoundError
    │   └── OrderNotFoundError
    └── ConflictError
        └── OrderNotPaidError
"""

from core.exceptions import ConflictError, NotFoundError


class OrderNotFoundError(NotFoundError):
    """Raised when a ticket order referenced internally does not exist."""

    default_error_code: str = "ORDER_NOT_FOUND"


class OrderNotPaidError(ConflictError):
    """Raised when passes are requested for an order that is not paid."""

    default_error_code: str = "ORDER_NOT_PAID"
