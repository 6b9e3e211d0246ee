"""
Base exception classes for application-wide error handling.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── NotFoundError - Resource not found
    └── ConflictError - State conflicts (duplicates, concurrent modifications)

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError(
        f"TicketOrder {order_id} not found",
        error_code="ORDER_NOT_FOUND",
        details={"order_id": str(order_id)},
    )

Note:
    Expected business failures travel as ServiceResult.failure (see
    core.services). These exceptions are for failures the caller is not
    expected to handle inline: corrupted data, lock timeouts, bugs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, states, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "TicketPass 3f1c... not found",
                "error_code": "PASS_NOT_FOUND",
                "details": {"pass_id": "3f1c..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class NotFoundError(BaseApplicationError):
    """Raised when a requested resource is not found."""

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Invalid state transitions
    - Concurrent modification conflicts
    - Lock acquisition timeouts

    Example:
        if order.status != OrderStatus.PENDING:
            raise ConflictError(
                f"Cannot cancel order in {order.status} status",
                error_code="INVALID_STATE_TRANSITION",
                details={"current_status": order.status, "action": "cancel"},
            )
    """

    default_error_code: str = "CONFLICT"
