"""Pydantic models for checkout sessions, notifications and errors."""

from .checkout import (
    CheckoutSession,
    CustomerDetails,
    DispatchResult,
    NotificationMessage,
    SaleDetails,
)
from .errors import ERROR_MESSAGES, ERROR_RECOVERY, ErrorCode, ErrorResponse, RelayError

__all__ = [
    "CheckoutSession",
    "CustomerDetails",
    "DispatchResult",
    "NotificationMessage",
    "SaleDetails",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ErrorCode",
    "ErrorResponse",
    "RelayError",
]
