"""Standard error codes for the checkout relay.

Every failure surfaced to the webhook caller carries one of these codes.
The HTTP layer maps codes to status codes; see relay_api.exceptions.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes returned in webhook error bodies."""

    # Webhook input errors
    INVALID_WEBHOOK_SIGNATURE = "ERR_WEBHOOK_001"
    MISSING_CUSTOMER_EMAIL = "ERR_WEBHOOK_002"
    MALFORMED_CHECKOUT_SESSION = "ERR_WEBHOOK_003"

    # Downstream delivery errors
    EMAIL_DELIVERY_FAILED = "ERR_EMAIL_001"

    # Process configuration errors
    CONFIGURATION_ERROR = "ERR_CONFIG_001"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Invalid webhook signature",
    ErrorCode.MISSING_CUSTOMER_EMAIL: "Checkout session has no customer email",
    ErrorCode.MALFORMED_CHECKOUT_SESSION: "Checkout session payload is malformed",
    ErrorCode.EMAIL_DELIVERY_FAILED: "Email sending failed",
    ErrorCode.CONFIGURATION_ERROR: "Service is not configured",
}

# Recovery suggestions for operators reading the delivery log
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Verify webhook secret configuration",
    ErrorCode.MISSING_CUSTOMER_EMAIL: "Require email collection on the checkout session",
    ErrorCode.MALFORMED_CHECKOUT_SESSION: "Check the webhook API version configured in Stripe",
    ErrorCode.EMAIL_DELIVERY_FAILED: "Stripe will redeliver the event; check the email provider status",
    ErrorCode.CONFIGURATION_ERROR: "Set the missing environment variables and redeploy",
}


class ErrorResponse(BaseModel):
    """JSON body returned for every handled failure."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class RelayError(Exception):
    """Exception raised while handling a webhook delivery.

    Caught by the HTTP layer and converted to an ErrorResponse.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details)
