"""FastAPI exception handlers for converting relay errors to HTTP responses.

The ErrorCode-to-HTTP status mapping follows the webhook contract:
- 400 Bad Request: the delivery itself is unusable (signature, payload)
- 500 Internal Server Error: downstream delivery or configuration failures,
  which make Stripe redeliver the event

Usage:
    from relay_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from relay.config import ConfigurationError
from relay.models.errors import ErrorCode, ErrorResponse, RelayError
from relay.utils.logging import get_logger

logger = get_logger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_CUSTOMER_EMAIL: HTTP_400_BAD_REQUEST,
    ErrorCode.MALFORMED_CHECKOUT_SESSION: HTTP_400_BAD_REQUEST,
    ErrorCode.EMAIL_DELIVERY_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CONFIGURATION_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Convert a RelayError to a JSON error response."""
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_error_response().model_dump(mode="json"),
    )


async def configuration_error_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    """Report missing configuration as a 500 so Stripe keeps retrying.

    The setting names are logged, not returned to the caller.
    """
    logger.error("Configuration error: %s", exc)
    error = ErrorResponse.from_code(ErrorCode.CONFIGURATION_ERROR)
    return JSONResponse(
        status_code=get_http_status_for_error(ErrorCode.CONFIGURATION_ERROR),
        content=error.model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(RelayError, relay_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ConfigurationError, configuration_error_handler)  # type: ignore[arg-type]
