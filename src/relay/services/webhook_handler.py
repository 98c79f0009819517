"""Webhook handler for Stripe checkout events.

Provides the verify -> branch -> extract -> dispatch flow separate from
HTTP routing concerns, so it can be unit tested without a web stack and
reused behind other transports.
"""

from zoneinfo import ZoneInfo

from pydantic import BaseModel, ValidationError

from relay.config import Settings
from relay.models.checkout import CheckoutSession, DispatchResult
from relay.models.errors import ErrorCode, RelayError
from relay.services.dispatch import DispatchPipeline
from relay.services.notifications import (
    build_download_email,
    build_sale_notification,
    extract_sale_details,
)
from relay.services.stripe_service import StripeService, StripeServiceError
from relay.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"

STEP_CUSTOMER_DOWNLOAD = "customer_download"
STEP_OPERATOR_ALERT = "operator_sale_alert"


class WebhookOutcome(BaseModel):
    """Result of a handled webhook delivery."""

    event_id: str | None = None
    event_type: str | None = None
    processing_result: str  # "notified" or "skipped"
    dispatches: list[DispatchResult] = []


class WebhookHandler:
    """Handler for verified Stripe webhook deliveries.

    Only checkout.session.completed triggers work: a download email to the
    customer, then a sale alert to the operator. Every other event type is
    acknowledged and ignored. Deliveries are not deduplicated.
    """

    def __init__(
        self,
        *,
        stripe_service: StripeService,
        pipeline: DispatchPipeline,
        download_url: str,
        mail_from: str,
        operator_email: str,
        reply_to: str | None,
        timezone: ZoneInfo,
    ) -> None:
        self._stripe = stripe_service
        self._pipeline = pipeline
        self._download_url = download_url
        self._mail_from = mail_from
        self._operator_email = operator_email
        self._reply_to = reply_to
        self._timezone = timezone

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        stripe_service: StripeService,
        pipeline: DispatchPipeline,
    ) -> "WebhookHandler":
        """Build a handler using the addresses and timezone from settings."""
        return cls(
            stripe_service=stripe_service,
            pipeline=pipeline,
            download_url=settings.download_url,
            mail_from=settings.mail_from,
            operator_email=settings.operator_email,
            reply_to=settings.reply_to,
            timezone=settings.timezone,
        )

    def handle(self, payload: bytes, signature: str | None) -> WebhookOutcome:
        """Verify a raw delivery and act on it.

        Args:
            payload: Raw request body bytes.
            signature: Stripe-Signature header value, or None if absent.

        Returns:
            The outcome for a verified event.

        Raises:
            RelayError: INVALID_WEBHOOK_SIGNATURE, MISSING_CUSTOMER_EMAIL,
                MALFORMED_CHECKOUT_SESSION or EMAIL_DELIVERY_FAILED.
        """
        event = self.verify(payload, signature)

        event_id = event.get("id")
        event_type = event.get("type")
        log_webhook_event(
            logger,
            event_type,
            event_id,
            result="received",
            payload_hash=StripeService.compute_payload_hash(payload),
        )

        if event_type != CHECKOUT_SESSION_COMPLETED:
            log_webhook_event(logger, event_type, event_id, result="skipped")
            return WebhookOutcome(
                event_id=event_id,
                event_type=event_type,
                processing_result="skipped",
            )

        return self.process_checkout_completed(event)

    def verify(self, payload: bytes, signature: str | None) -> dict:
        """Verify the signature; every failure becomes one RelayError."""
        try:
            return self._stripe.verify_webhook_signature(payload, signature)
        except StripeServiceError as e:
            logger.warning("Webhook delivery rejected: %s", e)
            raise RelayError(
                code=ErrorCode.INVALID_WEBHOOK_SIGNATURE,
                details={"message": f"Webhook Error: {e}"},
            ) from e

    def process_checkout_completed(self, event: dict) -> WebhookOutcome:
        """Send the customer and operator emails for a completed checkout.

        Args:
            event: Verified checkout.session.completed event.

        Returns:
            Outcome with both dispatch results.

        Raises:
            RelayError: If the session is unusable or a send fails.
        """
        event_id = event.get("id")
        event_type = event.get("type", CHECKOUT_SESSION_COMPLETED)
        session_object = (event.get("data") or {}).get("object") or {}

        try:
            session = CheckoutSession.model_validate(session_object)
        except ValidationError as e:
            log_webhook_event(logger, event_type, event_id, result="error", error="malformed session")
            raise RelayError(
                code=ErrorCode.MALFORMED_CHECKOUT_SESSION,
                details={"message": _first_error(e)},
            ) from e

        if not session.customer_email:
            log_webhook_event(logger, event_type, event_id, result="error", error="missing customer email")
            raise RelayError(
                code=ErrorCode.MISSING_CUSTOMER_EMAIL,
                details={"message": "customer_details.email is required"},
            )

        try:
            sale = extract_sale_details(session, self._timezone)
        except (ValueError, OverflowError, OSError) as e:
            # created can still overflow once shifted into the local zone
            log_webhook_event(logger, event_type, event_id, result="error", error="unformattable session")
            raise RelayError(
                code=ErrorCode.MALFORMED_CHECKOUT_SESSION,
                details={"message": f"created: {e}"},
            ) from e

        results = self._pipeline.run(
            [
                (
                    STEP_CUSTOMER_DOWNLOAD,
                    build_download_email(
                        email=sale.customer_email,
                        name=sale.customer_name,
                        download_url=self._download_url,
                        sender=self._mail_from,
                        reply_to=self._reply_to,
                    ),
                ),
                (
                    STEP_OPERATOR_ALERT,
                    build_sale_notification(
                        sale,
                        sender=self._mail_from,
                        operator=self._operator_email,
                    ),
                ),
            ]
        )

        if not DispatchPipeline.succeeded(results):
            failed = results[-1]
            log_webhook_event(
                logger,
                event_type,
                event_id,
                result="error",
                error=f"{failed.step}: {failed.error}",
            )
            raise RelayError(
                code=ErrorCode.EMAIL_DELIVERY_FAILED,
                details={"step": failed.step},
            )

        log_webhook_event(
            logger,
            event_type,
            event_id,
            result="notified",
            amount=sale.amount_paid,
            currency=sale.currency,
        )
        return WebhookOutcome(
            event_id=event_id,
            event_type=event_type,
            processing_result="notified",
            dispatches=results,
        )


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "object"
    return f"{location}: {first['msg']}"
