"""Stripe webhook verification service.

Wraps stripe.Webhook.construct_event so callers get a plain dict for a
verified event, or a single StripeServiceError for every kind of failure.
"""

import hashlib
import json
import logging

import stripe

logger = logging.getLogger(__name__)


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class StripeService:
    """Service for Stripe webhook operations.

    Usage:
        stripe_svc = StripeService(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
        )
        event = stripe_svc.verify_webhook_signature(raw_body, signature)
    """

    def __init__(
        self,
        *,
        api_key: str,
        webhook_secret: str,
        tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE,
    ) -> None:
        """Initialize with credentials.

        Args:
            api_key: Stripe secret API key, bound to constructed events.
            webhook_secret: Endpoint signing secret (whsec_...).
            tolerance: Maximum age in seconds of a signature timestamp.
        """
        self._api_key = api_key
        self._webhook_secret = webhook_secret
        self._tolerance = tolerance

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> dict:
        """Verify a webhook signature and parse the event.

        Args:
            payload: Raw request body bytes, exactly as received.
            signature: Stripe-Signature header value.

        Returns:
            The verified event as a plain dictionary.

        Raises:
            StripeServiceError: If the header is missing, the payload is not
                a JSON object, or the signature does not match.
        """
        if not signature:
            raise StripeServiceError("No Stripe-Signature header value was provided")

        try:
            stripe.Webhook.construct_event(
                payload,
                signature,
                self._webhook_secret,
                tolerance=self._tolerance,
                api_key=self._api_key,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", e.user_message or str(e))
            raise StripeServiceError(e.user_message or str(e)) from e
        except (ValueError, AttributeError, TypeError) as e:
            # Valid JSON that is not an object fails inside Event.construct_from
            logger.warning("Invalid webhook payload: %s", e)
            raise StripeServiceError(f"Invalid payload: {e}") from e

        # Plain nested dicts for the verified bytes
        event = json.loads(payload)
        if not isinstance(event, dict):
            raise StripeServiceError("Invalid payload: event must be a JSON object")
        logger.info("Webhook signature verified for event: %s", event.get("id"))
        return event

    @staticmethod
    def compute_payload_hash(payload: bytes) -> str:
        """Compute SHA-256 hash of a webhook payload for audit logging.

        Args:
            payload: Raw webhook payload bytes.

        Returns:
            Hex-encoded SHA-256 hash.
        """
        return hashlib.sha256(payload).hexdigest()
