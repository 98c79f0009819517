"""Pytest configuration and fixtures for checkout relay tests.

This module provides reusable fixtures for testing:
- Environment defaults so settings can be loaded
- Stripe signature generation for real verification
- Sample checkout events
- A recording email sender
"""

import hashlib
import hmac
import json
import os
import time
from typing import Any, Generator
from unittest.mock import MagicMock

import pytest

from relay.config import Settings
from relay.models.checkout import NotificationMessage
from relay.services.email_service import EmailServiceError

# === Environment Setup ===

TEST_STRIPE_SECRET_KEY = "sk_test_abc123xyz"
TEST_WEBHOOK_SECRET = "whsec_test_secret_for_testing"
TEST_SENDGRID_API_KEY = "SG.test-key"
TEST_DOWNLOAD_URL = "https://downloads.example.com/copatcher.zip"
TEST_OPERATOR_EMAIL = "operator@example.com"
TEST_MAIL_FROM = "copat@copatcher.com"

os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")


@pytest.fixture(autouse=True)
def reset_cached_services() -> Generator[None, None, None]:
    """Reset cached settings and services before and after each test."""
    from relay_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


@pytest.fixture
def relay_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """A complete environment for Settings.from_env()."""
    env = {
        "STRIPE_SECRET_KEY": TEST_STRIPE_SECRET_KEY,
        "STRIPE_WEBHOOK_SECRET": TEST_WEBHOOK_SECRET,
        "SENDGRID_API_KEY": TEST_SENDGRID_API_KEY,
        "COPATCHER_DOWNLOAD_URL": TEST_DOWNLOAD_URL,
        "OPERATOR_EMAIL": TEST_OPERATOR_EMAIL,
        "MAIL_FROM": TEST_MAIL_FROM,
        "PAYMENT_DATE_TIMEZONE": "Europe/Copenhagen",
    }
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    return env


@pytest.fixture
def settings() -> Settings:
    """Settings built directly, independent of the environment."""
    return Settings(
        stripe_secret_key=TEST_STRIPE_SECRET_KEY,
        stripe_webhook_secret=TEST_WEBHOOK_SECRET,
        sendgrid_api_key=TEST_SENDGRID_API_KEY,
        download_url=TEST_DOWNLOAD_URL,
        mail_from=TEST_MAIL_FROM,
        operator_email=TEST_OPERATOR_EMAIL,
        payment_date_timezone="Europe/Copenhagen",
    )


# === Stripe helpers ===


def create_stripe_signature(
    payload: bytes,
    secret: str = TEST_WEBHOOK_SECRET,
    timestamp: int | None = None,
) -> str:
    """Create a valid Stripe webhook signature.

    Stripe signatures use HMAC-SHA256 with format: t={timestamp},v1={signature}
    """
    ts = str(int(time.time()) if timestamp is None else timestamp)
    signed_payload = f"{ts}.{payload.decode('utf-8')}"
    signature = hmac.new(
        secret.encode("utf-8"),
        signed_payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={ts},v1={signature}"


def create_checkout_completed_event(
    event_id: str = "evt_1ABC123DEF456",
    email: str | None = "buyer@example.com",
    name: str | None = "Ada Lovelace",
    amount_total: int = 4999,
    currency: str = "usd",
    created: int = 1700000000,
) -> dict[str, Any]:
    """Create a checkout.session.completed webhook event."""
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "created": created,
        "data": {
            "object": {
                "id": "cs_test_abc123",
                "object": "checkout.session",
                "amount_total": amount_total,
                "currency": currency,
                "created": created,
                "payment_status": "paid",
                "customer_details": {"email": email, "name": name},
            },
        },
    }


def create_unhandled_event(event_id: str = "evt_3GHI789JKL012") -> dict[str, Any]:
    """Create an event type the relay ignores."""
    return {
        "id": event_id,
        "object": "event",
        "type": "payment_intent.created",
        "created": int(time.time()),
        "data": {"object": {"id": "pi_test", "object": "payment_intent"}},
    }


def encode_event(event: dict[str, Any]) -> bytes:
    return json.dumps(event).encode("utf-8")


@pytest.fixture
def checkout_completed_event() -> dict[str, Any]:
    return create_checkout_completed_event()


# === Email sender fixtures ===


class RecordingSender:
    """EmailSender that records messages and can fail on chosen recipients."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.sent: list[NotificationMessage] = []
        self.attempts: list[NotificationMessage] = []
        self.fail_for = fail_for or set()

    def send(self, message: NotificationMessage) -> str | None:
        self.attempts.append(message)
        if message.to in self.fail_for:
            raise EmailServiceError("SendGrid returned HTTP 503", status_code=503)
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


@pytest.fixture
def recording_sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def mock_sender() -> MagicMock:
    sender = MagicMock()
    sender.send.return_value = "msg-id"
    return sender
