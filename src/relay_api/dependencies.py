"""FastAPI dependency injection providers for relay services.

Services are built once from the immutable Settings and cached with
@lru_cache, so provider clients are configured at startup and never
mutated afterwards.

Service Dependency Graph:
    Settings (get_settings)
        ├── StripeService
        ├── EmailSender (SendGrid or SES)
        │       └── DispatchPipeline
        └── WebhookHandler

Testing:
    Override get_webhook_handler via app.dependency_overrides, or call
    reset_services() to rebuild everything from a fresh environment.
"""

from functools import lru_cache

from relay.config import get_settings
from relay.services.dispatch import DispatchPipeline
from relay.services.email_service import EmailSender, SendGridEmailSender, SesEmailSender
from relay.services.ssm_service import get_ssm_service
from relay.services.stripe_service import StripeService
from relay.services.webhook_handler import WebhookHandler


@lru_cache
def get_stripe_service() -> StripeService:
    """Get cached StripeService configured with the Stripe secrets."""
    settings = get_settings()
    return StripeService(
        api_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        tolerance=settings.stripe_webhook_tolerance,
    )


@lru_cache
def get_email_sender() -> EmailSender:
    """Get cached EmailSender for the configured provider."""
    settings = get_settings()
    if settings.email_provider == "ses":
        return SesEmailSender(region=settings.ses_region)
    return SendGridEmailSender(api_key=settings.sendgrid_api_key or "")


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    """Get cached WebhookHandler wired to the Stripe service and sender."""
    return WebhookHandler.from_settings(
        get_settings(),
        stripe_service=get_stripe_service(),
        pipeline=DispatchPipeline(get_email_sender()),
    )


def reset_services() -> None:
    """Clear all cached service instances and settings.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    get_settings.cache_clear()
    get_ssm_service.cache_clear()
    get_stripe_service.cache_clear()
    get_email_sender.cache_clear()
    get_webhook_handler.cache_clear()
