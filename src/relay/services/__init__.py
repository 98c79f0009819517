"""Services for the checkout relay.

The webhook handler lives in relay.services.webhook_handler and is not
re-exported here because it depends on relay.config.
"""

from .dispatch import DispatchPipeline
from .email_service import EmailSender, EmailServiceError, SendGridEmailSender, SesEmailSender
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .stripe_service import StripeService, StripeServiceError

__all__ = [
    "DispatchPipeline",
    "EmailSender",
    "EmailServiceError",
    "SendGridEmailSender",
    "SesEmailSender",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "StripeService",
    "StripeServiceError",
]
