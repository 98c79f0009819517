"""Transactional email senders.

Two interchangeable providers share the EmailSender protocol:
- SendGridEmailSender: SendGrid v3 Mail Send API via the sendgrid client
- SesEmailSender: Amazon SES via boto3

Both raise EmailServiceError for any provider-side failure so callers only
need to handle one exception type.
"""

import logging
from typing import Protocol
from urllib.error import URLError

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, ReplyTo

from relay.models.checkout import NotificationMessage

logger = logging.getLogger(__name__)


class EmailServiceError(Exception):
    """Raised when an email cannot be handed to the provider."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize with message and optional provider HTTP status.

        Args:
            message: Human-readable error message.
            status_code: HTTP status returned by the provider, if any.
        """
        super().__init__(message)
        self.status_code = status_code


class EmailSender(Protocol):
    """Anything that can deliver a NotificationMessage."""

    def send(self, message: NotificationMessage) -> str | None:
        """Send one message and return the provider message ID, if known."""
        ...


class SendGridEmailSender:
    """Send email through SendGrid.

    Usage:
        sender = SendGridEmailSender(api_key=settings.sendgrid_api_key)
        message_id = sender.send(message)
    """

    def __init__(self, api_key: str, client: SendGridAPIClient | None = None) -> None:
        self._client = client or SendGridAPIClient(api_key)

    def send(self, message: NotificationMessage) -> str | None:
        """Send a message via the SendGrid Mail Send API.

        Args:
            message: Message to deliver.

        Returns:
            The X-Message-Id header of the accepted request, if present.

        Raises:
            EmailServiceError: If SendGrid rejects the request or is unreachable.
        """
        mail = Mail(
            from_email=message.sender,
            to_emails=message.to,
            subject=message.subject,
            html_content=message.html,
        )
        if message.reply_to:
            mail.reply_to = ReplyTo(message.reply_to)

        try:
            response = self._client.send(mail)
        except HTTPError as e:
            logger.error("SendGrid rejected message to %s: %s %s", message.to, e.status_code, e.body)
            raise EmailServiceError(
                f"SendGrid returned HTTP {e.status_code}",
                status_code=e.status_code,
            ) from e
        except URLError as e:
            logger.error("SendGrid unreachable: %s", e.reason)
            raise EmailServiceError(f"SendGrid unreachable: {e.reason}") from e

        headers = response.headers or {}
        return headers.get("X-Message-Id")


class SesEmailSender:
    """Send email through Amazon SES.

    Usage:
        sender = SesEmailSender(region=settings.ses_region)
        message_id = sender.send(message)
    """

    def __init__(self, region: str | None = None, client=None) -> None:
        self._client = client or boto3.client("ses", region_name=region)

    def send(self, message: NotificationMessage) -> str | None:
        """Send a message via SES SendEmail.

        Args:
            message: Message to deliver.

        Returns:
            The SES MessageId.

        Raises:
            EmailServiceError: If SES rejects the request or is unreachable.
        """
        params: dict = {
            "Source": message.sender,
            "Destination": {"ToAddresses": [message.to]},
            "Message": {
                "Subject": {"Data": message.subject, "Charset": "UTF-8"},
                "Body": {"Html": {"Data": message.html, "Charset": "UTF-8"}},
            },
        }
        if message.reply_to:
            params["ReplyToAddresses"] = [message.reply_to]

        try:
            response = self._client.send_email(**params)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            logger.error("SES rejected message to %s: %s", message.to, error_code)
            raise EmailServiceError(f"SES error: {error_code}", status_code=status) from e
        except BotoCoreError as e:
            logger.error("SES unreachable: %s", e)
            raise EmailServiceError(f"SES unreachable: {e}") from e

        return response.get("MessageId")
