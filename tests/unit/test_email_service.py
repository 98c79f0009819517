"""Unit tests for the SendGrid and SES email senders.

SendGrid calls are mocked at the client; SES runs against moto.
"""

from unittest.mock import MagicMock
from urllib.error import URLError

import boto3
import pytest
from moto import mock_aws
from python_http_client.exceptions import HTTPError

from relay.models.checkout import NotificationMessage
from relay.services.email_service import (
    EmailServiceError,
    SendGridEmailSender,
    SesEmailSender,
)

MESSAGE = NotificationMessage(
    to="buyer@example.com",
    sender="copat@copatcher.com",
    reply_to="support@example.com",
    subject="Copatcher Download",
    html="<h1>Hi</h1>",
)


# === SendGrid ===


@pytest.fixture
def sendgrid_client() -> MagicMock:
    client = MagicMock()
    response = MagicMock()
    response.status_code = 202
    response.headers = {"X-Message-Id": "sg-message-123"}
    client.send.return_value = response
    return client


class TestSendGridEmailSender:
    def test_sends_mail_and_returns_message_id(self, sendgrid_client: MagicMock):
        sender = SendGridEmailSender(api_key="SG.test", client=sendgrid_client)

        message_id = sender.send(MESSAGE)

        assert message_id == "sg-message-123"
        mail = sendgrid_client.send.call_args.args[0]
        body = mail.get()
        assert body["from"]["email"] == "copat@copatcher.com"
        assert body["reply_to"]["email"] == "support@example.com"
        assert body["subject"] == "Copatcher Download"
        assert body["personalizations"][0]["to"][0]["email"] == "buyer@example.com"
        assert body["content"][0]["type"] == "text/html"
        assert body["content"][0]["value"] == "<h1>Hi</h1>"

    def test_omits_reply_to_when_absent(self, sendgrid_client: MagicMock):
        sender = SendGridEmailSender(api_key="SG.test", client=sendgrid_client)

        sender.send(MESSAGE.model_copy(update={"reply_to": None}))

        body = sendgrid_client.send.call_args.args[0].get()
        assert "reply_to" not in body

    def test_http_error_raises_email_service_error(self, sendgrid_client: MagicMock):
        sendgrid_client.send.side_effect = HTTPError(
            401, "Unauthorized", b'{"errors":[{"message":"bad key"}]}', {}
        )
        sender = SendGridEmailSender(api_key="SG.test", client=sendgrid_client)

        with pytest.raises(EmailServiceError) as exc_info:
            sender.send(MESSAGE)

        assert exc_info.value.status_code == 401
        assert "401" in str(exc_info.value)

    def test_connection_error_raises_email_service_error(self, sendgrid_client: MagicMock):
        sendgrid_client.send.side_effect = URLError("Name or service not known")
        sender = SendGridEmailSender(api_key="SG.test", client=sendgrid_client)

        with pytest.raises(EmailServiceError) as exc_info:
            sender.send(MESSAGE)

        assert exc_info.value.status_code is None

    def test_missing_message_id_header_returns_none(self, sendgrid_client: MagicMock):
        sendgrid_client.send.return_value.headers = {}
        sender = SendGridEmailSender(api_key="SG.test", client=sendgrid_client)

        assert sender.send(MESSAGE) is None


# === SES ===


class TestSesEmailSender:
    def test_sends_through_ses(self):
        with mock_aws():
            ses = boto3.client("ses", region_name="eu-west-1")
            ses.verify_email_identity(EmailAddress="copat@copatcher.com")
            sender = SesEmailSender(region="eu-west-1")

            message_id = sender.send(MESSAGE)

            assert message_id
            quota = ses.get_send_quota()
            assert int(quota["SentLast24Hours"]) == 1

    def test_unverified_sender_raises_email_service_error(self):
        with mock_aws():
            sender = SesEmailSender(region="eu-west-1")

            with pytest.raises(EmailServiceError) as exc_info:
                sender.send(MESSAGE)

            assert "MessageRejected" in str(exc_info.value)

    def test_passes_reply_to_addresses(self):
        client = MagicMock()
        client.send_email.return_value = {"MessageId": "ses-1"}
        sender = SesEmailSender(client=client)

        assert sender.send(MESSAGE) == "ses-1"

        kwargs = client.send_email.call_args.kwargs
        assert kwargs["ReplyToAddresses"] == ["support@example.com"]
        assert kwargs["Destination"] == {"ToAddresses": ["buyer@example.com"]}
        assert kwargs["Message"]["Body"]["Html"]["Data"] == "<h1>Hi</h1>"
