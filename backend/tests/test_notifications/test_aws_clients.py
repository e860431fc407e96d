"""
Test suite for the AWS SES mail transport.

This module covers:
- Message construction for text and HTML bodies
- Single-attempt default and opt-in retries
- Non-retryable SES error codes
- Building the transport from settings
"""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from storefront.services.notifications.aws_clients import (
    AWSClientError,
    SESClient,
    SESClientError,
    get_ses_client,
)


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def mock_boto3_client():
    """Patch boto3 so no AWS client is built."""
    with patch("storefront.services.notifications.aws_clients.boto3.client") as mock:
        yield mock


@pytest.fixture
def ses_api(mock_boto3_client) -> MagicMock:
    """The low-level SES client returned by boto3."""
    api = MagicMock()
    api.send_email.return_value = {"MessageId": "msg-123"}
    mock_boto3_client.return_value = api
    return api


@pytest.fixture
def no_sleep():
    with patch("storefront.services.notifications.aws_clients.time.sleep") as mock:
        yield mock


def client_error(code: str, message: str = "failure") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "SendEmail")


# ============================================================================
# SESClient Tests
# ============================================================================


class TestSESClient:
    """Test SES message construction and error handling."""

    def test_sends_text_and_html(self, ses_api: MagicMock) -> None:
        client = SESClient(source="Auroxa <orders@auroxa.com>", region_name="us-east-1")

        result = client.send_email(
            to_addresses=["ayesha@example.com"],
            subject="Order Confirmed",
            body_text="Thanks",
            body_html="<p>Thanks</p>",
        )

        assert result == {"message_id": "msg-123", "status": "sent"}
        params = ses_api.send_email.call_args.kwargs
        assert params["Source"] == "Auroxa <orders@auroxa.com>"
        assert params["Destination"] == {"ToAddresses": ["ayesha@example.com"]}
        assert params["Message"]["Subject"]["Data"] == "Order Confirmed"
        assert params["Message"]["Body"]["Html"]["Data"] == "<p>Thanks</p>"

    def test_text_only_message(self, ses_api: MagicMock) -> None:
        client = SESClient(source="orders@auroxa.com", region_name="us-east-1")

        client.send_email(to_addresses=["a@example.com"], subject="s", body_text="t")

        body = ses_api.send_email.call_args.kwargs["Message"]["Body"]
        assert "Html" not in body

    def test_requires_recipient(self, ses_api: MagicMock) -> None:
        client = SESClient(source="orders@auroxa.com", region_name="us-east-1")

        with pytest.raises(SESClientError, match="recipient"):
            client.send_email(to_addresses=[], subject="s", body_text="t")

        ses_api.send_email.assert_not_called()

    def test_single_attempt_by_default(self, ses_api: MagicMock, no_sleep) -> None:
        ses_api.send_email.side_effect = client_error("Throttling")
        client = SESClient(source="orders@auroxa.com", region_name="us-east-1")

        with pytest.raises(SESClientError, match="after 1 attempt"):
            client.send_email(to_addresses=["a@example.com"], subject="s", body_text="t")

        assert ses_api.send_email.call_count == 1
        no_sleep.assert_not_called()

    def test_retries_transient_errors_when_enabled(self, ses_api: MagicMock, no_sleep) -> None:
        ses_api.send_email.side_effect = [
            EndpointConnectionError(endpoint_url="https://email.us-east-1.amazonaws.com"),
            client_error("Throttling"),
            {"MessageId": "msg-456"},
        ]
        client = SESClient(
            source="orders@auroxa.com",
            region_name="us-east-1",
            max_attempts=3,
            retry_backoff=0.1,
        )

        result = client.send_email(to_addresses=["a@example.com"], subject="s", body_text="t")

        assert result["message_id"] == "msg-456"
        assert ses_api.send_email.call_count == 3
        assert [c.args[0] for c in no_sleep.call_args_list] == [0.1, 0.2]

    def test_rejected_message_not_retried(self, ses_api: MagicMock, no_sleep) -> None:
        ses_api.send_email.side_effect = client_error("MessageRejected", "Email address is not verified")
        client = SESClient(source="orders@auroxa.com", region_name="us-east-1", max_attempts=3)

        with pytest.raises(SESClientError) as exc_info:
            client.send_email(to_addresses=["a@example.com"], subject="s", body_text="t")

        assert ses_api.send_email.call_count == 1
        assert exc_info.value.context["error_code"] == "MessageRejected"
        assert isinstance(exc_info.value, AWSClientError)
        assert exc_info.value.service == "SES"


class TestGetSESClient:
    def test_built_from_settings(self, mock_boto3_client, settings) -> None:
        client = get_ses_client(settings)

        assert client.source == f"{settings.mail_from_name} <{settings.ses_from_email}>"
        assert client.max_attempts == max(1, settings.mail_max_attempts)
        assert mock_boto3_client.call_args.args == ("ses",)
        assert mock_boto3_client.call_args.kwargs["region_name"] == settings.aws_region
