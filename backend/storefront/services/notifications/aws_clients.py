"""
AWS SES mail transport.

``SESClient`` is the storefront's outbound mail relay. It is blocking
(boto3) and is called from async code through ``asyncio.to_thread``. By
default it makes a single attempt per message; ``max_attempts`` above one
enables in-request retries with exponential backoff for throttling and
connection errors only.
"""

import time
from typing import Any, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from storefront.core.config import Settings
from storefront.core.logging import get_logger

logger = get_logger(__name__)

# SES error codes that will fail the same way on every attempt
NON_RETRYABLE_ERROR_CODES = frozenset(
    {
        "MessageRejected",
        "MailFromDomainNotVerified",
        "ConfigurationSetDoesNotExist",
        "AccountSendingPausedException",
        "InvalidParameterValue",
    }
)


class AWSClientError(Exception):
    """Base exception for AWS client errors."""

    def __init__(self, message: str, service: str, **context: Any) -> None:
        super().__init__(message)
        self.service = service
        self.context = context


class SESClientError(AWSClientError):
    """Exception for SES-specific errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, service="SES", **context)


class MailTransport(Protocol):
    """Anything that can hand a rendered email to a mail relay."""

    def send_email(
        self,
        to_addresses: list[str],
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
    ) -> dict[str, Any]: ...


class SESClient:
    """
    AWS SES client wrapper.

    Args:
        source: ``From`` header, e.g. ``Auroxa <orders@auroxa.com>``
        region_name: AWS region
        aws_access_key_id: Access key; boto3's default chain is used when None
        aws_secret_access_key: Secret key; boto3's default chain is used when None
        max_attempts: Send attempts per message
        retry_backoff: Initial backoff in seconds between attempts
    """

    def __init__(
        self,
        source: str,
        region_name: str,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        max_attempts: int = 1,
        retry_backoff: float = 0.5,
    ) -> None:
        self.source = source
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff = retry_backoff

        self._client = boto3.client(
            "ses",
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            region_name=region_name,
        )

        logger.info(
            "SES client initialized",
            region=region_name,
            max_attempts=self.max_attempts,
        )

    def send_email(
        self,
        to_addresses: list[str],
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Send an email via AWS SES.

        Args:
            to_addresses: Recipient email addresses
            subject: Email subject
            body_text: Plain text body
            body_html: HTML body (optional)

        Returns:
            Dictionary with ``message_id`` and ``status``

        Raises:
            SESClientError: If SES rejects the message or every attempt fails
        """
        if not to_addresses:
            raise SESClientError(
                "At least one recipient email address is required",
                to_addresses=to_addresses,
            )

        body: dict[str, Any] = {"Text": {"Data": body_text, "Charset": "UTF-8"}}
        if body_html:
            body["Html"] = {"Data": body_html, "Charset": "UTF-8"}

        send_params: dict[str, Any] = {
            "Source": self.source,
            "Destination": {"ToAddresses": to_addresses},
            "Message": {
                "Subject": {"Data": subject, "Charset": "UTF-8"},
                "Body": body,
            },
        }

        last_exception: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self._client.send_email(**send_params)
                message_id = response["MessageId"]
                logger.info(
                    "Email sent via SES",
                    message_id=message_id,
                    to_addresses=to_addresses,
                    attempt=attempt,
                )
                return {"message_id": message_id, "status": "sent"}

            except ClientError as e:
                error = e.response.get("Error", {})
                error_code = error.get("Code", "Unknown")
                error_message = error.get("Message", str(e))
                logger.warning(
                    "SES client error",
                    attempt=attempt,
                    error_code=error_code,
                    error_message=error_message,
                    to_addresses=to_addresses,
                )
                if error_code in NON_RETRYABLE_ERROR_CODES:
                    raise SESClientError(
                        f"SES error: {error_message}",
                        error_code=error_code,
                        to_addresses=to_addresses,
                    ) from e
                last_exception = e

            except BotoCoreError as e:
                logger.warning(
                    "SES connection error",
                    attempt=attempt,
                    error=str(e),
                    to_addresses=to_addresses,
                )
                last_exception = e

            if attempt < self.max_attempts:
                time.sleep(self.retry_backoff * (2 ** (attempt - 1)))

        raise SESClientError(
            f"Failed to send email after {self.max_attempts} attempt(s): {last_exception}",
            to_addresses=to_addresses,
            last_error=str(last_exception),
        ) from last_exception


def get_ses_client(settings: Settings) -> SESClient:
    """
    Build the SES transport from application settings.

    Args:
        settings: Application settings

    Returns:
        Configured SES client instance
    """
    return SESClient(
        source=f"{settings.mail_from_name} <{settings.ses_from_email}>",
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        max_attempts=settings.mail_max_attempts,
        retry_backoff=settings.mail_retry_backoff,
    )
