"""
Test suite for NotificationService.

Tests status resolution, the single hand-off to the mail transport and the
dispatch log written for every attempt.
"""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.models.notification import DeliveryStatus, NotificationLog
from storefront.schemas.orders import OrderData
from storefront.services.notifications.aws_clients import SESClientError
from storefront.services.notifications.service import (
    NotificationDeliveryError,
    NotificationService,
    NotificationValidationError,
)
from storefront.services.notifications.templates import TemplateRenderError
from storefront.services.orders.enums import OrderStatus


async def dispatch_log(session: AsyncSession) -> list[NotificationLog]:
    result = await session.execute(select(NotificationLog))
    return list(result.scalars().all())


# ============================================================================
# Status Resolution
# ============================================================================


class TestResolveStatus:
    @pytest.mark.parametrize("value", ["confirmed", "processing", "shipped", "delivered"])
    def test_statuses_with_email(
        self, notification_service: NotificationService, value: str
    ) -> None:
        assert notification_service.resolve_status(value) == OrderStatus(value)

    @pytest.mark.parametrize("value", ["pending", "cancelled", "refunded", "Confirmed"])
    def test_statuses_without_email(
        self, notification_service: NotificationService, value: str
    ) -> None:
        with pytest.raises(NotificationValidationError, match="Invalid status for email"):
            notification_service.resolve_status(value)


# ============================================================================
# Sending
# ============================================================================


class TestSendOrderNotification:
    async def test_sends_once_and_records(
        self,
        session: AsyncSession,
        notification_service: NotificationService,
        mail_transport: MagicMock,
        order_data: OrderData,
    ) -> None:
        result = await notification_service.send_order_notification(order_data, "confirmed")

        assert result.sent is True
        assert result.message_id == "ses-message-1"
        assert result.recipient == "ayesha@example.com"
        mail_transport.send_email.assert_called_once()
        sent = mail_transport.send_email.call_args.kwargs
        assert sent["to_addresses"] == ["ayesha@example.com"]
        assert order_data.order_number in sent["subject"]

        [entry] = await dispatch_log(session)
        assert entry.delivery_status == DeliveryStatus.SENT
        assert entry.template_status == "confirmed"
        assert entry.order_id == order_data.id
        assert entry.message_id == "ses-message-1"

    async def test_transport_failure_recorded_and_raised(
        self,
        session: AsyncSession,
        notification_service: NotificationService,
        mail_transport: MagicMock,
        order_data: OrderData,
    ) -> None:
        mail_transport.send_email.side_effect = SESClientError("SES error: throttled")

        with pytest.raises(NotificationDeliveryError, match="ayesha@example.com"):
            await notification_service.send_order_notification(order_data, "delivered")

        assert mail_transport.send_email.call_count == 1
        [entry] = await dispatch_log(session)
        assert entry.delivery_status == DeliveryStatus.FAILED
        assert "throttled" in entry.error_message

    async def test_render_failure_never_reaches_transport(
        self,
        session: AsyncSession,
        notification_service: NotificationService,
        mail_transport: MagicMock,
        order_data: OrderData,
    ) -> None:
        with patch.object(
            notification_service.template_engine,
            "render_email",
            side_effect=TemplateRenderError("boom", template_name="order_processing"),
        ):
            with pytest.raises(NotificationDeliveryError, match="render processing"):
                await notification_service.send_order_notification(order_data, "processing")

        mail_transport.send_email.assert_not_called()
        [entry] = await dispatch_log(session)
        assert entry.delivery_status == DeliveryStatus.FAILED

    async def test_status_without_email_rejected(
        self,
        notification_service: NotificationService,
        mail_transport: MagicMock,
        order_data: OrderData,
    ) -> None:
        with pytest.raises(NotificationValidationError):
            await notification_service.send_order_notification(order_data, "cancelled")

        mail_transport.send_email.assert_not_called()

    async def test_order_without_email_rejected(
        self,
        notification_service: NotificationService,
        mail_transport: MagicMock,
        order_data: OrderData,
    ) -> None:
        no_email = order_data.model_copy(
            update={"user": order_data.user.model_copy(update={"email": ""})}
        )

        with pytest.raises(NotificationValidationError, match="no customer email"):
            await notification_service.send_order_notification(no_email, "confirmed")

        mail_transport.send_email.assert_not_called()


# ============================================================================
# Manual Send Endpoint
# ============================================================================


class TestSendEndpoint:
    URL = "/api/v1/notifications/send"

    async def test_requires_admin(self, client, customer_headers, order_data) -> None:
        response = await client.post(
            self.URL,
            json={"orderData": order_data.model_dump(mode="json", by_alias=True), "status": "confirmed"},
            headers=customer_headers,
        )

        assert response.status_code == 403

    async def test_sends_from_order_document(
        self, client, admin_headers, order_data, mail_transport: MagicMock
    ) -> None:
        response = await client.post(
            self.URL,
            json={"orderData": order_data.model_dump(mode="json", by_alias=True), "status": "shipped"},
            headers=admin_headers,
        )

        body = response.json()
        assert response.status_code == 200
        assert body["message"] == "Email sent to ayesha@example.com"
        assert body["notification"]["status"] == "shipped"
        mail_transport.send_email.assert_called_once()

    async def test_sends_for_stored_order_without_changing_it(
        self, client, admin_headers, customer_headers, order_payload, mail_transport: MagicMock
    ) -> None:
        placed = await client.post("/api/v1/orders", json=order_payload, headers=customer_headers)
        order_id = placed.json()["orderId"]

        response = await client.post(
            self.URL,
            json={"orderId": order_id, "status": "confirmed"},
            headers=admin_headers,
        )
        order = await client.get(f"/api/v1/orders/{order_id}", headers=admin_headers)

        assert response.status_code == 200
        assert order.json()["order"]["status"] == "pending"

    @pytest.mark.parametrize("value", ["pending", " shipped "])
    async def test_invalid_status(self, client, admin_headers, order_data, value: str) -> None:
        response = await client.post(
            self.URL,
            json={"orderData": order_data.model_dump(mode="json", by_alias=True), "status": value},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid status for email"

    async def test_order_required(self, client, admin_headers) -> None:
        response = await client.post(self.URL, json={"status": "confirmed"}, headers=admin_headers)

        assert response.status_code == 400
        assert "Either orderId or orderData is required" in response.json()["message"]

    async def test_delivery_failure_is_500(
        self, client, admin_headers, order_data, mail_transport: MagicMock
    ) -> None:
        mail_transport.send_email.side_effect = SESClientError("SES error: rejected")

        response = await client.post(
            self.URL,
            json={"orderData": order_data.model_dump(mode="json", by_alias=True), "status": "confirmed"},
            headers=admin_headers,
        )

        assert response.status_code == 500
        assert response.json()["success"] is False
