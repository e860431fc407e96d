"""
Order status email dispatch.

``NotificationService`` renders the email for an order status, hands it to
the mail transport once and records the outcome in ``notification_logs``.
Delivery failures are raised as ``NotificationDeliveryError`` after being
logged and recorded; nothing is retried later.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import Settings
from storefront.core.logging import get_logger
from storefront.database.base import utcnow
from storefront.database.models.notification import DeliveryStatus, NotificationLog
from storefront.schemas.orders import OrderData, ShippingDetails
from storefront.services.notifications.aws_clients import MailTransport
from storefront.services.notifications.templates import (
    TemplateEngine,
    TemplateEngineError,
)
from storefront.services.orders.enums import OrderStatus

logger = get_logger(__name__)


class NotificationServiceError(Exception):
    """Base exception for notification service errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.context = context


class NotificationDeliveryError(NotificationServiceError):
    """Raised when an email could not be rendered or handed to the transport."""

    pass


class NotificationValidationError(NotificationServiceError):
    """Raised when a notification request is invalid, e.g. a status without email."""

    pass


@dataclass
class NotificationResult:
    sent: bool
    status: OrderStatus
    recipient: str
    subject: Optional[str] = None
    message_id: Optional[str] = None
    error: Optional[str] = None


class NotificationService:
    """
    Renders and sends order status emails.

    Args:
        session: Database session used to record dispatch attempts
        transport: Mail transport, normally ``SESClient``
        template_engine: Email template engine
        settings: Application settings with storefront branding and links
    """

    def __init__(
        self,
        session: AsyncSession,
        transport: MailTransport,
        template_engine: TemplateEngine,
        settings: Settings,
    ) -> None:
        self.session = session
        self.transport = transport
        self.template_engine = template_engine
        self.settings = settings

    def resolve_status(self, status: Union[OrderStatus, str]) -> OrderStatus:
        """
        Map a requested status to one that has an email template.

        Raises:
            NotificationValidationError: If the status is unknown or has no email
        """
        try:
            resolved = OrderStatus.from_string(status) if isinstance(status, str) else status
        except ValueError:
            resolved = None
        if resolved is None or self.template_engine.template_for(resolved) is None:
            raise NotificationValidationError("Invalid status for email", status=str(status))
        return resolved

    def build_context(self, order: OrderData, status: OrderStatus) -> dict[str, Any]:
        """Template variables for one order and status."""
        shipping = order.shipping_details or ShippingDetails()
        return {
            "status": status.value,
            "store_name": self.settings.store_name,
            "base_url": self.settings.storefront_base_url,
            "support_email": self.settings.support_email,
            "customer_name": order.shipping_address.full_name or order.user.name,
            "order_number": order.order_number,
            "order_date": order.created_at,
            "subtotal": order.subtotal,
            "delivery_fee": order.delivery_fee,
            "total": order.total,
            "payment_method": order.payment_method.display_name,
            "shipping_address": order.shipping_address.model_dump(),
            "items": [
                {
                    "title": item.title,
                    "quantity": item.quantity,
                    "price": item.price,
                    "line_total": item.line_total,
                    "color": item.color,
                    "size": item.size,
                }
                for item in order.items
            ],
            "shipping": shipping.model_dump(),
            "delivered_on": order.updated_at or utcnow(),
            "offer_code": self.settings.delivered_offer_code,
        }

    def render(self, order: OrderData, status: OrderStatus) -> dict[str, str]:
        """
        Render subject and bodies for an order status email.

        Raises:
            NotificationValidationError: If the status has no email
            TemplateEngineError: If rendering fails
        """
        template_name = self.template_engine.template_for(status)
        if template_name is None:
            raise NotificationValidationError("Invalid status for email", status=status.value)
        return self.template_engine.render_email(template_name, self.build_context(order, status))

    async def send_order_notification(
        self,
        order: OrderData,
        status: Union[OrderStatus, str],
    ) -> NotificationResult:
        """
        Send the email for ``status`` to the order's customer.

        Makes one hand-off to the mail transport and records the outcome.

        Args:
            order: Order to notify about; fields must reflect the new status
            status: Status whose email is sent

        Returns:
            Successful result with the transport message id

        Raises:
            NotificationValidationError: If the status has no email or the
                order has no customer email
            NotificationDeliveryError: If rendering or the transport fails
        """
        status = self.resolve_status(status)
        recipient = order.user.email
        if not recipient:
            raise NotificationValidationError(
                "Order has no customer email",
                order_number=order.order_number,
            )

        try:
            rendered = self.render(order, status)
        except TemplateEngineError as e:
            await self._record(order, status, recipient, subject="", error=str(e))
            raise NotificationDeliveryError(
                f"Failed to render {status.value} email",
                order_number=order.order_number,
                status=status.value,
            ) from e

        subject = rendered["subject"]
        try:
            response = await asyncio.to_thread(
                self.transport.send_email,
                to_addresses=[recipient],
                subject=subject,
                body_text=rendered.get("text_body") or subject,
                body_html=rendered["html_body"],
            )
        except Exception as e:
            logger.error(
                "Order notification delivery failed",
                order_number=order.order_number,
                status=status.value,
                recipient=recipient,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self._record(order, status, recipient, subject=subject, error=str(e))
            raise NotificationDeliveryError(
                f"Failed to send email to {recipient}: {e}",
                order_number=order.order_number,
                status=status.value,
                recipient=recipient,
            ) from e

        message_id = response.get("message_id")
        await self._record(order, status, recipient, subject=subject, message_id=message_id)

        logger.info(
            "Order notification sent",
            order_number=order.order_number,
            status=status.value,
            recipient=recipient,
            message_id=message_id,
        )
        return NotificationResult(
            sent=True,
            status=status,
            recipient=recipient,
            subject=subject,
            message_id=message_id,
        )

    async def _record(
        self,
        order: OrderData,
        status: OrderStatus,
        recipient: str,
        subject: str,
        message_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """Persist a dispatch attempt. A failed write is logged, not raised."""
        self.session.add(
            NotificationLog(
                order_id=order.id,
                order_number=order.order_number,
                template_status=status.value,
                recipient=recipient,
                subject=subject[:500],
                delivery_status=DeliveryStatus.FAILED if error else DeliveryStatus.SENT,
                message_id=message_id,
                error_message=error,
            )
        )
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to record notification attempt",
                order_number=order.order_number,
                status=status.value,
                error=str(e),
            )
