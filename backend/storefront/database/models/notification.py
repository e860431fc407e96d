"""
Notification log model.

One row per dispatch attempt of an order status email, whether the mail
transport accepted it or not.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Enum as SQLEnum, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database.base import Base, UUIDMixin, utcnow


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


class NotificationLog(Base, UUIDMixin):
    """Record of an order status email dispatch."""

    __tablename__ = "notification_logs"

    # Null for emails sent from unsaved order data
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    order_number: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    template_status: Mapped[str] = mapped_column(String(20), nullable=False)

    recipient: Mapped[str] = mapped_column(String(320), nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)

    delivery_status: Mapped[DeliveryStatus] = mapped_column(
        SQLEnum(
            DeliveryStatus,
            name="notification_delivery_status",
            native_enum=False,
            length=10,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    message_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
