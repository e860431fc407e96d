"""
Contact message model.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Enum as SQLEnum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database.base import Base, UUIDMixin, utcnow


class ContactMessageStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"


class ContactMessage(Base, UUIDMixin):
    """Message sent through the storefront contact form."""

    __tablename__ = "contact_messages"

    user_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[ContactMessageStatus] = mapped_column(
        SQLEnum(
            ContactMessageStatus,
            name="contact_message_status",
            native_enum=False,
            length=10,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ContactMessageStatus.UNREAD,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
