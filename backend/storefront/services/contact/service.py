"""
Contact message service.
"""

import uuid
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger
from storefront.database.models.contact import ContactMessage, ContactMessageStatus
from storefront.schemas.contact import ContactMessageCreate

logger = get_logger(__name__)


class ContactServiceError(Exception):
    """Base exception for contact service errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context = context


class ContactMessageNotFoundError(ContactServiceError):
    """Raised when a contact message does not exist."""

    pass


class ContactService:
    """Stores contact form submissions and serves the admin inbox."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_message(
        self, data: ContactMessageCreate, user_id: Optional[str] = None
    ) -> ContactMessage:
        message = ContactMessage(
            user_id=user_id,
            name=data.name,
            email=data.email,
            subject=data.subject,
            message=data.message,
            status=ContactMessageStatus.UNREAD,
        )
        self.session.add(message)
        await self._commit(user_id=user_id)
        logger.info("Contact message received", message_id=str(message.id), user_id=user_id)
        return message

    async def list_messages(self) -> Sequence[ContactMessage]:
        """All messages, newest first."""
        result = await self.session.execute(
            select(ContactMessage).order_by(ContactMessage.created_at.desc())
        )
        return result.scalars().all()

    async def mark_read(self, message_id: uuid.UUID) -> ContactMessage:
        """
        Raises:
            ContactMessageNotFoundError: If the message does not exist
        """
        message = await self._get(message_id)
        message.status = ContactMessageStatus.READ
        await self._commit(message_id=str(message_id))
        return message

    async def delete_message(self, message_id: uuid.UUID) -> None:
        message = await self._get(message_id)
        await self.session.delete(message)
        await self._commit(message_id=str(message_id))
        logger.info("Contact message deleted", message_id=str(message_id))

    async def _get(self, message_id: uuid.UUID) -> ContactMessage:
        message = await self.session.get(ContactMessage, message_id)
        if message is None:
            raise ContactMessageNotFoundError("Message not found", message_id=str(message_id))
        return message

    async def _commit(self, **context: Any) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Contact message write failed", error=str(e), **context)
            raise ContactServiceError("Failed to save contact message", **context) from e
