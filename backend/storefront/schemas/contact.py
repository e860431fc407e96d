"""
Contact form schemas.
"""

from typing import Optional
from uuid import UUID

from pydantic import Field

from storefront.database.models.contact import ContactMessageStatus
from storefront.schemas.common import CamelModel, UtcDatetime


class ContactMessageCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=10000)


class ContactMessageRead(CamelModel):
    id: UUID
    user_id: Optional[str] = None
    name: str
    email: str
    subject: str
    message: str
    status: ContactMessageStatus
    created_at: UtcDatetime


class ContactStatusUpdate(CamelModel):
    id: str = Field(..., min_length=1)


class ContactMessageListEnvelope(CamelModel):
    success: bool = True
    count: int
    data: list[ContactMessageRead]
