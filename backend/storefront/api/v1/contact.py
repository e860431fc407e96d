"""
Contact form endpoints and the admin inbox.
"""

import uuid

from fastapi import APIRouter, HTTPException, Request, status

from storefront.api.deps import CurrentAdmin, CurrentIdentity, DatabaseSession
from storefront.core.rate_limit import CONTACT_CREATE_LIMIT, limiter
from storefront.schemas.common import MessageResponse
from storefront.schemas.contact import (
    ContactMessageCreate,
    ContactMessageListEnvelope,
    ContactMessageRead,
    ContactStatusUpdate,
)
from storefront.services.contact.service import (
    ContactMessageNotFoundError,
    ContactService,
    ContactServiceError,
)

router = APIRouter(prefix="/contact", tags=["Contact"])


def parse_message_id(message_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(message_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid message ID",
        ) from e


def contact_http_error(e: ContactServiceError) -> HTTPException:
    if isinstance(e, ContactMessageNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a contact message",
)
@limiter.limit(CONTACT_CREATE_LIMIT)
async def create_contact_message(
    request: Request,
    payload: ContactMessageCreate,
    identity: CurrentIdentity,
    db: DatabaseSession,
) -> MessageResponse:
    try:
        await ContactService(db).create_message(payload, user_id=identity.id)
    except ContactServiceError as e:
        raise contact_http_error(e) from e
    return MessageResponse(message="Message sent successfully")


@router.get("", response_model=ContactMessageListEnvelope, summary="List contact messages")
async def list_contact_messages(
    admin: CurrentAdmin,
    db: DatabaseSession,
) -> ContactMessageListEnvelope:
    messages = await ContactService(db).list_messages()
    return ContactMessageListEnvelope(
        count=len(messages),
        data=[ContactMessageRead.model_validate(m) for m in messages],
    )


@router.patch("/status", response_model=MessageResponse, summary="Mark a message as read")
async def mark_contact_message_read(
    payload: ContactStatusUpdate,
    admin: CurrentAdmin,
    db: DatabaseSession,
) -> MessageResponse:
    try:
        await ContactService(db).mark_read(parse_message_id(payload.id))
    except ContactServiceError as e:
        raise contact_http_error(e) from e
    return MessageResponse(message="Updated successfully")


@router.delete("/{message_id}", response_model=MessageResponse, summary="Delete a message")
async def delete_contact_message(
    message_id: str,
    admin: CurrentAdmin,
    db: DatabaseSession,
) -> MessageResponse:
    try:
        await ContactService(db).delete_message(parse_message_id(message_id))
    except ContactServiceError as e:
        raise contact_http_error(e) from e
    return MessageResponse(message="Message deleted")
