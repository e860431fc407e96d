"""
Manual order status email endpoint for the admin console.
"""

from fastapi import APIRouter, HTTPException, status

from storefront.api.deps import CurrentAdmin, NotificationServiceDep, OrderServiceDep
from storefront.api.v1.orders import order_http_error, parse_order_id
from storefront.core.logging import get_logger
from storefront.schemas.notifications import NotificationEnvelope, NotificationSendRequest
from storefront.schemas.orders import NotificationOutcome
from storefront.services.notifications.service import (
    NotificationDeliveryError,
    NotificationValidationError,
)
from storefront.services.orders.repository import OrderRepositoryError

logger = get_logger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post("/send", response_model=NotificationEnvelope, summary="Send an order status email")
async def send_notification(
    payload: NotificationSendRequest,
    admin: CurrentAdmin,
    orders: OrderServiceDep,
    notifications: NotificationServiceDep,
) -> NotificationEnvelope:
    """
    Send the email for ``status`` once, without changing the order.

    Raises:
        HTTPException: 400 if the status has no email, 404 if the order does
            not exist, 500 if the email could not be sent
    """
    if payload.order_data is not None:
        order = payload.order_data
    else:
        try:
            order = orders.to_read(await orders.get_order(parse_order_id(payload.order_id)))
        except OrderRepositoryError as e:
            raise order_http_error(e) from e

    try:
        result = await notifications.send_order_notification(order, payload.status)
    except NotificationValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except NotificationDeliveryError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e

    logger.info(
        "Manual notification sent",
        order_number=order.order_number,
        status=result.status.value,
        admin_id=admin.id,
    )
    return NotificationEnvelope(
        message=f"Email sent to {result.recipient}",
        notification=NotificationOutcome(
            sent=result.sent,
            status=result.status,
            recipient=result.recipient,
            message_id=result.message_id,
        ),
    )
