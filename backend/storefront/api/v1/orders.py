"""
Order API endpoints.

Customers place orders and read their own; the admin console lists the
active working set, moves orders through their lifecycle and copies the
fulfillment hand-off summary. Order tracking by order number is public.
"""

import uuid

from fastapi import APIRouter, HTTPException, Query, Request, status

from storefront.api.deps import CurrentAdmin, CurrentIdentity, OrderServiceDep
from storefront.core.logging import get_logger
from storefront.core.rate_limit import ORDER_CREATE_LIMIT, limiter
from storefront.schemas.orders import (
    NotificationOutcome,
    OrderCountsEnvelope,
    OrderCreate,
    OrderCreatedEnvelope,
    OrderEnvelope,
    OrderListEnvelope,
    OrderStatusUpdate,
    OrderSummaryEnvelope,
    ShipOrderRequest,
    UserSnapshot,
)
from storefront.services.orders.repository import (
    OrderNotFoundError,
    OrderRepositoryError,
)
from storefront.services.orders.service import (
    OrderConflictError,
    OrderServiceError,
    OrderValidationError,
    TransitionResult,
)
from storefront.services.orders.state_machine import StateTransitionError

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


def parse_order_id(order_id: str) -> uuid.UUID:
    """
    Raises:
        HTTPException: 400 if the id is not a UUID
    """
    try:
        return uuid.UUID(order_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid order ID",
        ) from e


def order_http_error(e: Exception) -> HTTPException:
    """Map an order lifecycle failure to its HTTP response."""
    if isinstance(e, (OrderValidationError, StateTransitionError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, OrderNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, OrderConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    logger.error("Order operation failed", error=str(e), error_type=type(e).__name__)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to process order",
    )


def transition_envelope(result: TransitionResult) -> OrderEnvelope:
    notification = None
    message = f"Order status updated to {result.order.status.value}"
    if result.notification is not None:
        notification = NotificationOutcome(
            sent=result.notification.sent,
            status=result.notification.status,
            recipient=result.notification.recipient,
            message_id=result.notification.message_id,
            error=result.notification.error,
        )
        if not result.notification.sent:
            message += "; customer email could not be sent"
    return OrderEnvelope(message=message, order=result.order, notification=notification)


@router.post(
    "",
    response_model=OrderCreatedEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
)
@limiter.limit(ORDER_CREATE_LIMIT)
async def create_order(
    request: Request,
    payload: OrderCreate,
    identity: CurrentIdentity,
    service: OrderServiceDep,
) -> OrderCreatedEnvelope:
    """
    Place an order for the signed-in customer in ``pending`` status.

    Raises:
        HTTPException: 400 if items, address or amounts are invalid,
            500 if the order cannot be stored
    """
    user = UserSnapshot(id=identity.id, name=identity.name, email=identity.email)
    try:
        order = await service.create_order(user, payload)
    except (OrderServiceError, OrderRepositoryError) as e:
        raise order_http_error(e) from e

    return OrderCreatedEnvelope(
        order_id=order.id,
        order_number=order.order_number,
        order=service.to_read(order),
    )


@router.get("", response_model=OrderListEnvelope, summary="List all orders")
async def list_orders(admin: CurrentAdmin, service: OrderServiceDep) -> OrderListEnvelope:
    try:
        orders = await service.list_orders()
    except OrderRepositoryError as e:
        raise order_http_error(e) from e
    return OrderListEnvelope(count=len(orders), orders=[service.to_read(o) for o in orders])


@router.get("/active", response_model=OrderListEnvelope, summary="List active orders")
async def list_active_orders(admin: CurrentAdmin, service: OrderServiceDep) -> OrderListEnvelope:
    """
    Admin working set: every order not yet delivered, plus orders delivered
    within the retention window.
    """
    try:
        orders = await service.list_active()
    except OrderRepositoryError as e:
        raise order_http_error(e) from e
    return OrderListEnvelope(count=len(orders), orders=[service.to_read(o) for o in orders])


@router.get("/counts", response_model=OrderCountsEnvelope, summary="Count active orders")
async def count_orders(admin: CurrentAdmin, service: OrderServiceDep) -> OrderCountsEnvelope:
    try:
        counts = await service.counts()
    except OrderRepositoryError as e:
        raise order_http_error(e) from e
    return OrderCountsEnvelope(counts=counts)


@router.get("/mine", response_model=OrderListEnvelope, summary="List my orders")
async def list_my_orders(identity: CurrentIdentity, service: OrderServiceDep) -> OrderListEnvelope:
    try:
        orders = await service.list_user_orders(identity.id)
    except OrderRepositoryError as e:
        raise order_http_error(e) from e
    return OrderListEnvelope(count=len(orders), orders=[service.to_read(o) for o in orders])


@router.get("/by-number", response_model=OrderEnvelope, summary="Track an order")
async def track_order(
    service: OrderServiceDep,
    order_number: str = Query(..., alias="orderNumber", min_length=1),
) -> OrderEnvelope:
    try:
        order = await service.get_order_by_number(order_number)
    except OrderRepositoryError as e:
        raise order_http_error(e) from e
    return OrderEnvelope(order=service.to_read(order))


@router.get("/{order_id}", response_model=OrderEnvelope, summary="Get an order")
async def get_order(
    order_id: str,
    identity: CurrentIdentity,
    service: OrderServiceDep,
) -> OrderEnvelope:
    """
    Raises:
        HTTPException: 403 unless the caller placed the order or is an admin
    """
    try:
        order = await service.get_order(parse_order_id(order_id))
    except OrderRepositoryError as e:
        raise order_http_error(e) from e

    if not identity.is_admin and order.user_id != identity.id:
        logger.warning("Order access denied", order_id=order_id, user_id=identity.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to view this order",
        )
    return OrderEnvelope(order=service.to_read(order))


@router.get(
    "/{order_id}/summary",
    response_model=OrderSummaryEnvelope,
    summary="Copy the fulfillment hand-off summary",
)
async def get_order_summary(
    order_id: str,
    admin: CurrentAdmin,
    service: OrderServiceDep,
) -> OrderSummaryEnvelope:
    try:
        order = await service.get_order(parse_order_id(order_id))
    except OrderRepositoryError as e:
        raise order_http_error(e) from e
    return OrderSummaryEnvelope(order_number=order.order_number, summary=service.summarize(order))


@router.patch("/{order_id}/status", response_model=OrderEnvelope, summary="Change order status")
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    admin: CurrentAdmin,
    service: OrderServiceDep,
) -> OrderEnvelope:
    """
    Move an order along its lifecycle and email the customer.

    The status change is committed before the email is attempted; an email
    failure is reported in ``notification`` with a 200 response.

    Raises:
        HTTPException: 400 for an unknown status or a disallowed transition,
            404 if the order does not exist, 409 if it changed concurrently
    """
    parsed_id = parse_order_id(order_id)
    logger.info(
        "Updating order status",
        order_id=order_id,
        target_status=payload.status,
        admin_id=admin.id,
    )
    try:
        result = await service.transition(parsed_id, payload.status)
    except (OrderServiceError, OrderRepositoryError, StateTransitionError) as e:
        raise order_http_error(e) from e
    return transition_envelope(result)


@router.patch("/{order_id}/ship", response_model=OrderEnvelope, summary="Ship an order")
async def ship_order(
    order_id: str,
    payload: ShipOrderRequest,
    admin: CurrentAdmin,
    service: OrderServiceDep,
) -> OrderEnvelope:
    """
    Record tracking details and move a processing order to shipped.

    Raises:
        HTTPException: 400 if tracking id, courier company or courier name is
            missing or the order is not processing, 404 if the order does
            not exist, 409 if it changed concurrently
    """
    parsed_id = parse_order_id(order_id)
    logger.info(
        "Shipping order",
        order_id=order_id,
        courier_company=payload.courier_company,
        admin_id=admin.id,
    )
    try:
        result = await service.ship(parsed_id, payload)
    except (OrderServiceError, OrderRepositoryError, StateTransitionError) as e:
        raise order_http_error(e) from e
    return transition_envelope(result)
