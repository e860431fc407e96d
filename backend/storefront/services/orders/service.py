"""
Order lifecycle service.

Owns order placement and every status change. A status change is two
explicit steps: the conditional update is committed first, then the
customer email for the new status is attempted once. The email outcome is
returned next to the updated order; a failed email never undoes a
committed status.
"""

import re
import secrets
import string
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Optional, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import Settings, get_settings
from storefront.core.logging import get_logger, log_performance
from storefront.database.base import utcnow
from storefront.database.models.order import Order, OrderItem
from storefront.schemas.orders import (
    ESTIMATED_DELIVERY,
    OrderCounts,
    OrderCreate,
    OrderData,
    OrderRead,
    ShipOrderRequest,
    UserSnapshot,
)
from storefront.services.checkout.cart import calculate_delivery_fee, quantize_money
from storefront.services.notifications.service import (
    NotificationResult,
    NotificationService,
    NotificationServiceError,
)
from storefront.services.orders.couriers import build_tracking_url
from storefront.services.orders.enums import OrderStatus
from storefront.services.orders.repository import (
    OrderCreationError,
    OrderNotFoundError,
    OrderRepository,
)
from storefront.services.orders.state_machine import (
    OrderStateMachine,
    get_order_state_machine,
)
from storefront.services.orders.summary import format_order_summary

logger = get_logger(__name__)

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
ORDER_NUMBER_PATTERN = re.compile(r"^ORD-\d+-[A-Z0-9]{9}$")


class OrderServiceError(Exception):
    """Base exception for order service errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context = context


class OrderValidationError(OrderServiceError):
    """Raised when order input or a status value is invalid."""

    pass


class OrderConflictError(OrderServiceError):
    """Raised when the order changed status between read and update."""

    pass


class OrderProcessingError(OrderServiceError):
    """Raised when order processing fails."""

    pass


@dataclass
class TransitionResult:
    """Committed order state plus the outcome of the follow-up email."""

    order: OrderRead
    notification: Optional[NotificationResult] = None


def generate_order_number() -> str:
    """Human-facing order number: ``ORD-<unix millis>-<9 uppercase alphanumerics>``."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(9))
    return f"ORD-{millis}-{suffix}"


class OrderService:
    """
    Service for order placement and the order status lifecycle.

    Args:
        session: Async database session
        notification_service: Sends status emails; when None no email is attempted
        settings: Application settings
        state_machine: Transition validator
        clock: Returns the current UTC time
    """

    def __init__(
        self,
        session: AsyncSession,
        notification_service: Optional[NotificationService] = None,
        settings: Optional[Settings] = None,
        state_machine: Optional[OrderStateMachine] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.repository = OrderRepository(session)
        self.notification_service = notification_service
        self.settings = settings or get_settings()
        self.state_machine = state_machine or get_order_state_machine()
        self._now = clock

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    async def create_order(self, user: UserSnapshot, request: OrderCreate) -> Order:
        """
        Place a new order in ``pending`` status.

        Item titles, prices and the purchaser are snapshotted on the order.
        Amounts are recomputed from the items; amounts sent by the client
        must agree with them.

        Args:
            user: Purchaser snapshot
            request: Validated order placement request

        Returns:
            The persisted order

        Raises:
            OrderValidationError: If items, address or amounts are invalid
            OrderProcessingError: If the order cannot be stored
        """
        subtotal, delivery_fee, total = self._validate_order_data(user, request)
        order_number = generate_order_number()

        order = Order(
            id=uuid.uuid4(),
            order_number=order_number,
            user_id=user.id,
            user_name=user.name,
            user_email=user.email,
            shipping_address=request.shipping_address.model_dump(),
            payment_method=request.payment_method,
            special_instructions=request.special_instructions,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total=total,
            status=OrderStatus.PENDING,
            items=[
                OrderItem(
                    position=position,
                    product_id=item.product_id,
                    title=item.title,
                    quantity=item.quantity,
                    price=quantize_money(item.price),
                    image=item.image,
                    color=item.color,
                    size=item.size,
                )
                for position, item in enumerate(request.items)
            ],
        )

        try:
            await self.repository.add(order)
            await self.repository.commit()
        except OrderCreationError as e:
            raise OrderProcessingError(
                "Failed to place order",
                order_number=order_number,
            ) from e

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order_number,
            user_id=user.id,
            item_count=len(order.items),
            total=float(total),
        )
        return order

    def _validate_order_data(
        self, user: UserSnapshot, request: OrderCreate
    ) -> tuple[Decimal, Decimal, Decimal]:
        """
        Check placement input and compute the order amounts.

        Returns:
            Subtotal, delivery fee and total

        Raises:
            OrderValidationError: If the order cannot be accepted
        """
        if not user.email:
            raise OrderValidationError("A customer email is required to place an order")

        if not request.items:
            raise OrderValidationError("Order must contain at least one item")

        for item in request.items:
            if item.quantity < 1:
                raise OrderValidationError(
                    "Item quantity must be at least 1",
                    product_id=item.product_id,
                )
            if item.price < 0:
                raise OrderValidationError(
                    "Item price cannot be negative",
                    product_id=item.product_id,
                )

        missing = [
            name
            for name, value in request.shipping_address.model_dump(by_alias=True).items()
            if not str(value).strip()
        ]
        if missing:
            raise OrderValidationError(
                f"Shipping address is incomplete: {', '.join(missing)}",
                missing=missing,
            )

        subtotal = quantize_money(
            sum((item.price * item.quantity for item in request.items), Decimal("0"))
        )
        if request.subtotal is not None and quantize_money(request.subtotal) != subtotal:
            raise OrderValidationError(
                "Subtotal does not match order items",
                expected=str(subtotal),
                received=str(request.subtotal),
            )

        if request.delivery_fee is not None:
            delivery_fee = quantize_money(request.delivery_fee)
        else:
            delivery_fee = calculate_delivery_fee(subtotal, self.settings)

        total = subtotal + delivery_fee
        if request.total is not None and quantize_money(request.total) != total:
            raise OrderValidationError(
                "Total must equal subtotal plus delivery fee",
                expected=str(total),
                received=str(request.total),
            )

        return subtotal, delivery_fee, total

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_order(self, order_id: uuid.UUID) -> Order:
        """
        Raises:
            OrderNotFoundError: If no order has this id
        """
        order = await self.repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError("Order not found", order_id=str(order_id))
        return order

    async def get_order_by_number(self, order_number: str) -> Order:
        order = await self.repository.get_by_order_number(order_number.strip())
        if order is None:
            raise OrderNotFoundError("Order not found", order_number=order_number)
        return order

    async def list_orders(self) -> Sequence[Order]:
        return await self.repository.list_all()

    async def list_user_orders(self, user_id: str) -> Sequence[Order]:
        return await self.repository.list_by_user(user_id)

    def active_cutoff(self) -> datetime:
        """Oldest ``updated_at`` at which a delivered order is still active."""
        return self._now() - timedelta(days=self.settings.active_order_retention_days)

    async def list_active(self) -> Sequence[Order]:
        """
        Orders in the admin working set.

        Every non-delivered order plus delivered orders updated within the
        retention window, evaluated against the current time on each call.
        """
        with log_performance(logger, "list_active_orders"):
            return await self.repository.list_active(self.active_cutoff())

    async def counts(self) -> OrderCounts:
        """Total and per-status counts over the same set as ``list_active``."""
        by_status = await self.repository.count_active_by_status(self.active_cutoff())
        return OrderCounts(
            total=sum(by_status.values()),
            **{status.value: by_status.get(status, 0) for status in OrderStatus},
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def transition(
        self,
        order_id: uuid.UUID,
        new_status: Union[OrderStatus, str],
    ) -> TransitionResult:
        """
        Move an order to a new status and notify the customer.

        Args:
            order_id: Order to change
            new_status: Target status

        Returns:
            Committed order and, for statuses with an email, the email outcome

        Raises:
            OrderValidationError: If the status value is unknown
            OrderNotFoundError: If the order does not exist
            StateTransitionError: If the transition is not allowed
            OrderConflictError: If another request changed the order first
        """
        target = self._parse_status(new_status)
        order = await self.get_order(order_id)
        current = order.status

        self.state_machine.validate_transition(current, target)
        return await self._apply_transition(order, current, target)

    async def ship(self, order_id: uuid.UUID, details: ShipOrderRequest) -> TransitionResult:
        """
        Record shipping details and move a processing order to shipped.

        Status and shipping details are written by one statement. The
        shipped email is rendered from the order as re-read after commit,
        so it carries the tracking fields.

        Raises:
            OrderValidationError: If tracking id, courier company or courier name is missing
            OrderNotFoundError: If the order does not exist
            StateTransitionError: If the order is not in processing
            OrderConflictError: If another request changed the order first
        """
        tracking_id = (details.tracking_id or "").strip()
        courier_company = (details.courier_company or "").strip()
        courier_name = (details.courier_name or "").strip()
        if not (tracking_id and courier_company and courier_name):
            raise OrderValidationError(
                "Tracking ID, courier company, and courier name are required",
                order_id=str(order_id),
            )

        order = await self.get_order(order_id)
        current = order.status

        shipping_details = {
            "tracking_id": tracking_id,
            "courier_company": courier_company,
            "courier_name": courier_name,
            "tracking_url": (details.tracking_url or "").strip()
            or build_tracking_url(courier_company, tracking_id),
            "shipped_date": self._now().isoformat(),
            "estimated_delivery": ESTIMATED_DELIVERY,
        }

        self.state_machine.validate_transition(
            current,
            OrderStatus.SHIPPED,
            context={"shipping_details": shipping_details},
        )
        return await self._apply_transition(
            order,
            current,
            OrderStatus.SHIPPED,
            shipping_details=shipping_details,
        )

    async def _apply_transition(
        self,
        order: Order,
        current: OrderStatus,
        target: OrderStatus,
        shipping_details: Optional[dict[str, Any]] = None,
    ) -> TransitionResult:
        order_id = order.id
        updated = await self.repository.update_status(
            order_id,
            expected_status=current,
            new_status=target,
            updated_at=self._now(),
            shipping_details=shipping_details,
        )
        if not updated:
            await self.session.rollback()
            logger.warning(
                "Order status changed concurrently",
                order_id=str(order_id),
                expected_status=current.value,
                target_status=target.value,
            )
            raise OrderConflictError(
                "Order was modified by another request; reload and try again",
                order_id=str(order_id),
                expected_status=current.value,
            )

        await self.repository.commit()

        fresh = await self.repository.get_by_id(order_id, refresh=True)
        if fresh is None:
            raise OrderNotFoundError("Order not found", order_id=str(order_id))
        order_read = self.to_read(fresh)

        logger.info(
            "Order status updated",
            order_id=str(order_id),
            order_number=order_read.order_number,
            from_status=current.value,
            to_status=target.value,
        )

        notification = None
        if target.has_notification() and self.notification_service is not None:
            notification = await self._notify(order_read, target)

        return TransitionResult(order=order_read, notification=notification)

    async def _notify(self, order: OrderRead, status: OrderStatus) -> NotificationResult:
        """Attempt the status email once; failures become an unsent result."""
        try:
            return await self.notification_service.send_order_notification(order, status)
        except NotificationServiceError as e:
            logger.warning(
                "Order status updated but notification failed",
                order_id=str(order.id),
                order_number=order.order_number,
                status=status.value,
                error=str(e),
            )
            return NotificationResult(
                sent=False,
                status=status,
                recipient=order.user.email,
                error=str(e),
            )

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    @staticmethod
    def to_read(order: Order) -> OrderRead:
        return OrderRead.model_validate(order)

    def summarize(self, order: Union[Order, OrderData]) -> str:
        """Plain-text hand-off summary for fulfillment partners."""
        data = order if isinstance(order, OrderData) else self.to_read(order)
        return format_order_summary(data, self.settings.currency_symbol)

    @staticmethod
    def _parse_status(value: Union[OrderStatus, str]) -> OrderStatus:
        if isinstance(value, OrderStatus):
            return value
        try:
            return OrderStatus.from_string(value)
        except ValueError as e:
            raise OrderValidationError("Invalid status", status=value) from e
