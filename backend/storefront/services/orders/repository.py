"""
Order data access repository.

Status changes go through ``update_status``, a single conditional UPDATE
keyed on the status the caller last observed. A caller that lost a race
with another admin gets ``False`` back instead of silently overwriting the
newer status.
"""

import uuid
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from storefront.core.logging import get_logger
from storefront.database.models.order import Order
from storefront.services.orders.enums import OrderStatus

logger = get_logger(__name__)


class OrderRepositoryError(Exception):
    """Base exception for order repository errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context = context


class OrderNotFoundError(OrderRepositoryError):
    """Raised when order is not found."""

    pass


class OrderCreationError(OrderRepositoryError):
    """Raised when order creation fails."""

    pass


class OrderPersistenceError(OrderRepositoryError):
    """Raised when the store cannot be read or written."""

    pass


def active_order_clause(cutoff: datetime) -> ColumnElement[bool]:
    """
    Predicate for orders in the active admin working set.

    Every order that is not delivered, plus delivered orders last touched
    at or after ``cutoff``. ``created_at`` stands in when ``updated_at``
    was never set.
    """
    return or_(
        Order.status != OrderStatus.DELIVERED,
        func.coalesce(Order.updated_at, Order.created_at) >= cutoff,
    )


class OrderRepository:
    """
    Repository for order data access operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, order: Order) -> Order:
        """
        Stage a new order with its items and flush it.

        Args:
            order: Order with items attached

        Returns:
            The flushed order

        Raises:
            OrderCreationError: If the insert violates a constraint or fails
        """
        order_number = order.order_number
        try:
            self.session.add(order)
            await self.session.flush()
            return order
        except IntegrityError as e:
            await self.session.rollback()
            logger.error(
                "Order creation failed - integrity error",
                order_number=order_number,
                error=str(e.orig),
            )
            raise OrderCreationError(
                "Order creation failed due to data integrity violation",
                order_number=order_number,
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Order creation failed - database error",
                order_number=order_number,
                error=str(e),
            )
            raise OrderCreationError(
                "Order creation failed due to database error",
                order_number=order_number,
            ) from e

    async def commit(self) -> None:
        """
        Commit the current unit of work.

        Raises:
            OrderPersistenceError: If the commit fails
        """
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Order commit failed", error=str(e), error_type=type(e).__name__)
            raise OrderPersistenceError("Failed to save order changes") from e

    async def get_by_id(self, order_id: uuid.UUID, refresh: bool = False) -> Optional[Order]:
        """
        Get order by id.

        Args:
            order_id: Order identifier
            refresh: Reload from the database even if the order is already
                present in the session

        Returns:
            Order if found, None otherwise
        """
        stmt = select(Order).where(Order.id == order_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return await self._scalar_one_or_none(stmt, order_id=str(order_id))

    async def get_by_order_number(self, order_number: str) -> Optional[Order]:
        stmt = select(Order).where(Order.order_number == order_number)
        return await self._scalar_one_or_none(stmt, order_number=order_number)

    async def list_all(self) -> Sequence[Order]:
        """Every order, newest first."""
        stmt = select(Order).order_by(Order.created_at.desc())
        return await self._scalars(stmt, query="all")

    async def list_by_user(self, user_id: str) -> Sequence[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
        )
        return await self._scalars(stmt, query="by_user", user_id=user_id)

    async def list_active(self, cutoff: datetime) -> Sequence[Order]:
        """
        Orders in the active working set, newest first.

        Args:
            cutoff: Delivered orders last updated before this are excluded
        """
        stmt = (
            select(Order)
            .where(active_order_clause(cutoff))
            .order_by(Order.created_at.desc())
        )
        return await self._scalars(stmt, query="active")

    async def count_active_by_status(self, cutoff: datetime) -> dict[OrderStatus, int]:
        """
        Count active orders per status.

        Args:
            cutoff: Same cutoff as ``list_active``

        Returns:
            Mapping of status to count; statuses without orders are absent
        """
        stmt = (
            select(Order.status, func.count(Order.id))
            .where(active_order_clause(cutoff))
            .group_by(Order.status)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Failed to count orders", error=str(e))
            raise OrderPersistenceError("Failed to count orders") from e
        return {OrderStatus(row[0]): row[1] for row in result.all()}

    async def update_status(
        self,
        order_id: uuid.UUID,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        updated_at: datetime,
        shipping_details: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Conditionally move an order to a new status.

        Status, ``updated_at`` and (for shipping) ``shipping_details`` are
        written in one statement that only matches while the order is
        still in ``expected_status``. The change is flushed, not committed.

        Returns:
            True if the order was updated, False if it no longer has the
            expected status or does not exist
        """
        values: dict[str, Any] = {"status": new_status, "updated_at": updated_at}
        if shipping_details is not None:
            values["shipping_details"] = shipping_details

        stmt = (
            update(Order)
            .where(Order.id == order_id, Order.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to update order status",
                order_id=str(order_id),
                target_status=new_status.value,
                error=str(e),
            )
            raise OrderPersistenceError(
                "Failed to update order status",
                order_id=str(order_id),
            ) from e

        return result.rowcount == 1

    async def _scalar_one_or_none(self, stmt, **context: Any) -> Optional[Order]:
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Failed to fetch order", error=str(e), **context)
            raise OrderPersistenceError("Failed to fetch order", **context) from e
        return result.scalar_one_or_none()

    async def _scalars(self, stmt, **context: Any) -> Sequence[Order]:
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Failed to list orders", error=str(e), **context)
            raise OrderPersistenceError("Failed to list orders", **context) from e
        return result.scalars().all()
