"""
Order and order item models.

An order snapshots everything it needs at placement time: the purchaser
(id, name, email), each line's title, unit price and image, and the
shipping address. Catalog or identity changes never alter a placed order.
"""

import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    CheckConstraint,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.database.base import Base, BaseModel, JSONDocument
from storefront.services.orders.enums import OrderStatus, PaymentMethod

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in OrderStatus)


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class Order(BaseModel):
    """
    Customer order.

    ``status`` only ever holds one of the six ``OrderStatus`` values, enforced
    both by the enum column and a CHECK constraint. ``shipping_details`` is
    null until the ship transition sets it in the same statement as the
    status change.
    """

    __tablename__ = "orders"

    order_number: Mapped[str] = mapped_column(
        String(40),
        unique=True,
        nullable=False,
        index=True,
    )

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_email: Mapped[str] = mapped_column(String(320), nullable=False)

    shipping_address: Mapped[Dict[str, Any]] = mapped_column(
        JSONDocument,
        nullable=False,
    )

    payment_method: Mapped[PaymentMethod] = mapped_column(
        SQLEnum(
            PaymentMethod,
            name="payment_method",
            native_enum=False,
            length=10,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=PaymentMethod.COD,
    )

    special_instructions: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )

    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(
            OrderStatus,
            name="order_status",
            native_enum=False,
            length=20,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
    )

    shipping_details: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSONDocument,
        nullable=True,
    )

    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.position",
    )

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_orders_status"),
        CheckConstraint("subtotal >= 0", name="ck_orders_subtotal_non_negative"),
        CheckConstraint("delivery_fee >= 0", name="ck_orders_delivery_fee_non_negative"),
        CheckConstraint(
            "abs(total - (subtotal + delivery_fee)) < 0.005",
            name="ck_orders_total",
        ),
        Index("ix_orders_status_updated_at", "status", "updated_at"),
    )

    @property
    def user(self) -> Dict[str, str]:
        """Purchaser snapshot taken when the order was placed."""
        return {"id": self.user_id, "name": self.user_name, "email": self.user_email}


class OrderItem(Base):
    """Line item snapshot of a product at order time."""

    __tablename__ = "order_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Free-form reference; catalog products may be removed after ordering
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    size: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    order: Mapped["Order"] = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        CheckConstraint("price >= 0", name="ck_order_items_price_non_negative"),
    )

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity
