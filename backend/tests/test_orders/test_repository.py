"""
Tests for OrderRepository queries and the conditional status update.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.base import utcnow
from storefront.database.models.order import Order, OrderItem
from storefront.services.orders.enums import OrderStatus, PaymentMethod
from storefront.services.orders.repository import OrderRepository


def build_order(
    status: OrderStatus = OrderStatus.PENDING,
    updated_days_ago: float = 0,
    user_id: str = "user-1",
) -> Order:
    stamp = utcnow() - timedelta(days=updated_days_ago)
    return Order(
        id=uuid.uuid4(),
        order_number=f"ORD-1760000000000-{uuid.uuid4().hex[:9].upper()}",
        user_id=user_id,
        user_name="Ayesha Khan",
        user_email="ayesha@example.com",
        shipping_address={
            "full_name": "Ayesha Khan",
            "phone": "+92 300 1234567",
            "address": "House 12",
            "city": "Lahore",
            "state": "Punjab",
            "zip_code": "54000",
            "country": "Pakistan",
        },
        payment_method=PaymentMethod.COD,
        subtotal=Decimal("100.00"),
        delivery_fee=Decimal("200.00"),
        total=Decimal("300.00"),
        status=status,
        created_at=stamp,
        updated_at=stamp,
        items=[
            OrderItem(
                position=0,
                product_id="prod-1",
                title="Linen Kurta",
                quantity=2,
                price=Decimal("50.00"),
            )
        ],
    )


@pytest.fixture
def repository(session: AsyncSession) -> OrderRepository:
    return OrderRepository(session)


@pytest.fixture
async def seeded(repository: OrderRepository) -> dict[str, Order]:
    """Orders covering both sides of the retention window."""
    orders = {
        "pending_old": build_order(OrderStatus.PENDING, updated_days_ago=30),
        "shipped": build_order(OrderStatus.SHIPPED, updated_days_ago=3),
        "delivered_recent": build_order(OrderStatus.DELIVERED, updated_days_ago=6),
        "delivered_stale": build_order(OrderStatus.DELIVERED, updated_days_ago=8),
        "cancelled_old": build_order(OrderStatus.CANCELLED, updated_days_ago=40),
    }
    for order in orders.values():
        await repository.add(order)
    await repository.commit()
    return orders


# ============================================================================
# Active Working Set
# ============================================================================


class TestActiveSet:
    async def test_stale_delivered_orders_excluded(
        self, repository: OrderRepository, seeded: dict[str, Order]
    ) -> None:
        cutoff = utcnow() - timedelta(days=7)

        active = {o.id for o in await repository.list_active(cutoff)}

        assert active == {
            seeded["pending_old"].id,
            seeded["shipped"].id,
            seeded["delivered_recent"].id,
            seeded["cancelled_old"].id,
        }

    async def test_full_listing_keeps_everything(
        self, repository: OrderRepository, seeded: dict[str, Order]
    ) -> None:
        orders = await repository.list_all()

        assert len(orders) == len(seeded)
        # Newest first
        assert orders[0].id == seeded["shipped"].id

    async def test_counts_match_active_listing(
        self, repository: OrderRepository, seeded: dict[str, Order]
    ) -> None:
        cutoff = utcnow() - timedelta(days=7)

        counts = await repository.count_active_by_status(cutoff)
        active = await repository.list_active(cutoff)

        assert sum(counts.values()) == len(active)
        assert counts[OrderStatus.DELIVERED] == 1
        assert OrderStatus.CONFIRMED not in counts


# ============================================================================
# Conditional Status Update
# ============================================================================


class TestUpdateStatus:
    async def test_matching_expected_status_updates(
        self, repository: OrderRepository, seeded: dict[str, Order]
    ) -> None:
        order = seeded["pending_old"]

        updated = await repository.update_status(
            order.id,
            expected_status=OrderStatus.PENDING,
            new_status=OrderStatus.CONFIRMED,
            updated_at=utcnow(),
        )
        await repository.commit()

        assert updated is True
        fresh = await repository.get_by_id(order.id, refresh=True)
        assert fresh.status == OrderStatus.CONFIRMED

    async def test_stale_expected_status_is_a_no_op(
        self, repository: OrderRepository, seeded: dict[str, Order]
    ) -> None:
        order = seeded["shipped"]

        updated = await repository.update_status(
            order.id,
            expected_status=OrderStatus.PROCESSING,
            new_status=OrderStatus.SHIPPED,
            updated_at=utcnow(),
            shipping_details={"tracking_id": "LATE"},
        )
        await repository.commit()

        assert updated is False
        fresh = await repository.get_by_id(order.id, refresh=True)
        assert fresh.status == OrderStatus.SHIPPED
        assert fresh.shipping_details is None

    async def test_unknown_order(self, repository: OrderRepository) -> None:
        updated = await repository.update_status(
            uuid.uuid4(),
            expected_status=OrderStatus.PENDING,
            new_status=OrderStatus.CONFIRMED,
            updated_at=utcnow(),
        )

        assert updated is False


class TestLookups:
    async def test_by_order_number(
        self, repository: OrderRepository, seeded: dict[str, Order]
    ) -> None:
        order = seeded["shipped"]

        found = await repository.get_by_order_number(order.order_number)

        assert found.id == order.id
        assert await repository.get_by_order_number("ORD-0-MISSING00") is None

    async def test_by_user(self, repository: OrderRepository) -> None:
        await repository.add(build_order(user_id="user-9"))
        await repository.add(build_order(user_id="user-8"))
        await repository.commit()

        orders = await repository.list_by_user("user-9")

        assert [o.user_id for o in orders] == ["user-9"]
