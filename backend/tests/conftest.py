"""
Pytest configuration and shared test fixtures.

Every test gets its own SQLite database file, a mocked mail transport and,
for API tests, an ``httpx.AsyncClient`` bound to the ASGI app with the
database and transport dependencies overridden. Identity provider tokens
are minted locally with the configured key.
"""

import os

os.environ["APP_ENVIRONMENT"] = "test"
os.environ["APP_RATE_LIMIT_ENABLED"] = "false"
os.environ["APP_ADMIN_USER_IDS"] = "admin-1"
os.environ["APP_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from decimal import Decimal
from typing import Any, AsyncGenerator, Callable, Optional
from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_db, get_mail_transport
from storefront.core.config import Settings, get_settings
from storefront.database.connection import Database
from storefront.database.models.product import Product, ProductCategory
from storefront.main import create_app
from storefront.schemas.orders import OrderCreate, ShipOrderRequest, UserSnapshot
from storefront.schemas.products import ProductCreate
from storefront.services.catalog.service import ProductService
from storefront.services.notifications.aws_clients import SESClient
from storefront.services.notifications.service import NotificationService
from storefront.services.notifications.templates import TemplateEngine
from storefront.services.orders.enums import OrderStatus
from storefront.services.orders.service import OrderService

CUSTOMER_ID = "user-1"
ADMIN_ID = "admin-1"

SHIPPING_ADDRESS = {
    "fullName": "Ayesha Khan",
    "phone": "+92 300 1234567",
    "address": "House 12, Street 4, Gulberg III",
    "city": "Lahore",
    "state": "Punjab",
    "zipCode": "54000",
    "country": "Pakistan",
}


# ============================================================================
# Settings and Persistence
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    """Application settings as loaded from the test environment."""
    return get_settings()


@pytest.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """
    File-backed SQLite database with every table created.

    Yields:
        Database disposed after the test
    """
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Session on the test database, closed after the test."""
    async with database.session_factory() as db_session:
        yield db_session


# ============================================================================
# Notification Fixtures
# ============================================================================


@pytest.fixture
def mail_transport() -> MagicMock:
    """
    Mail transport that accepts every message.

    Returns:
        Mock SES client returning a fixed message id
    """
    transport = MagicMock(spec=SESClient)
    transport.send_email.return_value = {"message_id": "ses-message-1", "status": "sent"}
    return transport


@pytest.fixture
def template_engine() -> TemplateEngine:
    return TemplateEngine()


@pytest.fixture
def notification_service(
    session: AsyncSession,
    mail_transport: MagicMock,
    template_engine: TemplateEngine,
    settings: Settings,
) -> NotificationService:
    return NotificationService(session, mail_transport, template_engine, settings)


@pytest.fixture
def order_service(
    session: AsyncSession,
    notification_service: NotificationService,
    settings: Settings,
) -> OrderService:
    return OrderService(session, notification_service=notification_service, settings=settings)


# ============================================================================
# Order Builders
# ============================================================================


@pytest.fixture
def customer() -> UserSnapshot:
    return UserSnapshot(id=CUSTOMER_ID, name="Ayesha Khan", email="ayesha@example.com")


@pytest.fixture
def make_order_request() -> Callable[..., OrderCreate]:
    """
    Factory for valid order placement requests.

    Keyword arguments override top-level request fields.
    """

    def _make(**overrides: Any) -> OrderCreate:
        payload: dict[str, Any] = {
            "items": [
                {
                    "productId": "prod-1",
                    "title": "Linen Kurta",
                    "quantity": 2,
                    "price": "50",
                    "image": "https://cdn.example.com/kurta.jpg",
                    "color": "White",
                    "size": "M",
                }
            ],
            "shippingAddress": dict(SHIPPING_ADDRESS),
            "paymentMethod": "cod",
            "specialInstructions": "",
        }
        payload.update(overrides)
        return OrderCreate.model_validate(payload)

    return _make


@pytest.fixture
def place_order(
    order_service: OrderService,
    customer: UserSnapshot,
    make_order_request: Callable[..., OrderCreate],
):
    """
    Place an order and optionally walk it to a target status.

    The walk uses the service's own transitions, so every intermediate
    status is reached through an allowed edge.
    """
    path = [
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    ]

    async def _place(status: Optional[OrderStatus] = None, **overrides: Any):
        order = await order_service.create_order(customer, make_order_request(**overrides))
        if status is None or status == OrderStatus.PENDING:
            return order
        if status == OrderStatus.CANCELLED:
            await order_service.transition(order.id, OrderStatus.CANCELLED)
            return await order_service.repository.get_by_id(order.id, refresh=True)
        for step in path[: path.index(status) + 1]:
            if step == OrderStatus.SHIPPED:
                await order_service.ship(
                    order.id,
                    ShipOrderRequest(
                        tracking_id="TRK123",
                        courier_company="tcs",
                        courier_name="TCS Express",
                    ),
                )
            else:
                await order_service.transition(order.id, step)
        return await order_service.repository.get_by_id(order.id, refresh=True)

    return _place


@pytest.fixture
async def product(session: AsyncSession, settings: Settings) -> Product:
    """A single active catalog product."""
    return await ProductService(session, settings).create_product(
        ProductCreate(
            title="Linen Kurta",
            description="Breathable summer kurta in pure linen",
            category=ProductCategory.TOPWEAR,
            price=Decimal("4500"),
            images=["https://cdn.example.com/kurta.jpg"],
        )
    )


# ============================================================================
# API Fixtures
# ============================================================================


@pytest.fixture
async def client(
    database: Database,
    mail_transport: MagicMock,
    settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Async client for the API with database and mail transport overridden.

    Yields:
        AsyncClient bound to a fresh application instance
    """
    app = create_app(settings)

    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        async with database.session() as db_session:
            yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_mail_transport] = lambda: mail_transport
    app.state.database = database

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


@pytest.fixture
def make_token(settings: Settings) -> Callable[..., str]:
    """Mint identity provider tokens signed with the configured key."""

    def _make(
        subject: str,
        name: str = "Test User",
        email: Optional[str] = "user@example.com",
        **claims: Any,
    ) -> str:
        payload: dict[str, Any] = {"sub": subject, "name": name, **claims}
        if email is not None:
            payload["email"] = email
        return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    return _make


@pytest.fixture
def customer_headers(make_token) -> dict[str, str]:
    token = make_token(CUSTOMER_ID, name="Ayesha Khan", email="ayesha@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_customer_headers(make_token) -> dict[str, str]:
    token = make_token("user-2", name="Bilal Ahmed", email="bilal@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(make_token) -> dict[str, str]:
    token = make_token(ADMIN_ID, name="Store Admin", email="admin@auroxa.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def order_payload() -> dict[str, Any]:
    """JSON body for placing an order through the API."""
    return {
        "items": [
            {
                "productId": "prod-1",
                "title": "Linen Kurta",
                "quantity": 2,
                "price": 50,
                "color": "White",
                "size": "M",
            }
        ],
        "shippingAddress": dict(SHIPPING_ADDRESS),
        "paymentMethod": "cod",
        "deliveryFee": 0,
    }
