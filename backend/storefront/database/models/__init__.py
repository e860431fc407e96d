"""
Database models package.

Models are imported here so they register with ``Base.metadata`` for table
creation and Alembic migrations.
"""

from storefront.database.models.contact import ContactMessage, ContactMessageStatus
from storefront.database.models.notification import DeliveryStatus, NotificationLog
from storefront.database.models.order import Order, OrderItem
from storefront.database.models.product import Product, ProductCategory, TargetAudience
from storefront.database.models.review import Review

__all__ = [
    "ContactMessage",
    "ContactMessageStatus",
    "DeliveryStatus",
    "NotificationLog",
    "Order",
    "OrderItem",
    "Product",
    "ProductCategory",
    "Review",
    "TargetAudience",
]
