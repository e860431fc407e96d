"""
Test suite for the catalog ProductService and product endpoints.
"""

import uuid
from decimal import Decimal
from typing import Any, Callable

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import Settings
from storefront.schemas.products import ProductCreate, ProductUpdate
from storefront.services.catalog.service import (
    ProductConflictError,
    ProductNotFoundError,
    ProductService,
    ProductValidationError,
    slugify,
)


@pytest.fixture
def product_service(session: AsyncSession, settings: Settings) -> ProductService:
    return ProductService(session, settings)


@pytest.fixture
def make_product() -> Callable[..., ProductCreate]:
    """Factory for valid product creation requests."""

    def _make(**overrides: Any) -> ProductCreate:
        data: dict[str, Any] = {
            "title": "Linen Kurta",
            "description": "Breathable summer kurta in pure linen",
            "category": "topwear",
            "targetAudience": "men",
            "price": "4500",
            "images": ["https://cdn.example.com/kurta-1.jpg"],
            "colors": ["White", " "],
            "sizes": ["M", "L"],
            "tags": ["summer", "linen"],
        }
        data.update(overrides)
        return ProductCreate.model_validate(data)

    return _make


# ============================================================================
# Slugs and Validation
# ============================================================================


class TestSlugify:
    @pytest.mark.parametrize(
        "title, slug",
        [
            ("Linen Shirt (Blue)", "linen-shirt-blue"),
            ("  Eid  Collection -- 2026 ", "eid-collection-2026"),
            ("Kids' Toy Car", "kids-toy-car"),
        ],
    )
    def test_slugify(self, title: str, slug: str) -> None:
        assert slugify(title) == slug


class TestProductCreateSchema:
    def test_single_image_fallback(self, make_product) -> None:
        product = make_product(images=[], image="https://cdn.example.com/one.jpg")

        assert product.images == ["https://cdn.example.com/one.jpg"]

    def test_image_required(self, make_product) -> None:
        with pytest.raises(ValueError, match="At least 1 image is required"):
            make_product(images=[])

    def test_at_most_four_images(self, make_product) -> None:
        with pytest.raises(ValueError, match="At most 4 images"):
            make_product(images=[f"https://cdn.example.com/{i}.jpg" for i in range(5)])

    def test_discount_below_price(self, make_product) -> None:
        with pytest.raises(ValueError, match="Discount price must be lower than price"):
            make_product(discountPrice="4500")

    def test_blank_list_entries_dropped(self, make_product) -> None:
        assert make_product().colors == ["White"]


# ============================================================================
# Service
# ============================================================================


class TestProductService:
    async def test_create_generates_slug_and_main_image(
        self, product_service: ProductService, make_product
    ) -> None:
        product = await product_service.create_product(
            make_product(images=["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"])
        )

        assert product.slug == "linen-kurta"
        assert product.image == "https://cdn.example.com/a.jpg"
        assert product.rating == 0
        assert product.review_count == 0

    async def test_duplicate_slug(self, product_service: ProductService, make_product) -> None:
        await product_service.create_product(make_product())

        with pytest.raises(ProductConflictError, match="Duplicate slug"):
            await product_service.create_product(make_product(slug="Linen Kurta"))

    async def test_featured_cap(
        self, product_service: ProductService, make_product, settings: Settings
    ) -> None:
        for index in range(settings.max_featured_products):
            await product_service.create_product(
                make_product(title=f"Featured {index}", isFeatured=True)
            )

        with pytest.raises(ProductValidationError, match="featured products allowed"):
            await product_service.create_product(make_product(title="One Too Many", isFeatured=True))

    async def test_featured_cap_on_update(
        self, product_service: ProductService, make_product, settings: Settings
    ) -> None:
        for index in range(settings.max_featured_products):
            await product_service.create_product(
                make_product(title=f"Featured {index}", isFeatured=True)
            )
        plain = await product_service.create_product(make_product(title="Plain"))

        with pytest.raises(ProductValidationError):
            await product_service.update_product(plain.id, ProductUpdate(is_featured=True))

    async def test_filters(self, product_service: ProductService, make_product) -> None:
        await product_service.create_product(make_product())
        await product_service.create_product(
            make_product(
                title="Embroidered Lawn Suit",
                category="fashion-apparel",
                targetAudience="women",
                tags=["eid"],
                isFeatured=True,
            )
        )
        await product_service.create_product(make_product(title="Hidden Scarf", isActive=False))

        women = await product_service.list_products(audience="women")
        everything = await product_service.list_products(category="all", audience="all")
        featured = await product_service.list_products(featured=True)
        by_tag = await product_service.list_products(search="EID")
        by_description = await product_service.list_products(search="breathable")

        assert [p.title for p in women] == ["Embroidered Lawn Suit"]
        assert len(everything) == 2
        assert [p.title for p in featured] == ["Embroidered Lawn Suit"]
        assert [p.title for p in by_tag] == ["Embroidered Lawn Suit"]
        assert {p.title for p in by_description} == {"Linen Kurta", "Embroidered Lawn Suit"}

    async def test_unknown_category_filter(self, product_service: ProductService) -> None:
        with pytest.raises(ProductValidationError):
            await product_service.list_products(category="furniture")

    async def test_partial_update(self, product_service: ProductService, make_product) -> None:
        product = await product_service.create_product(make_product())

        updated = await product_service.update_product(
            product.id,
            ProductUpdate(
                discount_price=Decimal("3600"),
                images=["https://cdn.example.com/new.jpg"],
            ),
        )

        assert updated.title == "Linen Kurta"
        assert updated.image == "https://cdn.example.com/new.jpg"
        assert updated.final_price == Decimal("3600")
        assert updated.discount_percentage == 20

    async def test_update_rejects_discount_above_price(
        self, product_service: ProductService, make_product
    ) -> None:
        product = await product_service.create_product(make_product())

        with pytest.raises(ProductValidationError):
            await product_service.update_product(product.id, ProductUpdate(price=Decimal("100"), discount_price=Decimal("200")))

    async def test_delete(self, product_service: ProductService, make_product) -> None:
        product = await product_service.create_product(make_product())

        await product_service.delete_product(product.id)

        with pytest.raises(ProductNotFoundError):
            await product_service.get_product(product.id)

    async def test_update_missing(self, product_service: ProductService) -> None:
        with pytest.raises(ProductNotFoundError):
            await product_service.update_product(uuid.uuid4(), ProductUpdate(title="x"))


# ============================================================================
# Endpoints
# ============================================================================


class TestProductEndpoints:
    PAYLOAD = {
        "title": "Block Print Dupatta",
        "description": "Hand block printed cotton dupatta",
        "category": "accessories",
        "targetAudience": "women",
        "price": 2500,
        "discountPrice": 2000,
        "images": ["https://cdn.example.com/dupatta.jpg"],
    }

    async def test_admin_creates_and_public_reads(
        self, client: AsyncClient, admin_headers
    ) -> None:
        created = await client.post("/api/v1/products", json=self.PAYLOAD, headers=admin_headers)
        product_id = created.json()["data"]["id"]

        fetched = await client.get(f"/api/v1/products/{product_id}")
        names = await client.get("/api/v1/products/names")

        assert created.status_code == 201
        assert created.json()["message"] == "Product created successfully"
        data = fetched.json()["data"]
        assert data["slug"] == "block-print-dupatta"
        assert data["finalPrice"] == 2000
        assert data["discountPercentage"] == 20
        assert names.json()["data"] == [{"id": product_id, "title": "Block Print Dupatta"}]

    async def test_customer_cannot_create(self, client: AsyncClient, customer_headers) -> None:
        response = await client.post(
            "/api/v1/products", json=self.PAYLOAD, headers=customer_headers
        )

        assert response.status_code == 403

    async def test_duplicate_slug_is_409(self, client: AsyncClient, admin_headers) -> None:
        await client.post("/api/v1/products", json=self.PAYLOAD, headers=admin_headers)

        response = await client.post("/api/v1/products", json=self.PAYLOAD, headers=admin_headers)

        assert response.status_code == 409

    async def test_update_and_delete(self, client: AsyncClient, admin_headers) -> None:
        created = await client.post("/api/v1/products", json=self.PAYLOAD, headers=admin_headers)
        product_id = created.json()["data"]["id"]

        updated = await client.put(
            f"/api/v1/products/{product_id}", json={"stock": 12}, headers=admin_headers
        )
        deleted = await client.delete(f"/api/v1/products/{product_id}", headers=admin_headers)
        missing = await client.get(f"/api/v1/products/{product_id}")

        assert updated.json()["data"]["stock"] == 12
        assert deleted.json()["message"] == "Product deleted successfully"
        assert missing.status_code == 404

    async def test_invalid_id(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/products/abc")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid product ID"

    async def test_listing_filters(self, client: AsyncClient, admin_headers) -> None:
        await client.post("/api/v1/products", json=self.PAYLOAD, headers=admin_headers)

        listed = await client.get("/api/v1/products", params={"category": "accessories"})
        empty = await client.get("/api/v1/products", params={"audience": "kids"})

        assert listed.json()["count"] == 1
        assert empty.json()["count"] == 0
