"""
Product catalog access.

``ProductCatalog`` is the read-only lookup interface the dialogue
controller depends on. ``InMemoryCatalog`` serves a fixed product list and
backs the console mode and tests; the SQL implementation lives in
``phonebot.tools.sql_catalog``.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Optional

from phonebot.schemas.product_schema import Product

logger = logging.getLogger(__name__)

MAX_PRICE = 999_999_999
SIMILAR_LIMIT = 3


class ProductCatalog(ABC):
    """Async read-only product lookups."""

    @abstractmethod
    async def get_product(self, name: str) -> Optional[Product]:
        """First product whose name contains ``name`` (case-insensitive)."""

    @abstractmethod
    async def find_product_in_text(self, text: str) -> Optional[Product]:
        """Product whose full name occurs inside ``text``; longest name wins."""

    @abstractmethod
    async def find_by_price_range(
        self, min_price: int, max_price: int, name: Optional[str] = None
    ) -> list[Product]:
        """Products priced within [min_price, max_price]."""

    @abstractmethod
    async def find_by_brand(
        self, brand: str, feature: Optional[str] = None, color: Optional[str] = None
    ) -> list[Product]:
        """Products of a brand, optionally filtered by feature and color."""

    @abstractmethod
    async def suggest_similar(
        self, brand: str, exclude_name: str, limit: int = SIMILAR_LIMIT
    ) -> list[Product]:
        """Other products of the same brand whose name does not contain ``exclude_name``."""

    async def compare_products(
        self, first_name: str, second_name: str
    ) -> Optional[tuple[Product, Product]]:
        """Resolve both products for a side-by-side comparison. None if either is missing."""
        first = await self.get_product(first_name)
        second = await self.get_product(second_name)
        if first is None or second is None:
            logger.debug("Comparison lookup missed: %r / %r", first_name, second_name)
            return None
        return first, second


class InMemoryCatalog(ProductCatalog):
    """Catalog over a fixed list of products, kept in insertion order."""

    def __init__(self, products: Optional[Iterable[Product]] = None) -> None:
        self._products: list[Product] = list(SAMPLE_PRODUCTS if products is None else products)

    @property
    def products(self) -> list[Product]:
        return list(self._products)

    async def get_product(self, name: str) -> Optional[Product]:
        needle = name.lower().strip()
        if not needle:
            return None
        for product in self._products:
            if needle in product.name.lower():
                return product
        return None

    async def find_product_in_text(self, text: str) -> Optional[Product]:
        haystack = text.lower()
        matches = [p for p in self._products if p.name.lower() in haystack]
        if not matches:
            return None
        return max(matches, key=lambda p: len(p.name))

    async def find_by_price_range(
        self, min_price: int, max_price: int, name: Optional[str] = None
    ) -> list[Product]:
        results = [p for p in self._products if min_price <= p.price <= max_price]
        if name:
            needle = name.lower()
            results = [p for p in results if needle in p.name.lower()]
        return results

    async def find_by_brand(
        self, brand: str, feature: Optional[str] = None, color: Optional[str] = None
    ) -> list[Product]:
        wanted = brand.lower()
        results = [p for p in self._products if p.brand.lower() == wanted]
        if feature:
            needle = feature.lower()
            results = [p for p in results if any(needle in f.lower() for f in p.features)]
        if color:
            needle = color.lower()
            results = [p for p in results if needle in (p.colors or "").lower()]
        return results

    async def suggest_similar(
        self, brand: str, exclude_name: str, limit: int = SIMILAR_LIMIT
    ) -> list[Product]:
        excluded = exclude_name.lower()
        wanted = brand.lower()
        results = [
            p
            for p in self._products
            if p.brand.lower() == wanted and excluded not in p.name.lower()
        ]
        return results[:limit]


_STORE_PROMOTIONS = ["Giảm 5% khi thanh toán qua ví điện tử"]

SAMPLE_PRODUCTS: list[Product] = [
    Product(
        product_id=1,
        name="iPhone 14",
        brand="Apple",
        description="Chip A15 Bionic, màn hình Super Retina XDR 6.1 inch.",
        price=17_990_000,
        colors="Đen, Trắng, Xanh, Tím",
        storage="128GB, 256GB, 512GB",
        release_date=date(2022, 9, 16),
        warranty_period=12,
        image_url="iphone-14.jpg",
        promotions=["Tặng ốp lưng chính hãng", *_STORE_PROMOTIONS],
        features=["Camera kép 12MP", "Chống nước IP68", "Face ID"],
    ),
    Product(
        product_id=2,
        name="iPhone 15 Pro Max",
        brand="Apple",
        description="Khung titan, chip A17 Pro, camera tele 5x.",
        price=29_990_000,
        colors="Titan tự nhiên, Titan đen, Titan trắng, Titan xanh",
        storage="256GB, 512GB, 1TB",
        release_date=date(2023, 9, 22),
        warranty_period=12,
        image_url="iphone-15-pro-max.jpg",
        promotions=list(_STORE_PROMOTIONS),
        features=["Camera 48MP", "Zoom quang học 5x", "Cổng USB-C"],
    ),
    Product(
        product_id=3,
        name="Galaxy S23",
        brand="Samsung",
        description="Snapdragon 8 Gen 2 for Galaxy, thiết kế nhỏ gọn.",
        price=16_990_000,
        colors="Đen, Kem, Xanh lá, Tím",
        storage="128GB, 256GB",
        release_date=date(2023, 2, 17),
        warranty_period=12,
        image_url="galaxy-s23.jpg",
        promotions=["Thu cũ đổi mới trợ giá 2 triệu", *_STORE_PROMOTIONS],
        features=["Camera 50MP", "Pin 3900mAh", "Chống nước IP68"],
    ),
    Product(
        product_id=4,
        name="Galaxy A54",
        brand="Samsung",
        description="Màn hình Super AMOLED 120Hz, pin 5000mAh.",
        price=8_490_000,
        colors="Đen, Trắng, Tím, Xanh",
        storage="128GB, 256GB",
        release_date=date(2023, 3, 24),
        warranty_period=12,
        image_url="galaxy-a54.jpg",
        promotions=list(_STORE_PROMOTIONS),
        features=["Pin 5000mAh", "Camera 50MP"],
    ),
    Product(
        product_id=5,
        name="Redmi Note 13",
        brand="Xiaomi",
        description="Màn hình AMOLED 120Hz, sạc nhanh 33W.",
        price=4_890_000,
        colors="Đen, Xanh, Vàng",
        storage="128GB, 256GB",
        release_date=date(2024, 1, 15),
        warranty_period=18,
        image_url="redmi-note-13.jpg",
        promotions=list(_STORE_PROMOTIONS),
        features=["Sạc nhanh 33W", "Camera 108MP"],
    ),
    Product(
        product_id=6,
        name="Reno10",
        brand="Oppo",
        description="Chuyên gia chân dung với camera tele 32MP.",
        price=9_990_000,
        colors="Xám, Xanh",
        storage="256GB",
        release_date=date(2023, 7, 20),
        warranty_period=12,
        image_url="oppo-reno10.jpg",
        promotions=list(_STORE_PROMOTIONS),
        features=["Camera chân dung 32MP", "Sạc nhanh 67W"],
    ),
    Product(
        product_id=7,
        name="Vivo Y36",
        brand="Vivo",
        description="Thiết kế mặt lưng kính, pin 5000mAh.",
        price=5_490_000,
        colors="Đen, Vàng",
        storage="128GB",
        release_date=date(2023, 6, 10),
        warranty_period=12,
        image_url=None,
        promotions=list(_STORE_PROMOTIONS),
        features=["Pin 5000mAh", "Sạc nhanh 44W"],
    ),
]
