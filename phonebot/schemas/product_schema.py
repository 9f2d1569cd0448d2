"""Product catalog data models."""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from phonebot.utils import format_price

NO_INFO = "Không có thông tin"


class Product(BaseModel):
    """A phone as stored in the catalog. Read-only for the dialogue system."""

    model_config = ConfigDict(frozen=True)

    product_id: int
    name: str
    brand: str
    description: Optional[str] = None
    price: int
    colors: Optional[str] = None
    storage: Optional[str] = None
    release_date: Optional[date] = None
    warranty_period: Optional[int] = None
    image_url: Optional[str] = None
    promotions: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)

    @property
    def formatted_price(self) -> str:
        return format_price(self.price)

    @property
    def warranty_text(self) -> Optional[str]:
        if self.warranty_period:
            return f"{self.warranty_period} tháng"
        return None

    def image_path(self, base_url: str, default_image: Optional[str] = None) -> Optional[str]:
        """Public URL of the product image, or the default image when unset."""
        filename = self.image_url or default_image
        if not filename:
            return None
        return f"{base_url.rstrip('/')}/{filename}"

    def detail_facts(self) -> dict[str, Any]:
        """Full product sheet used for detail and consultation replies."""
        return {
            "name": self.name,
            "brand": self.brand,
            "description": self.description or "Chưa có mô tả",
            "price": self.formatted_price,
            "colors": self.colors or NO_INFO,
            "storage": self.storage or NO_INFO,
            "release_date": self.release_date.isoformat() if self.release_date else NO_INFO,
            "warranty_period": self.warranty_text or "Không có",
            "promotion_names": "; ".join(self.promotions),
            "features": "; ".join(self.features),
        }

    def comparison_facts(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "price": self.formatted_price,
            "colors": self.colors or NO_INFO,
            "storage": self.storage or NO_INFO,
            "features": "; ".join(self.features) or NO_INFO,
        }

    def summary_facts(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "brand": self.brand,
            "price": self.formatted_price,
            "image_url": self.image_url,
        }


class ProductCard(BaseModel):
    """Compact product entry returned to the chat UI."""

    name: str
    brand: str
    price: int
    image_url: Optional[str] = Field(default=None, serialization_alias="imageUrl")

    @classmethod
    def from_product(
        cls, product: Product, base_url: str, default_image: Optional[str] = None
    ) -> "ProductCard":
        return cls(
            name=product.name,
            brand=product.brand,
            price=product.price,
            image_url=product.image_path(base_url, default_image),
        )
