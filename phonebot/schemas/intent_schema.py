"""Normalized intent classification result."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class IntentResult(BaseModel):
    """Best-effort (intent, entities) pair for one utterance.

    ``available`` is False when the classifier could not be used at all;
    an available result with ``intent=None`` means the classifier answered
    but recognized no intent.
    """

    available: bool = True
    intent: Optional[str] = None
    product_names: list[str] = Field(default_factory=list)
    price_range: Optional[str] = None
    brand: Optional[str] = None
    feature: Optional[str] = None
    color: Optional[str] = None

    @classmethod
    def unavailable(cls) -> "IntentResult":
        return cls(available=False)

    @property
    def product_name(self) -> Optional[str]:
        return self.product_names[0] if self.product_names else None

    def entities(self) -> dict[str, Any]:
        """Extracted entities without empty values, for the turn history."""
        values = {
            "product_names": self.product_names,
            "price_range": self.price_range,
            "brand": self.brand,
            "feature": self.feature,
            "color": self.color,
        }
        return {key: value for key, value in values.items() if value}
