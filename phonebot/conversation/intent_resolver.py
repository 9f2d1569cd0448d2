"""
Intent resolution: classifier payload -> normalized IntentResult.

The external classifier is authoritative for the intent. Brand detection
adds a local keyword scan when the classifier omits the brand entity, and
"iphone" always resolves to the Apple brand.
"""

import logging
from typing import Any, Optional

from phonebot.schemas.intent_schema import IntentResult
from phonebot.tools.intent_classifier import IntentClassifier

logger = logging.getLogger(__name__)

PRODUCT_NAME_ENTITY = "product_name:product_name"
PRICE_RANGE_ENTITY = "price_range:price_range"
FEATURE_ENTITY = "feature:feature"
COLOR_ENTITY = "color:color"
BRAND_ENTITY = "brand:brand"

# Scan order matters: the first keyword found in the message wins.
BRAND_KEYWORDS: dict[str, str] = {
    "vivo": "Vivo",
    "oppo": "Oppo",
    "samsung": "Samsung",
    "apple": "Apple",
    "xiaomi": "Xiaomi",
    "iphone": "Iphone",
}

BRAND_ALIASES: dict[str, str] = {
    "iphone": "Apple",
}


def normalize_brand(brand: Optional[str]) -> Optional[str]:
    """Map brand aliases to the catalog brand name."""
    if not brand:
        return None
    cleaned = brand.strip()
    return BRAND_ALIASES.get(cleaned.lower(), cleaned) or None


def extract_brand_from_message(message: str) -> Optional[str]:
    """Case-insensitive substring scan over the known brand vocabulary."""
    lower = message.lower()
    for keyword, brand in BRAND_KEYWORDS.items():
        if keyword in lower:
            return brand
    return None


def _entity_values(entities: dict[str, Any], key: str) -> list[str]:
    values = []
    for item in entities.get(key) or []:
        if isinstance(item, dict) and item.get("value"):
            values.append(str(item["value"]).strip())
    return [value for value in values if value]


def _first_entity(entities: dict[str, Any], key: str) -> Optional[str]:
    values = _entity_values(entities, key)
    return values[0] if values else None


class IntentResolver:
    """Combines the external classifier with local brand heuristics."""

    def __init__(self, classifier: IntentClassifier) -> None:
        self._classifier = classifier

    async def aclose(self) -> None:
        """Release the classifier's connections, if it holds any."""
        close = getattr(self._classifier, "aclose", None)
        if close is not None:
            await close()

    async def resolve(self, text: str) -> IntentResult:
        payload = await self._classifier.classify(text)
        if not payload or "intents" not in payload:
            logger.info("Intent classifier unavailable for this message")
            return IntentResult.unavailable()
        return self.from_payload(text, payload)

    @staticmethod
    def from_payload(text: str, payload: dict[str, Any]) -> IntentResult:
        """Normalize a Wit.ai payload for the given (lowercased) message."""
        intents = payload.get("intents") or []
        intent = None
        if intents and isinstance(intents[0], dict):
            intent = intents[0].get("name") or None

        entities = payload.get("entities") or {}
        lower = text.lower()
        product_names = [
            name for name in _entity_values(entities, PRODUCT_NAME_ENTITY)
            if name.lower() in lower
        ]
        brand = _first_entity(entities, BRAND_ENTITY) or extract_brand_from_message(text)

        result = IntentResult(
            intent=intent,
            product_names=product_names,
            price_range=_first_entity(entities, PRICE_RANGE_ENTITY),
            feature=_first_entity(entities, FEATURE_ENTITY),
            color=_first_entity(entities, COLOR_ENTITY),
            brand=normalize_brand(brand),
        )
        logger.debug("Resolved intent=%s entities=%s", result.intent, result.entities())
        return result
