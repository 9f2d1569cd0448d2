"""
Vietnamese budget phrase parsing.

Recognizes four phrasings, each amount in millions of VND:
    "từ A đến B triệu"     -> A .. B
    "dưới A triệu"         -> 0 .. A
    "trên A triệu"         -> A .. MAX_PRICE
    "có A triệu mua được"  -> 0 .. A
"""

import re
from dataclasses import dataclass
from typing import Optional

from phonebot.tools.catalog import MAX_PRICE
from phonebot.utils import MILLION, format_price

_RANGE = re.compile(r"từ\s+(\d+)\s+đến\s+(\d+)\s+triệu", re.IGNORECASE)
_BELOW = re.compile(r"dưới\s+(\d+)\s+triệu", re.IGNORECASE)
_ABOVE = re.compile(r"trên\s+(\d+)\s+triệu", re.IGNORECASE)
_AFFORDABLE = re.compile(r"có\s+(\d+)\s+triệu\s+mua\s+được", re.IGNORECASE)
_NUMBER = re.compile(r"(\d+)")


@dataclass(frozen=True)
class PriceRange:
    """Inclusive price bounds in VND."""

    min_price: int
    max_price: int

    @property
    def is_valid(self) -> bool:
        return 0 <= self.min_price <= self.max_price

    def describe(self) -> str:
        return f"từ {format_price(self.min_price)} đến {format_price(self.max_price)}"


def _parse_phrase(text: str) -> Optional[PriceRange]:
    match = _RANGE.search(text)
    if match:
        return PriceRange(int(match.group(1)) * MILLION, int(match.group(2)) * MILLION)
    match = _BELOW.search(text)
    if match:
        return PriceRange(0, int(match.group(1)) * MILLION)
    match = _ABOVE.search(text)
    if match:
        return PriceRange(int(match.group(1)) * MILLION, MAX_PRICE)
    match = _AFFORDABLE.search(text)
    if match:
        return PriceRange(0, int(match.group(1)) * MILLION)
    return None


def parse_price_range(text: str, classifier_value: Optional[str] = None) -> Optional[PriceRange]:
    """Parse a budget from the message, then from the classifier's price_range entity.

    A classifier value that matches none of the phrasings but carries a
    number is read as an upper bound in millions. Returns None when no
    budget can be read. The result may be invalid (min > max); callers
    check ``is_valid``.
    """
    parsed = _parse_phrase(text)
    if parsed is not None:
        return parsed
    if not classifier_value:
        return None
    parsed = _parse_phrase(classifier_value)
    if parsed is not None:
        return parsed
    match = _NUMBER.search(classifier_value)
    if match:
        return PriceRange(0, int(match.group(1)) * MILLION)
    return None
