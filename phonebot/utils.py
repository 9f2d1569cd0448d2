"""Shared utilities used across the storefront assistant."""

import re

MILLION = 1_000_000


def format_price(price: int) -> str:
    """Format an integer VND amount the Vietnamese way.

    Examples:
        >>> format_price(15990000)
        '15.990.000 VNĐ'
        >>> format_price(0)
        '0 VNĐ'
    """
    return f"{int(price):,}".replace(",", ".") + " VNĐ"


def normalize_message(value: str) -> str:
    """Trim, collapse internal whitespace and lowercase a user message.

    Examples:
        >>> normalize_message("  Có   iPhone 14 không? ")
        'có iphone 14 không?'
    """
    return re.sub(r"\s+", " ", value.strip()).lower()
