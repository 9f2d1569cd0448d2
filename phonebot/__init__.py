"""Conversational assistant for a phone storefront."""

__version__ = "0.1.0"
