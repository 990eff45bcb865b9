# src/pricetag/application/__init__.py
"""
Application Layer - Use Cases and Services

This package contains the services that tie the domain together:
the rate cache and the price bot that keeps channel posts up to date.
"""

from pricetag.application.rate_cache import RateCache
from pricetag.application.price_bot import MessageEditor, PriceBot

__all__ = [
    "RateCache",
    "MessageEditor",
    "PriceBot",
]
