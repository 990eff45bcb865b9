# src/pricetag/adapters/providers/__init__.py
"""
Provider Adapters - External Rate Sources

This package contains adapters for external exchange rate feeds.
All providers implement the RateSource interface.
"""

from pricetag.adapters.providers.base import RateSource
from pricetag.adapters.providers.cbr import CbrDailyProvider

__all__ = [
    "RateSource",
    "CbrDailyProvider",
]
