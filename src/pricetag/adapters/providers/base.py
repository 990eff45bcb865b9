# src/pricetag/adapters/providers/base.py
"""
Base Provider Interface for Exchange Rate Sources

This module defines the abstract base class for all exchange rate sources.
It establishes the contract that all source implementations must follow.

Files that USE this module:
- pricetag.adapters.providers.cbr (CbrDailyProvider implements RateSource)
- pricetag.application.rate_cache (RateCache pulls tables from a RateSource)

Files that this module USES:
- pricetag.domain.models (RateTable)
"""
from abc import ABC, abstractmethod

from pricetag.domain.models import RateTable


class RateSource(ABC):
    name: str = "unknown"

    @abstractmethod
    def fetch_rates(self) -> RateTable:
        """
        Return per-unit rates of every currency against the reference currency.

        Raises:
            RateFetchError: If the remote source is unavailable or returns bad data
        """
        raise NotImplementedError
