# src/pricetag/application/rate_cache.py
"""
Rate Cache - Current Exchange Rates and Change Notifications

This module keeps the last successfully fetched rate table in memory and
answers conversions from it without touching the network. A refresh swaps the
whole table at once and, if anything changed, notifies subscribers on a
thread pool so a slow subscriber never stalls the refresh.

Files that USE this module:
- pricetag.app (builds the cache, fails fast if the first fetch fails)
- pricetag.adapters.formatting.renderer (converts token amounts)
- pricetag.adapters.telegram.jobs (scheduled refresh)
- pricetag.application.price_bot (subscribes to rate changes)

Files that this module USES:
- pricetag.adapters.providers.base (RateSource interface)
- pricetag.domain (RateTable, RateFetchError, UnknownCurrencyError)
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List

from pricetag.adapters.providers.base import RateSource
from pricetag.domain.errors import RateFetchError, UnknownCurrencyError
from pricetag.domain.models import RateTable

logger = logging.getLogger(__name__)

Subscriber = Callable[[], None]


class RateCache:
    """Thread-safe holder of the current rate table."""

    def __init__(self, source: RateSource, max_workers: int = 4):
        """
        Initialize the cache and perform the first refresh synchronously.

        Args:
            source: Remote rate source
            max_workers: Size of the subscriber notification pool

        Raises:
            RateFetchError: If the initial fetch fails
        """
        self.source = source
        self._lock = threading.Lock()
        self._table = RateTable()
        self._subscribers: List[Subscriber] = []
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="rate-subscribers"
        )
        try:
            self.refresh()
        except RateFetchError:
            self._executor.shutdown(wait=False)
            raise

    @property
    def table(self) -> RateTable:
        """Current rate table (immutable snapshot)."""
        with self._lock:
            return self._table

    def convert(self, amount: float, source_code: int, target_code: int) -> float:
        """
        Convert an amount between two currencies using the cached table.

        Both rates are read under the lock, so a concurrent refresh can never
        mix an old source rate with a new target rate.

        Raises:
            UnknownCurrencyError: If either code is missing from the table
        """
        if source_code == target_code:
            return amount

        with self._lock:
            rates = self._table.rates
            try:
                source_rate = rates[source_code]
                target_rate = rates[target_code]
            except KeyError as e:
                raise UnknownCurrencyError(f"No rate for currency {e.args[0]}") from None

        return amount * source_rate / target_rate

    def register_subscriber(self, callback: Subscriber) -> None:
        """Register a zero-argument callback fired after every rate change."""
        with self._lock:
            self._subscribers.append(callback)

    def refresh(self) -> bool:
        """
        Fetch fresh rates and swap them in.

        Returns:
            True if the table changed (subscribers were notified), False otherwise

        Raises:
            RateFetchError: If the fetch fails; the previous table is kept
        """
        try:
            table = self.source.fetch_rates()
        except RateFetchError:
            raise
        except Exception as e:
            raise RateFetchError(f"Rate source {self.source.name} failed: {e}") from e

        if not table.rates:
            raise RateFetchError(f"Rate source {self.source.name} returned an empty table")

        with self._lock:
            changed = dict(table.rates) != dict(self._table.rates)
            self._table = table
            subscribers = list(self._subscribers)

        if not changed:
            logger.info("Rates refreshed from %s, no changes", table.source)
            return False

        logger.info("Rates refreshed from %s, notifying %d subscriber(s)", table.source, len(subscribers))
        for callback in subscribers:
            self._notify(callback)
        return True

    def _notify(self, callback: Subscriber) -> None:
        try:
            future = self._executor.submit(callback)
        except RuntimeError:
            logger.warning("Rate cache closed, subscriber %r not notified", callback)
            return
        future.add_done_callback(self._log_subscriber_failure)

    @staticmethod
    def _log_subscriber_failure(future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Rate subscriber failed: %s", exc, exc_info=exc)

    def close(self) -> None:
        """Stop accepting notifications; pending ones still run."""
        self._executor.shutdown(wait=False)
