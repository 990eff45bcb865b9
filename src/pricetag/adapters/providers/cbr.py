# src/pricetag/adapters/providers/cbr.py
"""
Central Bank of Russia Daily Rates Provider

This module implements the client for the cbr-xml-daily JSON feed, which
publishes the official ruble rate of every currency once a day. The ruble is
the reference currency of the feed, so every other currency is expressed as
rubles per unit.

Files that USE this module:
- pricetag.app (builds the provider that feeds RateCache)
- tests.test_providers (unit tests)

Files that this module USES:
- pricetag.adapters.providers.base (RateSource interface)
- pricetag.domain (RateTable, RateFetchError)
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pricetag.adapters.providers.base import RateSource
from pricetag.domain.errors import RateFetchError
from pricetag.domain.models import RateTable

log = logging.getLogger(__name__)

DEFAULT_URL = "https://www.cbr-xml-daily.ru/daily_json.js"
RUB_CODE = 643


def _build_session(retries: int) -> requests.Session:
    """Create a session that retries connection errors and 5xx responses."""
    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(["GET"]),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class CbrDailyProvider(RateSource):
    """
    Client for the daily_json.js endpoint.

    The feed looks like:
      {"Date": "...", "Valute": {"UAH": {"NumCode": "980", "Nominal": 10,
                                         "Value": 22.31, ...}, ...}}
    Value is the price of ``Nominal`` units in rubles.
    """

    name = "cbr"

    def __init__(
        self,
        url: str = DEFAULT_URL,
        timeout: float = 20,
        retries: int = 3,
        reference_code: int = RUB_CODE,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the provider.

        Args:
            url: Feed URL
            timeout: HTTP timeout in seconds for a single attempt
            retries: Retry count for connection errors and 5xx responses
            reference_code: Numeric code of the feed's base currency (rate 1.0)
            session: Optional preconfigured requests session
        """
        self.url = url
        self.timeout = timeout
        self.reference_code = reference_code
        self.session = session or _build_session(retries)

    def fetch_rates(self) -> RateTable:
        """
        Fetch the feed and convert it into a RateTable.

        Returns:
            RateTable mapping numeric codes to rubles per 1 unit

        Raises:
            RateFetchError: If the request fails or the document is unusable
        """
        try:
            log.debug("Fetching rates from %s", self.url)
            resp = self.session.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            # The endpoint serves JSON as application/javascript
            data = resp.json()
        except requests.exceptions.Timeout:
            log.error("Rate source timeout after %s seconds", self.timeout)
            raise RateFetchError(f"Rate source timeout after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            log.error("Rate source request failed: %s", e)
            raise RateFetchError(f"Rate source request failed: {e}")
        except ValueError as e:
            log.error("Rate source returned invalid JSON: %s", e)
            raise RateFetchError(f"Rate source returned invalid JSON: {e}")

        rates = self.parse_rates(data)
        return RateTable(rates=rates, source=self.name, fetched_at=datetime.now(timezone.utc))

    def parse_rates(self, data: Any) -> Dict[int, float]:
        """
        Extract per-unit rates from a decoded feed document.

        Entries with a missing code, zero nominal or non-numeric value are
        skipped. The reference currency is always present with rate 1.0.

        Raises:
            RateFetchError: If the document has no usable entries
        """
        if not isinstance(data, dict) or not isinstance(data.get("Valute"), dict):
            log.error("Rate source unexpected document shape: %r", type(data))
            raise RateFetchError("Rate source returned a document without 'Valute'")

        rates: Dict[int, float] = {}
        for char_code, entry in data["Valute"].items():
            try:
                code = int(entry["NumCode"])
                nominal = float(entry["Nominal"])
                value = float(entry["Value"])
            except (KeyError, TypeError, ValueError) as e:
                log.warning("Skipping malformed rate entry %s: %s", char_code, e)
                continue
            if nominal <= 0 or value <= 0:
                log.warning("Skipping non-positive rate entry %s", char_code)
                continue
            rates[code] = value / nominal

        if not rates:
            raise RateFetchError("Rate source returned no usable rates")

        rates[self.reference_code] = 1.0
        log.info("Parsed %d rates from %s", len(rates), self.name)
        return rates
