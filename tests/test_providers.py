# tests/test_providers.py
"""
Provider Tests - Unit Tests for the Central Bank Rate Feed

This module contains unit tests for CbrDailyProvider, including request
handling, error translation and parsing of the daily JSON document.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- pricetag.adapters.providers.cbr (CbrDailyProvider for testing)
- unittest.mock (Mock for HTTP mocking)
- pytest (testing framework)
"""
import pytest  # Testing framework for writing and running tests

from unittest.mock import Mock  # Mock objects for testing without real HTTP calls
import requests  # HTTP library (used for mocking exceptions)

from pricetag.adapters.providers.cbr import CbrDailyProvider, DEFAULT_URL
from pricetag.domain.errors import RateFetchError

DAILY_JSON = {
    "Date": "2024-03-01T11:30:00+03:00",
    "Valute": {
        "USD": {"ID": "R01235", "NumCode": "840", "CharCode": "USD", "Nominal": 1,
                "Name": "Доллар США", "Value": 91.5, "Previous": 90.8},
        "UAH": {"ID": "R01720", "NumCode": "980", "CharCode": "UAH", "Nominal": 10,
                "Name": "Украинских гривен", "Value": 23.9, "Previous": 23.8},
    },
}


def _provider(json_data=None, json_error=None, get_error=None, status_error=None):
    session = Mock(spec=requests.Session)
    response = Mock()
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    response.raise_for_status.side_effect = status_error
    session.get.return_value = response
    if get_error:
        session.get.side_effect = get_error
    return CbrDailyProvider(timeout=5, session=session), session


class TestCbrDailyProvider:
    def test_init_with_defaults(self):
        provider = CbrDailyProvider()
        assert provider.url == DEFAULT_URL
        assert provider.timeout == 20
        assert provider.reference_code == 643
        adapter = provider.session.get_adapter(DEFAULT_URL)
        assert adapter.max_retries.total == 3

    def test_fetch_rates(self):
        provider, session = _provider(DAILY_JSON)

        table = provider.fetch_rates()

        assert table.source == "cbr"
        assert table.fetched_at is not None
        assert table.rates[840] == pytest.approx(91.5)
        assert table.rates[980] == pytest.approx(2.39)  # divided by nominal
        assert table.rates[643] == 1.0
        session.get.assert_called_once_with(DEFAULT_URL, timeout=5)

    def test_timeout(self):
        provider, _ = _provider(get_error=requests.exceptions.Timeout("slow"))
        with pytest.raises(RateFetchError, match="timeout"):
            provider.fetch_rates()

    def test_request_error(self):
        provider, _ = _provider(get_error=requests.exceptions.ConnectionError("refused"))
        with pytest.raises(RateFetchError, match="request failed"):
            provider.fetch_rates()

    def test_http_error(self):
        provider, _ = _provider(DAILY_JSON, status_error=requests.exceptions.HTTPError("503"))
        with pytest.raises(RateFetchError, match="request failed"):
            provider.fetch_rates()

    def test_invalid_json(self):
        provider, _ = _provider(json_error=ValueError("Expecting value"))
        with pytest.raises(RateFetchError, match="invalid JSON"):
            provider.fetch_rates()


class TestParseRates:
    def test_non_dict_document(self):
        provider = CbrDailyProvider()
        with pytest.raises(RateFetchError):
            provider.parse_rates(["not", "a", "dict"])
        with pytest.raises(RateFetchError):
            provider.parse_rates({"Date": "2024-03-01"})

    def test_skips_malformed_entries(self):
        provider = CbrDailyProvider()
        rates = provider.parse_rates({"Valute": {
            "USD": {"NumCode": "840", "Nominal": 1, "Value": 91.5},
            "BAD": {"NumCode": "xyz", "Nominal": 1, "Value": 1.0},
            "ZERO": {"NumCode": "111", "Nominal": 0, "Value": 1.0},
            "MISSING": {"NumCode": "222"},
        }})
        assert rates == {840: pytest.approx(91.5), 643: 1.0}

    def test_no_usable_entries(self):
        provider = CbrDailyProvider()
        with pytest.raises(RateFetchError, match="no usable rates"):
            provider.parse_rates({"Valute": {"BAD": {"NumCode": "x"}}})

    def test_custom_reference_currency(self):
        provider = CbrDailyProvider(reference_code=999)
        rates = provider.parse_rates({"Valute": {"USD": {"NumCode": "840", "Nominal": 1, "Value": 2.0}}})
        assert rates[999] == 1.0
        assert 643 not in rates
