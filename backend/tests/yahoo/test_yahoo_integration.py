"""Yahoo Finance integration tests (real API calls).

These tests hit the Yahoo Finance API and are excluded by default.
Run with: pytest -m yahoo
"""

import pytest


@pytest.mark.yahoo
class TestCurrency:
    def test_us_listing_is_usd(self, yahoo_client):
        assert yahoo_client.get_currency("VTI") == "USD"

    def test_amsterdam_listing_is_eur(self, yahoo_client):
        assert yahoo_client.get_currency("IWDA.AS") == "EUR"


@pytest.mark.yahoo
class TestSearch:
    def test_search_by_ticker(self, yahoo_client):
        results = yahoo_client.search("VTI", limit=5)
        assert any(r.ticker == "VTI" for r in results)
        assert all(r.confidence == "medium" for r in results)

    def test_search_by_isin(self, yahoo_client):
        results = yahoo_client.search("IE00B4L5Y983", limit=5)
        assert results
        assert all(r.name for r in results)
