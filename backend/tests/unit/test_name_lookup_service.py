"""Tests for NameLookupService."""

import asyncio

from integrations.lookup_protocol import IsinLookupResult, TickerCandidate
from services.lookup_cache import LookupCache
from services.name_lookup_service import (
    NameLookupService,
    NameRequest,
    all_tickers,
    best_ticker,
)
from tests.fixtures.mocks import (
    MockIsinMappingProvider,
    MockTickerSearchProvider,
    SAMPLE_SEARCH_RESULTS,
)

FIGI_RESULT = IsinLookupResult(
    isin="IE00BK5BQT80",
    tickers=[
        TickerCandidate("VWCE", "GY", "VANGUARD FTSE ALL-WORLD", "high"),
        TickerCandidate("VWRA", "LN", "VANGUARD FTSE ALL-WORLD", "high"),
    ],
    name="VANGUARD FTSE ALL-WORLD",
)


def make_service(search=None, mapping=None, **kwargs) -> NameLookupService:
    return NameLookupService(
        search_provider=search or MockTickerSearchProvider(results=SAMPLE_SEARCH_RESULTS),
        isin_provider=mapping or MockIsinMappingProvider(),
        cache=LookupCache(),
        **kwargs,
    )


class TestTickerSelection:
    """Tests for best_ticker and all_tickers."""

    def test_primary_ticker_wins(self):
        result = IsinLookupResult(
            isin="X", tickers=[TickerCandidate("A", confidence="high")], primary_ticker="B"
        )

        assert best_ticker(result) == "B"

    def test_high_confidence_us_listing_preferred(self):
        result = IsinLookupResult(
            isin="X",
            tickers=[
                TickerCandidate("AAA", "LN", confidence="high"),
                TickerCandidate("BBB", "NYQ", confidence="high"),
            ],
        )

        assert best_ticker(result) == "BBB"

    def test_medium_before_low(self):
        result = IsinLookupResult(
            isin="X",
            tickers=[
                TickerCandidate("LOW", confidence="low"),
                TickerCandidate("MED", confidence="medium"),
            ],
        )

        assert best_ticker(result) == "MED"

    def test_empty_result(self):
        assert best_ticker(IsinLookupResult(isin="X")) is None

    def test_all_tickers_distinct(self):
        result = IsinLookupResult(
            isin="X",
            tickers=[TickerCandidate("A"), TickerCandidate("B"), TickerCandidate("A")],
        )

        assert all_tickers(result) == ["A", "B"]


class TestNameLookups:
    """Tests for single lookups and caching."""

    def test_name_from_ticker(self):
        service = make_service()

        assert service.lookup_name_from_ticker("VTI") == "Vanguard Total Stock Market ETF"

    def test_unknown_ticker_cached_as_none(self):
        search = MockTickerSearchProvider()
        service = make_service(search=search)

        assert service.lookup_name_from_ticker("ZZZZ") is None
        assert service.lookup_name_from_ticker("zzzz") is None
        assert search.calls == ["ZZZZ"]

    def test_search_failure_returns_none(self):
        service = make_service(search=MockTickerSearchProvider(should_fail=True))

        assert service.lookup_name_from_ticker("VTI") is None

    def test_isin_uses_search_first(self):
        mapping = MockIsinMappingProvider(results={"IE00B4L5Y983": FIGI_RESULT})
        service = make_service(mapping=mapping)

        result = service.lookup_tickers_from_isin("IE00B4L5Y983")

        assert result.primary_ticker == "IWDA.AS"
        assert all_tickers(result) == ["IWDA.AS", "SWDA.L"]
        assert mapping.calls == []

    def test_isin_falls_back_to_mapping(self):
        mapping = MockIsinMappingProvider(results={"IE00BK5BQT80": FIGI_RESULT})
        service = make_service(mapping=mapping)

        assert service.lookup_name_from_isin("IE00BK5BQT80") == "VANGUARD FTSE ALL-WORLD"
        assert best_ticker(service.lookup_tickers_from_isin("IE00BK5BQT80")) == "VWCE"
        assert mapping.calls == ["IE00BK5BQT80"]

    def test_mapping_failure_returns_none(self):
        service = make_service(mapping=MockIsinMappingProvider(should_fail=True, failure_type="api"))

        assert service.lookup_tickers_from_isin("IE00BK5BQT80") is None

    def test_lookup_name_prefers_isin(self):
        service = make_service()

        assert service.lookup_name("VTI", "IE00B4L5Y983") == "iShares Core MSCI World UCITS ETF"
        assert service.lookup_name("VTI", "US0000000000") == "Vanguard Total Stock Market ETF"

    def test_tickers_from_name_are_low_confidence(self):
        service = make_service()

        candidates = service.lookup_tickers_from_name("iShares Core MSCI World")

        assert [c.ticker for c in candidates] == ["IWDA.AS"]
        assert candidates[0].confidence == "low"


class TestBatchLookups:
    """Tests for run_batch and lookup_names."""

    def test_results_keep_job_order(self):
        service = make_service()

        results = asyncio.run(
            service.run_batch([("a", lambda: 1), ("b", lambda: 2), ("c", lambda: 3)])
        )

        assert results == [1, 2, 3]

    def test_failed_job_yields_none(self):
        def boom():
            raise RuntimeError("lookup exploded")

        service = make_service()

        results = asyncio.run(service.run_batch([("ok", lambda: "x"), ("bad", boom)]))

        assert results == ["x", None]

    def test_slow_job_times_out(self):
        search = MockTickerSearchProvider(results=SAMPLE_SEARCH_RESULTS, delay=0.5)
        service = make_service(search=search, timeout=0.05)

        names = asyncio.run(service.lookup_names([NameRequest(key="t1", symbol="VTI")]))

        assert names == {"t1": None}

    def test_lookup_names(self):
        service = make_service(concurrency=2)
        requests = [
            NameRequest(key="t1", symbol="VTI"),
            NameRequest(key="t2", isin="IE00B4L5Y983"),
            NameRequest(key="t3", symbol="ZZZZ"),
        ]

        names = asyncio.run(service.lookup_names(requests))

        assert names == {
            "t1": "Vanguard Total Stock Market ETF",
            "t2": "iShares Core MSCI World UCITS ETF",
            "t3": None,
        }
