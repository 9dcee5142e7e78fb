"""Tests for LookupCache."""

from services.lookup_cache import LookupCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestLookupCache:
    """Tests for expiry and None handling."""

    def test_set_and_get(self):
        cache = LookupCache()
        cache.set("TICKER:VTI", "Vanguard Total Stock Market ETF")

        assert cache.get("TICKER:VTI") == "Vanguard Total Stock Market ETF"
        assert cache.get("TICKER:VXUS") is None
        assert cache.get("TICKER:VXUS", "fallback") == "fallback"

    def test_cached_none_is_a_hit(self):
        """A lookup that found nothing is remembered."""
        cache = LookupCache()
        cache.set("TICKER:ZZZZ", None)

        assert cache.contains("TICKER:ZZZZ")
        assert not cache.contains("TICKER:VTI")

    def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        cache = LookupCache(ttl_seconds=60, clock=clock)
        cache.set("RATE:EUR:USD", "1.10")

        clock.now += 60
        assert cache.get("RATE:EUR:USD") == "1.10"

        clock.now += 1
        assert cache.get("RATE:EUR:USD") is None
        assert len(cache) == 0

    def test_no_ttl_never_expires(self):
        clock = FakeClock()
        cache = LookupCache(clock=clock)
        cache.set("key", "value")

        clock.now += 10**9

        assert cache.get("key") == "value"

    def test_clear(self):
        cache = LookupCache()
        cache.set("a", 1)
        cache.set("b", 2)

        cache.clear()

        assert len(cache) == 0

    def test_set_prunes_expired_entries(self):
        """Entries nobody reads again are dropped on the next write."""
        clock = FakeClock()
        cache = LookupCache(ttl_seconds=60, clock=clock)
        cache.set("TICKER:OLD", "Old Fund")
        clock.now += 30
        cache.set("TICKER:MID", "Mid Fund")

        clock.now += 31
        cache.set("TICKER:NEW", "New Fund")

        assert len(cache) == 2
        assert not cache.contains("TICKER:OLD")
        assert cache.get("TICKER:MID") == "Mid Fund"

    def test_rewrite_refreshes_entry(self):
        clock = FakeClock()
        cache = LookupCache(ttl_seconds=60, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        clock.now += 50
        cache.set("a", 3)

        clock.now += 20
        cache.set("c", 4)

        assert cache.get("a") == 3
        assert not cache.contains("b")
